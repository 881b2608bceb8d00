"""Example: Basic usage of receipt-extractor."""

import logging

from receipt_extractor import (
    ExtractionConfig,
    LocaleProfile,
    NoTextDetectedError,
    ReceiptInfoExtractor,
    extract_from_vision_response,
)

SUPERMARKET_RECEIPT = """スーパーマーケット田中
2024年7月28日
お茶 150円
パン 300円
合計
¥450"""

CONVENIENCE_STORE_RECEIPT = """ローソン新宿店
TEL 03-1234-5678
2024/08/01 18:05
おにぎり ¥150
コーヒー ¥120
小計 ¥270
(税込合計 ¥270 内消費税 ¥20)
合計 ¥270
お預り ¥1,000
お釣り ¥730"""


def example_basic_extraction() -> None:
    """Extract the three fields from a supermarket receipt."""
    print("=" * 60)
    print("Example 1: Basic Extraction")
    print("=" * 60)

    extractor = ReceiptInfoExtractor()
    result = extractor.extract(SUPERMARKET_RECEIPT)

    print(f"Amount:     {result.amount}")
    print(f"Store name: {result.store_name}")
    print(f"Date:       {result.date}")
    print(f"Payload:    {result.to_api_dict()}")
    print()


def example_provenance() -> None:
    """Show which line and rule produced each field."""
    print("=" * 60)
    print("Example 2: Field Provenance")
    print("=" * 60)

    result = ReceiptInfoExtractor().extract(CONVENIENCE_STORE_RECEIPT)

    for field in result.field_results:
        print(f"{field.name:11} {field.value!s:24} line {field.line_index} via {field.strategy}")
    print(f"Amount candidates: {[c.numeric_value for c in result.amount_candidates]}")
    print()


def example_empty_transcript() -> None:
    """Distinguish "OCR saw nothing" from "nothing parseable"."""
    print("=" * 60)
    print("Example 3: Empty Transcript")
    print("=" * 60)

    response = {"responses": [{}]}  # Vision found no text
    result = extract_from_vision_response(response)

    print(f"Status: {result.status.value}")
    try:
        result.raise_for_status()
    except NoTextDetectedError as e:
        print(f"Caller should ask for another photo: {e}")
    print()


def example_custom_locale() -> None:
    """Use a custom keyword table and a wider amount window."""
    print("=" * 60)
    print("Example 4: Custom Locale and Config")
    print("=" * 60)

    locale = LocaleProfile(
        name="en_us",
        total_keywords=["TOTAL", "AMOUNT DUE"],
        tax_keywords=["TAX"],
        currency_prefixes=["$"],
    )
    config = ExtractionConfig(min_amount=1, max_amount=1_000_000)
    extractor = ReceiptInfoExtractor(locale=locale, config=config)

    result = extractor.extract("Corner Cafe\nLatte $5.00\nTAX $0.44\nTOTAL $5.44")
    print(f"Amount: {result.amount}  Store: {result.store_name}")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    example_basic_extraction()
    example_provenance()
    example_empty_transcript()
    example_custom_locale()
