"""Core extraction functionality."""

from receipt_extractor.core.amounts import AmountScanner, interpret_amount, parse_amount_text
from receipt_extractor.core.config import ExtractionConfig
from receipt_extractor.core.exceptions import (
    ConfigurationError,
    LocaleValidationError,
    NoTextDetectedError,
    OcrResponseError,
    ReceiptExtractorError,
)
from receipt_extractor.core.extractor import ReceiptInfoExtractor, extract_receipt_info
from receipt_extractor.core.locale import DatePattern, LocaleProfile, LocaleRegistry

__all__ = [
    "ReceiptInfoExtractor",
    "extract_receipt_info",
    "AmountScanner",
    "interpret_amount",
    "parse_amount_text",
    "ExtractionConfig",
    "DatePattern",
    "LocaleProfile",
    "LocaleRegistry",
    "ReceiptExtractorError",
    "NoTextDetectedError",
    "ConfigurationError",
    "LocaleValidationError",
    "OcrResponseError",
]
