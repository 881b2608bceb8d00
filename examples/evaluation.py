#!/usr/bin/env python
"""Example: Regression evaluation of receipt extraction.

Runs the extractor over labelled OCR transcripts and reports precision,
recall, F1 and accuracy per field.

Usage:
    # Built-in sample receipts
    python examples/evaluation.py

    # Labelled transcripts from a YAML file, report written to disk
    python examples/evaluation.py --cases receipts.yaml --report report.md

The YAML file is a list of mappings with ``id``, ``raw_text`` and
``ground_truth`` keys.
"""

import argparse
from pathlib import Path

import yaml

from receipt_extractor.evaluation import (
    EvaluationReporter,
    ExtractionEvaluator,
    ReceiptTestCase,
)

SAMPLE_CASES = [
    ReceiptTestCase(
        id="supermarket",
        raw_text="スーパーマーケット田中\n2024年7月28日\nお茶 150円\nパン 300円\n合計\n¥450",
        ground_truth={"amount": "450", "store_name": "スーパーマーケット田中", "date": "2024-07-28"},
    ),
    ReceiptTestCase(
        id="convenience_store",
        raw_text=(
            "ローソン新宿店\nTEL 03-1234-5678\n2024/08/01 18:05\n"
            "小計 ¥270\n税込合計 ¥270\n合計 ¥270\nお預り ¥1,000\nお釣り ¥730"
        ),
        ground_truth={"amount": "270", "store_name": "ローソン新宿店", "date": "2024-08-01"},
    ),
    ReceiptTestCase(
        id="restaurant_era_date",
        raw_text="レストラン山本\n令和6年12月24日\n御会計\n5,280\n4,800",
        ground_truth={"amount": "5280", "store_name": "レストラン山本", "date": "2024-12-24"},
    ),
    ReceiptTestCase(
        id="faded_total",
        raw_text="カフェ・ド・パリ\nコーヒー 480円\nケーキ 520円",
        ground_truth={"amount": "1000", "store_name": "カフェ・ド・パリ", "date": None},
    ),
]


def load_cases(path: Path) -> list[ReceiptTestCase]:
    """Load labelled transcripts from a YAML file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    return [ReceiptTestCase(**case) for case in data]


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Evaluate receipt-extractor on labelled receipts")
    parser.add_argument("--cases", type=Path, help="YAML file with labelled transcripts")
    parser.add_argument("--report", type=Path, help="Write the report (.md, .json or .txt)")
    args = parser.parse_args()

    cases = load_cases(args.cases) if args.cases else SAMPLE_CASES

    evaluator = ExtractionEvaluator()
    evaluator.evaluate_batch(cases)
    reporter = EvaluationReporter(evaluator.evaluations, evaluator.compute_aggregate_metrics())

    if args.report:
        reporter.save(args.report)
        print(f"Report written to {args.report}")
    else:
        print(reporter.to_text())


if __name__ == "__main__":
    main()
