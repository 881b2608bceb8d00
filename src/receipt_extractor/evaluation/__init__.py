"""Evaluation module for receipt-extractor.

Scores the extractor against labelled OCR transcripts with precision,
recall, F1 and accuracy per field, plus continuous similarity scores.

Example:
    ```python
    from receipt_extractor.evaluation import (
        EvaluationReporter,
        ExtractionEvaluator,
        ReceiptTestCase,
    )

    evaluator = ExtractionEvaluator()
    evaluator.evaluate_batch([
        ReceiptTestCase(
            id="tanaka",
            raw_text="スーパーマーケット田中\\n2024年7月28日\\n合計\\n¥450",
            ground_truth={"amount": "450", "store_name": "スーパーマーケット田中"},
        ),
    ])

    reporter = EvaluationReporter(evaluator.evaluations, evaluator.compute_aggregate_metrics())
    reporter.save("report.md")
    ```
"""

from receipt_extractor.evaluation.comparators import (
    ComparisonResult,
    DateComparator,
    ExactComparator,
    FieldComparator,
    NumericComparator,
    StringComparator,
    get_default_comparator,
    receipt_field_comparators,
)
from receipt_extractor.evaluation.evaluator import (
    RECEIPT_FIELDS,
    ExtractionEvaluator,
    ReceiptTestCase,
    aggregate_evaluations,
)
from receipt_extractor.evaluation.reporters import EvaluationReporter
from receipt_extractor.evaluation.types import (
    EvaluationMetrics,
    ExtractionEvaluation,
    FieldEvaluationMetrics,
    FieldMatch,
    MatchStatus,
)

__all__ = [
    # Types
    "MatchStatus",
    "FieldMatch",
    "ExtractionEvaluation",
    "FieldEvaluationMetrics",
    "EvaluationMetrics",
    # Comparators
    "ComparisonResult",
    "FieldComparator",
    "ExactComparator",
    "NumericComparator",
    "StringComparator",
    "DateComparator",
    "get_default_comparator",
    "receipt_field_comparators",
    # Evaluator
    "RECEIPT_FIELDS",
    "ExtractionEvaluator",
    "ReceiptTestCase",
    "aggregate_evaluations",
    # Reporters
    "EvaluationReporter",
]
