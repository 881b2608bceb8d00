"""Result models for receipt extraction evaluation."""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, Field

Ratio = Annotated[float, Field(ge=0.0, le=1.0)]


class MatchStatus(str, Enum):
    """Confusion-matrix cell of one field comparison."""

    TRUE_POSITIVE = "tp"
    FALSE_POSITIVE = "fp"  # value extracted, label is None
    FALSE_NEGATIVE = "fn"  # missing or wrong value
    TRUE_NEGATIVE = "tn"


class FieldMatch(BaseModel):
    """Comparison of one extracted field with its label."""

    field_name: str
    status: MatchStatus
    matched: bool
    score: float = Field(ge=0.0, le=1.0)

    expected: Any = None
    actual: Any = None

    comparator_type: str | None = None
    threshold_used: float | None = None
    strategy: str | None = Field(
        default=None,
        description="Extractor rule that produced the actual value",
    )
    reasoning: str | None = None


class ConfusionMetrics(BaseModel):
    """Confusion counts and the rates derived from them."""

    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    true_negatives: int = 0

    precision: Ratio = 0.0
    recall: Ratio = 0.0
    f1_score: Ratio = 0.0
    accuracy: Ratio = 0.0

    mean_score: Ratio = 0.0
    min_score: Ratio = 0.0
    max_score: Ratio = 0.0


class ExtractionEvaluation(ConfusionMetrics):
    """Evaluation of one receipt transcript against its labels.

    Example:
        ```python
        evaluation = evaluator.evaluate(raw_text, {"amount": "450"})
        print(evaluation.get_field_match("amount").status)
        ```
    """

    test_id: str
    locale_name: str
    extraction_success: bool = Field(description="False when the transcript held no text")
    field_matches: list[FieldMatch] = Field(default_factory=list)
    latency_ms: float | None = None

    def get_field_match(self, field_name: str) -> FieldMatch | None:
        """Return the match for a field, or None if it was not evaluated."""
        return next((m for m in self.field_matches if m.field_name == field_name), None)


class FieldEvaluationMetrics(ConfusionMetrics):
    """Metrics for one field (amount, store_name or date) across receipts."""

    field_name: str
    evaluation_count: int
    std_score: float | None = None


class EvaluationMetrics(BaseModel):
    """Metrics across a batch of receipt evaluations.

    Micro averages pool every field comparison; macro averages take the mean
    of the per-receipt figures.

    Example:
        ```python
        metrics = evaluator.compute_aggregate_metrics()
        print(f"Micro F1: {metrics.micro_f1:.2%}")
        print(metrics.field_metrics["amount"].accuracy)
        ```
    """

    total_evaluations: int
    total_fields: int
    successful_extractions: int = 0
    failed_extractions: int = Field(default=0, description="Transcripts with no text")

    total_true_positives: int = 0
    total_false_positives: int = 0
    total_false_negatives: int = 0
    total_true_negatives: int = 0

    micro_precision: Ratio = 0.0
    micro_recall: Ratio = 0.0
    micro_f1: Ratio = 0.0
    micro_accuracy: Ratio = 0.0

    macro_precision: Ratio = 0.0
    macro_recall: Ratio = 0.0
    macro_f1: Ratio = 0.0
    macro_accuracy: Ratio = 0.0

    mean_score: Ratio = 0.0
    median_score: Ratio = 0.0
    min_score: Ratio = 0.0
    max_score: Ratio = 0.0
    std_score: float | None = None

    field_metrics: dict[str, FieldEvaluationMetrics] = Field(default_factory=dict)
    strategy_counts: dict[str, int] = Field(
        default_factory=dict,
        description="How often each extractor rule produced a value",
    )

    latency_mean_ms: float = 0.0
    latency_median_ms: float = 0.0
    latency_p95_ms: float = 0.0
    latency_p99_ms: float = 0.0
