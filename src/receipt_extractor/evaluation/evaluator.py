"""Extraction evaluator for comparing extractions against labelled receipts."""

import statistics
import time
import uuid
from collections import Counter
from typing import Any

from pydantic import BaseModel

from receipt_extractor.core.exceptions import ConfigurationError
from receipt_extractor.core.extractor import ReceiptInfoExtractor
from receipt_extractor.evaluation.comparators import (
    ComparisonResult,
    ExactComparator,
    FieldComparator,
    get_default_comparator,
    receipt_field_comparators,
)
from receipt_extractor.evaluation.types import (
    EvaluationMetrics,
    ExtractionEvaluation,
    FieldEvaluationMetrics,
    FieldMatch,
    MatchStatus,
)
from receipt_extractor.results.types import ExtractionResult


RECEIPT_FIELDS = ("amount", "store_name", "date")


class ReceiptTestCase(BaseModel):
    """A labelled OCR transcript.

    Only the fields present in ``ground_truth`` are evaluated. A field
    labelled ``None`` asserts that the extractor must not produce a value.

    Example:
        ```python
        test_case = ReceiptTestCase(
            id="lawson_001",
            raw_text="ローソン新宿店\\n2024/07/28\\n合計 ¥450",
            ground_truth={"amount": "450", "store_name": "ローソン新宿店", "date": "2024-07-28"},
        )
        ```
    """

    id: str
    raw_text: str
    ground_truth: dict[str, Any]


class ExtractionEvaluator:
    """Evaluates receipt extractions against ground truth.

    Provides precision, recall, F1, and accuracy metrics along with
    continuous similarity scores, per receipt and in aggregate.

    Example:
        ```python
        from receipt_extractor import ReceiptInfoExtractor
        from receipt_extractor.evaluation import EvaluationReporter, ExtractionEvaluator

        evaluator = ExtractionEvaluator(ReceiptInfoExtractor())
        evaluator.evaluate_batch(test_cases)

        metrics = evaluator.compute_aggregate_metrics()
        EvaluationReporter(evaluator.evaluations, metrics).print_summary()
        ```
    """

    def __init__(
        self,
        extractor: ReceiptInfoExtractor | None = None,
        default_comparators: dict[str, FieldComparator] | None = None,
        default_string_threshold: float = 0.8,
        default_numeric_tolerance: float = 0.01,
        auto_select_comparators: bool = True,
    ) -> None:
        """Initialize the evaluator.

        Args:
            extractor: Extractor under test. A default one is created if omitted.
            default_comparators: Comparators for specific field names. Merged
                over the receipt defaults (exact amount, fuzzy store name,
                same-day date).
            default_string_threshold: Threshold for auto-selected string comparisons.
            default_numeric_tolerance: Tolerance for auto-selected numeric comparisons.
            auto_select_comparators: If True, fields without a comparator get
                one chosen from the ground truth value type.
        """
        self.extractor = extractor or ReceiptInfoExtractor()
        self.default_comparators = {
            **receipt_field_comparators(default_string_threshold),
            **(default_comparators or {}),
        }
        self.default_string_threshold = default_string_threshold
        self.default_numeric_tolerance = default_numeric_tolerance
        self.auto_select_comparators = auto_select_comparators

        self._evaluations: list[ExtractionEvaluation] = []

    def evaluate(
        self,
        raw_text: str,
        ground_truth: dict[str, Any] | ExtractionResult,
        test_id: str | None = None,
        field_comparators: dict[str, FieldComparator] | None = None,
    ) -> ExtractionEvaluation:
        """Run the extractor on a transcript and evaluate the result.

        Args:
            raw_text: OCR transcript to extract from.
            ground_truth: Expected values keyed by ``amount``, ``store_name``
                and ``date``, or an ExtractionResult to compare against.
            test_id: Optional unique identifier for this test case.
            field_comparators: Override comparators for specific fields.

        Returns:
            ExtractionEvaluation with precision/recall/F1/accuracy and scores.

        Raises:
            ConfigurationError: If the ground truth names an unknown field.
        """
        if test_id is None:
            test_id = str(uuid.uuid4())[:8]

        gt_dict = self._to_field_dict(ground_truth)

        start_time = time.perf_counter()
        result = self.extractor.extract(raw_text)
        latency_ms = (time.perf_counter() - start_time) * 1000

        field_matches = self._evaluate_fields(
            ground_truth=gt_dict,
            extracted=self._to_field_dict(result),
            field_comparators=field_comparators,
            result=result,
        )

        evaluation = self._build_evaluation(
            test_id=test_id,
            extraction_success=result.success,
            field_matches=field_matches,
            latency_ms=latency_ms,
        )
        self._evaluations.append(evaluation)
        return evaluation

    def evaluate_batch(
        self,
        test_cases: list[ReceiptTestCase],
        field_comparators: dict[str, FieldComparator] | None = None,
    ) -> list[ExtractionEvaluation]:
        """Evaluate multiple labelled transcripts.

        Args:
            test_cases: Test cases to evaluate.
            field_comparators: Override comparators for specific fields.

        Returns:
            List of ExtractionEvaluation results, in input order.
        """
        return [
            self.evaluate(
                raw_text=test_case.raw_text,
                ground_truth=test_case.ground_truth,
                test_id=test_case.id,
                field_comparators=field_comparators,
            )
            for test_case in test_cases
        ]

    def evaluate_without_extraction(
        self,
        extracted_data: dict[str, Any] | ExtractionResult,
        ground_truth: dict[str, Any] | ExtractionResult,
        test_id: str | None = None,
        field_comparators: dict[str, FieldComparator] | None = None,
    ) -> ExtractionEvaluation:
        """Evaluate an already computed extraction against ground truth.

        Useful for scoring results stored by the web layer without running
        the extractor again.

        Args:
            extracted_data: ExtractionResult or a dict of receipt fields.
            ground_truth: Expected values.
            test_id: Optional unique identifier.
            field_comparators: Override comparators for specific fields.

        Returns:
            ExtractionEvaluation with metrics (no latency).
        """
        if test_id is None:
            test_id = str(uuid.uuid4())[:8]

        result = extracted_data if isinstance(extracted_data, ExtractionResult) else None
        field_matches = self._evaluate_fields(
            ground_truth=self._to_field_dict(ground_truth),
            extracted=self._to_field_dict(extracted_data),
            field_comparators=field_comparators,
            result=result,
        )

        evaluation = self._build_evaluation(
            test_id=test_id,
            extraction_success=result.success if result is not None else True,
            field_matches=field_matches,
        )
        self._evaluations.append(evaluation)
        return evaluation

    def _to_field_dict(self, data: dict[str, Any] | ExtractionResult) -> dict[str, Any]:
        """Normalize ground truth or extracted data to a receipt field dict."""
        if isinstance(data, ExtractionResult):
            return {name: getattr(data, name) for name in RECEIPT_FIELDS}

        fields = dict(data)
        unknown = sorted(set(fields) - set(RECEIPT_FIELDS))
        if unknown:
            raise ConfigurationError(
                f"Unknown receipt field(s): {', '.join(unknown)}. "
                f"Expected a subset of: {', '.join(RECEIPT_FIELDS)}"
            )
        return fields

    def _evaluate_fields(
        self,
        ground_truth: dict[str, Any],
        extracted: dict[str, Any],
        field_comparators: dict[str, FieldComparator] | None = None,
        result: ExtractionResult | None = None,
    ) -> list[FieldMatch]:
        """Compare each labelled field against the extracted value."""
        overrides = field_comparators or {}
        matches = []
        for name, expected in ground_truth.items():
            provenance = result.get_field_result(name) if result is not None else None
            matches.append(
                self._match_field(
                    name,
                    expected,
                    extracted.get(name),
                    self._get_comparator(name, expected, overrides),
                    strategy=provenance.strategy if provenance is not None else None,
                )
            )
        return matches

    @staticmethod
    def _match_field(
        name: str,
        expected: Any,
        actual: Any,
        comparator: FieldComparator,
        strategy: str | None = None,
    ) -> FieldMatch:
        """Classify one field into a confusion-matrix cell.

        A label of None asserts the field must stay empty. A wrong value is
        a false negative, the same as a missing one.
        """
        if expected is None:
            comparison = ComparisonResult(
                matched=actual is None,
                score=1.0 if actual is None else 0.0,
                reasoning="Correctly empty" if actual is None else f"Unexpected value {actual!r}",
            )
            status = MatchStatus.TRUE_NEGATIVE if actual is None else MatchStatus.FALSE_POSITIVE
        elif actual is None:
            comparison = ComparisonResult(matched=False, score=0.0, reasoning="Not extracted")
            status = MatchStatus.FALSE_NEGATIVE
        else:
            comparison = comparator.compare(expected, actual)
            status = MatchStatus.TRUE_POSITIVE if comparison.matched else MatchStatus.FALSE_NEGATIVE

        return FieldMatch(
            field_name=name,
            status=status,
            matched=comparison.matched,
            score=comparison.score,
            expected=expected,
            actual=actual,
            comparator_type=type(comparator).__name__,
            threshold_used=comparison.threshold_used,
            strategy=strategy if actual is not None else None,
            reasoning=comparison.reasoning,
        )

    def _get_comparator(
        self,
        field_name: str,
        expected_value: Any,
        override_comparators: dict[str, FieldComparator],
    ) -> FieldComparator:
        """Pick the comparator: per-call override, then default, then by value type."""
        comparator = override_comparators.get(field_name) or self.default_comparators.get(field_name)
        if comparator is not None:
            return comparator
        if not self.auto_select_comparators:
            return ExactComparator()
        return get_default_comparator(
            expected_value,
            string_threshold=self.default_string_threshold,
            numeric_threshold=self.default_numeric_tolerance,
        )

    def _build_evaluation(
        self,
        test_id: str,
        extraction_success: bool,
        field_matches: list[FieldMatch],
        latency_ms: float | None = None,
    ) -> ExtractionEvaluation:
        return ExtractionEvaluation(
            test_id=test_id,
            locale_name=self.extractor.locale.name,
            extraction_success=extraction_success,
            field_matches=field_matches,
            latency_ms=latency_ms,
            **summarize_matches(field_matches),
        )

    def compute_aggregate_metrics(
        self,
        evaluations: list[ExtractionEvaluation] | None = None,
    ) -> EvaluationMetrics:
        """Aggregate metrics over the given evaluations, or the stored ones."""
        return aggregate_evaluations(self._evaluations if evaluations is None else evaluations)

    def clear_evaluations(self) -> None:
        self._evaluations.clear()

    @property
    def evaluations(self) -> list[ExtractionEvaluation]:
        """Copy of the evaluations recorded so far."""
        return list(self._evaluations)


def compute_binary_metrics(tp: int, fp: int, fn: int, tn: int) -> dict[str, float]:
    """Precision, recall, F1 and accuracy from confusion counts.

    Every rate is 0.0 when its denominator is zero.
    """
    predicted, relevant, total = tp + fp, tp + fn, tp + fp + fn + tn
    precision = tp / predicted if predicted else 0.0
    recall = tp / relevant if relevant else 0.0
    return {
        "precision": precision,
        "recall": recall,
        "f1_score": (
            2 * precision * recall / (precision + recall) if precision + recall else 0.0
        ),
        "accuracy": (tp + tn) / total if total else 0.0,
    }


def summarize_matches(matches: list[FieldMatch]) -> dict[str, Any]:
    """Confusion counts, rates and score range for a group of field matches.

    The keys are the fields of `ConfusionMetrics`.
    """
    counts = Counter(m.status for m in matches)
    tp, fp, fn, tn = (
        counts[MatchStatus.TRUE_POSITIVE],
        counts[MatchStatus.FALSE_POSITIVE],
        counts[MatchStatus.FALSE_NEGATIVE],
        counts[MatchStatus.TRUE_NEGATIVE],
    )
    scores = [m.score for m in matches] or [0.0]
    return {
        "true_positives": tp,
        "false_positives": fp,
        "false_negatives": fn,
        "true_negatives": tn,
        **compute_binary_metrics(tp, fp, fn, tn),
        "mean_score": statistics.fmean(scores),
        "min_score": min(scores),
        "max_score": max(scores),
    }


def _percentile(sorted_values: list[float], fraction: float) -> float:
    if not sorted_values:
        return 0.0
    return sorted_values[min(len(sorted_values) - 1, int(len(sorted_values) * fraction))]


def aggregate_evaluations(evaluations: list[ExtractionEvaluation]) -> EvaluationMetrics:
    """Compute micro/macro metrics, score statistics and latency percentiles.

    Args:
        evaluations: Per-receipt evaluations, typically from one batch.

    Returns:
        EvaluationMetrics. Micro figures pool every field match; macro
        figures average the per-receipt rates.
    """
    if not evaluations:
        return EvaluationMetrics(total_evaluations=0, total_fields=0)

    all_matches = [m for e in evaluations for m in e.field_matches]
    pooled = summarize_matches(all_matches)
    scores = [m.score for m in all_matches]
    latencies = sorted(e.latency_ms for e in evaluations if e.latency_ms is not None)

    return EvaluationMetrics(
        total_evaluations=len(evaluations),
        total_fields=len(all_matches),
        successful_extractions=sum(e.extraction_success for e in evaluations),
        failed_extractions=sum(not e.extraction_success for e in evaluations),
        total_true_positives=pooled["true_positives"],
        total_false_positives=pooled["false_positives"],
        total_false_negatives=pooled["false_negatives"],
        total_true_negatives=pooled["true_negatives"],
        micro_precision=pooled["precision"],
        micro_recall=pooled["recall"],
        micro_f1=pooled["f1_score"],
        micro_accuracy=pooled["accuracy"],
        macro_precision=statistics.fmean(e.precision for e in evaluations),
        macro_recall=statistics.fmean(e.recall for e in evaluations),
        macro_f1=statistics.fmean(e.f1_score for e in evaluations),
        macro_accuracy=statistics.fmean(e.accuracy for e in evaluations),
        mean_score=pooled["mean_score"],
        median_score=statistics.median(scores) if scores else 0.0,
        min_score=pooled["min_score"],
        max_score=pooled["max_score"],
        std_score=statistics.stdev(scores) if len(scores) > 1 else None,
        field_metrics=_field_metrics(all_matches),
        strategy_counts=dict(Counter(m.strategy for m in all_matches if m.strategy)),
        latency_mean_ms=statistics.fmean(latencies) if latencies else 0.0,
        latency_median_ms=statistics.median(latencies) if latencies else 0.0,
        latency_p95_ms=_percentile(latencies, 0.95),
        latency_p99_ms=_percentile(latencies, 0.99),
    )


def _field_metrics(matches: list[FieldMatch]) -> dict[str, FieldEvaluationMetrics]:
    by_field: dict[str, list[FieldMatch]] = {}
    for match in matches:
        by_field.setdefault(match.field_name, []).append(match)

    return {
        name: FieldEvaluationMetrics(
            field_name=name,
            evaluation_count=len(group),
            std_score=(
                statistics.stdev([m.score for m in group]) if len(group) > 1 else None
            ),
            **summarize_matches(group),
        )
        for name, group in by_field.items()
    }
