"""Tests for the evaluation module."""

import json
from datetime import date

import pytest

from receipt_extractor import ExtractionResult, ReceiptInfoExtractor
from receipt_extractor.evaluation import (
    # Comparators
    ComparisonResult,
    DateComparator,
    EvaluationReporter,
    ExactComparator,
    # Evaluator
    ExtractionEvaluator,
    # Types
    MatchStatus,
    NumericComparator,
    ReceiptTestCase,
    StringComparator,
    aggregate_evaluations,
    get_default_comparator,
    receipt_field_comparators,
)
from receipt_extractor.evaluation.comparators import edit_distance, parse_yen

TANAKA = "スーパーマーケット田中\n2024年7月28日\nお茶 150円\nパン 300円\n合計\n¥450"
LAWSON = "ローソン新宿店\n2024/08/01 18:05\n合計 ¥1,080\nお預り ¥2,000\nお釣り ¥920"

# ============================================================================
# ComparisonResult Tests
# ============================================================================


class TestComparisonResult:
    """Tests for ComparisonResult dataclass."""

    def test_valid_result(self):
        """Test creating a valid comparison result."""
        result = ComparisonResult(matched=True, score=0.95, reasoning="Close match")
        assert result.matched is True
        assert result.score == 0.95

    def test_score_validation(self):
        """Test that score must be between 0 and 1."""
        with pytest.raises(ValueError, match="Score must be between"):
            ComparisonResult(matched=True, score=1.5)

        with pytest.raises(ValueError, match="Score must be between"):
            ComparisonResult(matched=False, score=-0.1)


# ============================================================================
# Comparator Tests
# ============================================================================


class TestExactComparator:
    """Tests for ExactComparator."""

    def test_match(self):
        """Test exact match."""
        result = ExactComparator().compare("450", "450")
        assert result.matched is True
        assert result.score == 1.0

    def test_mismatch(self):
        """Test mismatch, including type differences."""
        result = ExactComparator().compare(450, "450")
        assert result.matched is False
        assert result.score == 0.0


class TestNumericComparator:
    """Tests for NumericComparator."""

    def test_numeric_strings(self):
        """Test amounts given as strings on either side."""
        comp = NumericComparator(threshold=0, mode="absolute")

        assert comp.compare(450, "450").matched is True
        assert comp.compare("1,200", "1200").matched is True

    def test_exact_amount_required(self):
        """Test a one-yen difference fails an absolute zero threshold."""
        result = NumericComparator(threshold=0, mode="absolute").compare("450", "451")

        assert result.matched is False
        assert result.score == 0.0

    def test_relative_tolerance(self):
        """Test relative mode."""
        comp = NumericComparator(threshold=0.05)

        assert comp.compare(1000, "1030").matched is True
        result = comp.compare(1000, "1100")
        assert result.matched is False
        assert result.score == pytest.approx(0.9)

    def test_absolute_score_decays(self):
        """Test the absolute-mode score."""
        result = NumericComparator(threshold=10, mode="absolute").compare(100, 105)

        assert result.matched is True
        assert result.score == pytest.approx(0.75)

    def test_non_numeric(self):
        """Test values that cannot be read as numbers."""
        result = NumericComparator().compare("450", "abc")
        assert result.matched is False
        assert "Non-numeric" in result.reasoning

    def test_booleans_not_numbers(self):
        """Test booleans are not treated as 0/1."""
        assert NumericComparator().compare(1, True).matched is False

    def test_negative_threshold_rejected(self):
        """Test threshold validation."""
        with pytest.raises(ValueError, match="non-negative"):
            NumericComparator(threshold=-1)


class TestStringComparator:
    """Tests for StringComparator."""

    def test_identical(self):
        """Test identical store names."""
        result = StringComparator().compare("ローソン新宿店", "ローソン新宿店")
        assert result.matched is True
        assert result.score == 1.0

    def test_ocr_noise_tolerated(self):
        """Test a single misread character at the 0.8 threshold."""
        result = StringComparator(threshold=0.8).compare(
            "スーパーマーケット田中", "スーパーマーケツト田中"
        )
        assert result.matched is True
        assert result.score == pytest.approx(10 / 11)

    def test_different_names(self):
        """Test unrelated names do not match."""
        assert StringComparator(threshold=0.8).compare("ローソン", "ファミリーマート").matched is False

    def test_case_and_whitespace(self):
        """Test normalization options."""
        assert StringComparator().compare(" Corner Cafe ", "corner cafe").matched is True
        assert (
            StringComparator(case_sensitive=True).compare("Corner Cafe", "corner cafe").score
            < 1.0
        )

    def test_empty_strings(self):
        """Test one empty side scores zero."""
        assert StringComparator().compare("ローソン", "").score == 0.0

    def test_threshold_validation(self):
        """Test threshold must be in [0, 1]."""
        with pytest.raises(ValueError):
            StringComparator(threshold=1.5)


class TestDateComparator:
    """Tests for DateComparator."""

    def test_formats_normalized(self):
        """Test different notations of the same day."""
        comp = DateComparator()

        assert comp.compare("2024-07-28", "2024/07/28").matched is True
        assert comp.compare("2024年07月28日", "2024-07-28").matched is True
        assert comp.compare(date(2024, 7, 28), "2024-07-28").matched is True

    def test_days_apart(self):
        """Test partial score for nearby dates."""
        result = DateComparator(max_days_diff=10).compare("2024-07-28", "2024-07-30")

        assert result.matched is False
        assert result.score == pytest.approx(0.8)

    def test_unparseable(self):
        """Test unparseable values."""
        result = DateComparator().compare("2024-07-28", "yesterday")
        assert result.matched is False
        assert "Could not parse actual" in result.reasoning

    def test_max_days_validation(self):
        """Test max_days_diff must be positive."""
        with pytest.raises(ValueError):
            DateComparator(max_days_diff=0)


class TestHelpers:
    """Tests for the amount parser and edit distance."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (450, 450.0),
            ("1,200", 1200.0),
            ("¥450", 450.0),
            ("１，２００円", 1200.0),
            ("abc", None),
            (None, None),
        ],
    )
    def test_parse_yen(self, value, expected):
        """Test the amount notations read as numbers."""
        assert parse_yen(value) == expected

    @pytest.mark.parametrize(
        "a,b,distance",
        [("", "", 0), ("ローソン", "", 4), ("kitten", "sitting", 3), ("田中", "田中", 0)],
    )
    def test_edit_distance(self, a, b, distance):
        """Test Levenshtein distance in both argument orders."""
        assert edit_distance(a, b) == distance
        assert edit_distance(b, a) == distance


class TestDefaultComparators:
    """Tests for comparator selection helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (True, ExactComparator),
            (450, NumericComparator),
            (450.0, NumericComparator),
            (date(2024, 7, 28), DateComparator),
            ("ローソン", StringComparator),
            (None, ExactComparator),
        ],
    )
    def test_get_default_comparator(self, value, expected):
        """Test type-based selection."""
        assert isinstance(get_default_comparator(value), expected)

    def test_receipt_field_comparators(self):
        """Test the per-field defaults."""
        comparators = receipt_field_comparators()

        assert isinstance(comparators["amount"], NumericComparator)
        assert comparators["amount"].threshold == 0
        assert comparators["store_name"].threshold == 0.8
        assert isinstance(comparators["date"], DateComparator)


# ============================================================================
# Evaluator Tests
# ============================================================================


class TestExtractionEvaluator:
    """Tests for ExtractionEvaluator."""

    @pytest.fixture
    def evaluator(self) -> ExtractionEvaluator:
        return ExtractionEvaluator(ReceiptInfoExtractor())

    def test_perfect_extraction(self, evaluator):
        """Test all fields correct."""
        evaluation = evaluator.evaluate(
            TANAKA,
            {"amount": "450", "store_name": "スーパーマーケット田中", "date": "2024-07-28"},
            test_id="tanaka",
        )

        assert evaluation.test_id == "tanaka"
        assert evaluation.locale_name == "ja_jp"
        assert evaluation.extraction_success is True
        assert evaluation.true_positives == 3
        assert evaluation.precision == 1.0
        assert evaluation.recall == 1.0
        assert evaluation.f1_score == 1.0
        assert evaluation.mean_score == 1.0
        assert evaluation.latency_ms is not None

    def test_field_match_records_strategy(self, evaluator):
        """Test provenance flows into the field match."""
        evaluation = evaluator.evaluate(TANAKA, {"amount": "450", "date": "2024-07-28"})

        assert evaluation.get_field_match("amount").strategy == "total_keyword"
        assert evaluation.get_field_match("date").strategy == "ymd"
        assert evaluation.get_field_match("store_name") is None

    def test_wrong_amount_is_false_negative(self, evaluator):
        """Test a wrong value counts against recall."""
        evaluation = evaluator.evaluate(TANAKA, {"amount": "500"})
        match = evaluation.get_field_match("amount")

        assert match.status == MatchStatus.FALSE_NEGATIVE
        assert match.actual == "450"
        assert evaluation.recall == 0.0

    def test_missing_value_is_false_negative(self, evaluator):
        """Test a field the extractor could not find."""
        evaluation = evaluator.evaluate("ストアA\n合計 ¥500", {"date": "2024-07-28"})
        match = evaluation.get_field_match("date")

        assert match.status == MatchStatus.FALSE_NEGATIVE
        assert match.actual is None

    def test_expected_none(self, evaluator):
        """Test None labels produce true negatives and false positives."""
        evaluation = evaluator.evaluate(TANAKA, {"amount": None, "date": None})

        assert evaluation.get_field_match("amount").status == MatchStatus.FALSE_POSITIVE
        assert evaluation.get_field_match("date").status == MatchStatus.FALSE_POSITIVE

        evaluation = evaluator.evaluate("ありがとうございました", {"amount": None})
        assert evaluation.get_field_match("amount").status == MatchStatus.TRUE_NEGATIVE
        assert evaluation.accuracy == 1.0

    def test_no_text_transcript(self, evaluator):
        """Test an empty transcript is recorded as a failed extraction."""
        evaluation = evaluator.evaluate("", {"amount": "450"})

        assert evaluation.extraction_success is False
        assert evaluation.false_negatives == 1

    def test_ground_truth_as_result(self, evaluator):
        """Test comparing against a reference ExtractionResult."""
        reference = ExtractionResult(amount="450", store_name="スーパーマーケット田中", date="2024-07-28")
        evaluation = evaluator.evaluate(TANAKA, reference)

        assert evaluation.true_positives == 3

    def test_field_comparator_override(self, evaluator):
        """Test per-call comparator overrides."""
        evaluation = evaluator.evaluate(
            TANAKA,
            {"amount": "460"},
            field_comparators={"amount": NumericComparator(threshold=0.05)},
        )
        assert evaluation.get_field_match("amount").matched is True

    def test_evaluate_batch(self, evaluator):
        """Test evaluating several labelled transcripts."""
        cases = [
            ReceiptTestCase(id="tanaka", raw_text=TANAKA, ground_truth={"amount": "450"}),
            ReceiptTestCase(
                id="lawson",
                raw_text=LAWSON,
                ground_truth={"amount": "1080", "store_name": "ローソン新宿店", "date": "2024-08-01"},
            ),
        ]
        results = evaluator.evaluate_batch(cases)

        assert [r.test_id for r in results] == ["tanaka", "lawson"]
        assert all(r.f1_score == 1.0 for r in results)
        assert len(evaluator.evaluations) == 2

    def test_evaluate_without_extraction(self, evaluator):
        """Test scoring stored values without running the extractor."""
        evaluation = evaluator.evaluate_without_extraction(
            {"amount": "1,080", "store_name": "ローソン新宿"},
            {"amount": "1080", "store_name": "ローソン新宿店"},
        )

        assert evaluation.true_positives == 2
        assert evaluation.latency_ms is None

    def test_clear_evaluations(self, evaluator):
        """Test stored evaluations can be cleared."""
        evaluator.evaluate(TANAKA, {"amount": "450"})
        evaluator.clear_evaluations()

        assert evaluator.evaluations == []


class TestAggregateMetrics:
    """Tests for aggregate metrics."""

    @pytest.fixture
    def evaluator(self) -> ExtractionEvaluator:
        evaluator = ExtractionEvaluator()
        evaluator.evaluate(
            TANAKA,
            {"amount": "450", "store_name": "スーパーマーケット田中", "date": "2024-07-28"},
            test_id="tanaka",
        )
        evaluator.evaluate(
            LAWSON,
            {"amount": "2000", "store_name": "ローソン新宿店", "date": "2024-08-01"},
            test_id="lawson",
        )
        return evaluator

    def test_micro_and_macro(self, evaluator):
        """Test pooled and averaged metrics."""
        metrics = evaluator.compute_aggregate_metrics()

        assert metrics.total_evaluations == 2
        assert metrics.total_fields == 6
        assert metrics.total_true_positives == 5
        assert metrics.total_false_negatives == 1
        assert metrics.micro_precision == 1.0
        assert metrics.micro_recall == pytest.approx(5 / 6)
        assert metrics.macro_recall == pytest.approx((1.0 + 2 / 3) / 2)

    def test_field_metrics(self, evaluator):
        """Test per-field breakdown."""
        metrics = evaluator.compute_aggregate_metrics()

        assert metrics.field_metrics["amount"].accuracy == 0.5
        assert metrics.field_metrics["store_name"].accuracy == 1.0
        assert metrics.field_metrics["date"].evaluation_count == 2

    def test_strategy_counts(self, evaluator):
        """Test strategy usage is tallied."""
        metrics = evaluator.compute_aggregate_metrics()

        assert metrics.strategy_counts["store_filter"] == 2
        assert metrics.strategy_counts["total_keyword"] == 1
        assert metrics.strategy_counts["same_line"] == 1

    def test_latency(self, evaluator):
        """Test latency statistics are populated."""
        assert evaluator.compute_aggregate_metrics().latency_mean_ms > 0

    def test_empty(self):
        """Test metrics for no evaluations."""
        metrics = aggregate_evaluations([])

        assert metrics.total_evaluations == 0
        assert metrics.micro_f1 == 0.0


# ============================================================================
# Reporter Tests
# ============================================================================


class TestEvaluationReporter:
    """Tests for EvaluationReporter."""

    @pytest.fixture
    def reporter(self) -> EvaluationReporter:
        evaluator = ExtractionEvaluator()
        evaluator.evaluate(
            TANAKA,
            {"amount": "450", "store_name": "スーパーマーケット田中", "date": "2024-07-28"},
            test_id="tanaka",
        )
        evaluator.evaluate(LAWSON, {"amount": "2000"}, test_id="lawson")
        return EvaluationReporter(evaluator.evaluations, evaluator.compute_aggregate_metrics())

    def test_metrics_computed_when_missing(self, reporter):
        """Test the reporter can aggregate on its own."""
        standalone = EvaluationReporter(reporter.evaluations)
        assert standalone.metrics.total_true_positives == reporter.metrics.total_true_positives

    def test_to_text(self, reporter):
        """Test plain text report content."""
        text = reporter.to_text()

        assert "Receipt Extraction Evaluation Report" in text
        assert "PER-FIELD METRICS" in text
        assert "tanaka" in text
        assert "via total_keyword" in text

    def test_to_text_without_details(self, reporter):
        """Test the summary-only report."""
        text = reporter.to_text(include_details=False)

        assert "RECEIPT DETAILS" not in text
        assert "CONFUSION MATRIX" in text

    def test_to_markdown(self, reporter):
        """Test Markdown report content."""
        markdown = reporter.to_markdown()

        assert markdown.startswith("# Receipt Extraction Evaluation Report")
        assert "## Per-Field Metrics" in markdown
        assert "### ✅ tanaka" in markdown

    def test_to_json(self, reporter):
        """Test JSON report structure."""
        data = reporter.to_json()

        assert data["summary"]["total_evaluations"] == 2
        assert data["evaluations"][1]["field_matches"][0]["actual"] == "1080"
        assert set(data["field_metrics"]) == {"amount", "store_name", "date"}
        json.dumps(data)

    @pytest.mark.parametrize(
        "filename,marker",
        [
            ("report.json", '"title"'),
            ("report.md", "# Receipt Extraction Evaluation Report"),
            ("report.txt", "SUMMARY"),
        ],
    )
    def test_save_detects_format(self, reporter, tmp_path, filename, marker):
        """Test the output format follows the file extension."""
        path = tmp_path / "reports" / filename
        reporter.save(path)

        content = path.read_text(encoding="utf-8")
        assert marker in content
        assert "スーパーマーケット田中" in content

    def test_print_summary(self, reporter, capsys):
        """Test the console summary."""
        reporter.print_summary()

        captured = capsys.readouterr().out
        assert "Receipts:    2" in captured
        assert "amount" in captured
