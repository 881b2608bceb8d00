"""Text, Markdown and JSON reports for receipt evaluations."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from receipt_extractor.evaluation.evaluator import aggregate_evaluations
from receipt_extractor.evaluation.types import (
    EvaluationMetrics,
    ExtractionEvaluation,
    FieldMatch,
)

RULE = "-" * 70
BANNER = "=" * 70

_SUMMARY_KEYS = ("total_evaluations", "total_fields", "successful_extractions", "failed_extractions")


def _text_section(title: str, rows: list[tuple[str, Any]]) -> list[str]:
    return ["", RULE, f"  {title}", RULE, *(f"  {label + ':':22}{value}" for label, value in rows)]


def _md_table(headers: list[str], rows: list[list[Any]]) -> list[str]:
    return [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
        *("| " + " | ".join(str(cell) for cell in row) + " |" for row in rows),
        "",
    ]


def _icon(match: FieldMatch) -> str:
    return "✓" if match.matched else "✗"


class EvaluationReporter:
    """Renders evaluation results as text, Markdown or JSON.

    Example:
        ```python
        evaluations = evaluator.evaluate_batch(test_cases)
        reporter = EvaluationReporter(evaluations)

        reporter.save("report.md")  # format follows the extension
        reporter.print_summary()
        ```
    """

    def __init__(
        self,
        evaluations: list[ExtractionEvaluation],
        metrics: EvaluationMetrics | None = None,
        title: str = "Receipt Extraction Evaluation Report",
    ) -> None:
        """Initialize the reporter.

        Args:
            evaluations: Per-receipt evaluations to report on.
            metrics: Aggregate metrics. Computed from ``evaluations`` if omitted.
            title: Heading of the report.
        """
        self.evaluations = evaluations
        self.title = title
        self.metrics = metrics if metrics is not None else aggregate_evaluations(evaluations)

    def _sorted_strategies(self) -> list[tuple[str, int]]:
        return sorted(self.metrics.strategy_counts.items(), key=lambda item: (-item[1], item[0]))

    def to_text(self, include_details: bool = True) -> str:
        """Render a plain text report.

        Args:
            include_details: Add per-field metrics and one block per receipt.
        """
        m = self.metrics
        lines = [BANNER, f"  {self.title}", BANNER, f"  Generated: {datetime.now().isoformat()}"]
        lines += _text_section(
            "SUMMARY",
            [
                ("Total Receipts", m.total_evaluations),
                ("Total Fields", m.total_fields),
                ("With Text", m.successful_extractions),
                ("No Text Detected", m.failed_extractions),
            ],
        )
        lines += _text_section(
            "BINARY METRICS (micro / macro)",
            [
                ("Precision", f"{m.micro_precision:.2%} / {m.macro_precision:.2%}"),
                ("Recall", f"{m.micro_recall:.2%} / {m.macro_recall:.2%}"),
                ("F1 Score", f"{m.micro_f1:.2%} / {m.macro_f1:.2%}"),
                ("Accuracy", f"{m.micro_accuracy:.2%} / {m.macro_accuracy:.2%}"),
            ],
        )
        lines += _text_section(
            "CONFUSION MATRIX",
            [
                ("True Positives", m.total_true_positives),
                ("False Positives", m.total_false_positives),
                ("False Negatives", m.total_false_negatives),
                ("True Negatives", m.total_true_negatives),
            ],
        )
        lines += _text_section(
            "SCORES",
            [
                ("Mean", f"{m.mean_score:.2%}"),
                ("Median", f"{m.median_score:.2%}"),
                ("Range", f"{m.min_score:.2%} - {m.max_score:.2%}"),
            ],
        )
        if m.latency_mean_ms > 0:
            lines += _text_section(
                "PERFORMANCE",
                [
                    ("Mean Latency", f"{m.latency_mean_ms:.3f} ms"),
                    ("Median Latency", f"{m.latency_median_ms:.3f} ms"),
                    ("P95 Latency", f"{m.latency_p95_ms:.3f} ms"),
                ],
            )
        if m.strategy_counts:
            lines += _text_section("STRATEGIES", self._sorted_strategies())

        if include_details:
            if m.field_metrics:
                lines += _text_section(
                    "PER-FIELD METRICS",
                    [
                        (name, f"acc {fm.accuracy:.0%}  P {fm.precision:.0%}  R {fm.recall:.0%}")
                        for name, fm in sorted(m.field_metrics.items())
                    ],
                )
            if self.evaluations:
                lines += ["", RULE, "  RECEIPT DETAILS", RULE]
                for evaluation in self.evaluations:
                    marker = "✓" if evaluation.extraction_success else "✗"
                    lines.append(f"\n  [{marker}] {evaluation.test_id} ({evaluation.locale_name})")
                    for match in evaluation.field_matches:
                        via = f" via {match.strategy}" if match.strategy else ""
                        lines.append(
                            f"      {_icon(match)} {match.field_name}: expected={match.expected!r} "
                            f"actual={match.actual!r} ({match.status.value}{via})"
                        )

        lines += ["", BANNER]
        return "\n".join(lines)

    def to_json(self) -> dict[str, Any]:
        """Return the report as a JSON-serializable dictionary."""
        metrics = self.metrics.model_dump(mode="json")
        summary = {key: metrics.pop(key) for key in _SUMMARY_KEYS}
        field_metrics = metrics.pop("field_metrics")
        strategy_counts = metrics.pop("strategy_counts")
        return {
            "title": self.title,
            "generated": datetime.now().isoformat(),
            "summary": summary,
            "metrics": metrics,
            "strategy_counts": strategy_counts,
            "field_metrics": field_metrics,
            "evaluations": [e.model_dump(mode="json") for e in self.evaluations],
        }

    def to_markdown(self, include_details: bool = True) -> str:
        """Render a Markdown report.

        Args:
            include_details: Add per-field metrics and one table per receipt.
        """
        m = self.metrics
        lines = [f"# {self.title}", "", f"*Generated: {datetime.now().isoformat()}*", ""]

        lines += ["## Summary", ""] + _md_table(
            ["Receipts", "Fields", "With Text", "No Text Detected"],
            [[m.total_evaluations, m.total_fields, m.successful_extractions, m.failed_extractions]],
        )
        lines += ["## Binary Metrics", ""] + _md_table(
            ["Metric", "Micro", "Macro"],
            [
                ["Precision", f"{m.micro_precision:.2%}", f"{m.macro_precision:.2%}"],
                ["Recall", f"{m.micro_recall:.2%}", f"{m.macro_recall:.2%}"],
                ["F1 Score", f"{m.micro_f1:.2%}", f"{m.macro_f1:.2%}"],
                ["Accuracy", f"{m.micro_accuracy:.2%}", f"{m.macro_accuracy:.2%}"],
            ],
        )
        lines += ["## Confusion Matrix", ""] + _md_table(
            ["", "Extracted", "Not extracted"],
            [
                ["**Labelled**", f"TP: {m.total_true_positives}", f"FN: {m.total_false_negatives}"],
                ["**Unlabelled**", f"FP: {m.total_false_positives}", f"TN: {m.total_true_negatives}"],
            ],
        )
        lines += ["## Scores", ""] + _md_table(
            ["Mean", "Median", "Min", "Max"],
            [[f"{s:.2%}" for s in (m.mean_score, m.median_score, m.min_score, m.max_score)]],
        )
        if m.strategy_counts:
            lines += ["## Strategies", ""] + _md_table(
                ["Strategy", "Count"], [list(item) for item in self._sorted_strategies()]
            )

        if include_details:
            if m.field_metrics:
                lines += ["## Per-Field Metrics", ""] + _md_table(
                    ["Field", "Accuracy", "Precision", "Recall", "F1", "Mean Score"],
                    [
                        [
                            name,
                            f"{fm.accuracy:.0%}",
                            f"{fm.precision:.0%}",
                            f"{fm.recall:.0%}",
                            f"{fm.f1_score:.0%}",
                            f"{fm.mean_score:.0%}",
                        ]
                        for name, fm in sorted(m.field_metrics.items())
                    ],
                )
            if self.evaluations:
                lines += ["## Receipt Details", ""]
                for evaluation in self.evaluations:
                    marker = "✅" if evaluation.extraction_success else "❌"
                    lines += [f"### {marker} {evaluation.test_id}", ""] + _md_table(
                        ["Field", "Match", "Expected", "Actual", "Strategy", "Reasoning"],
                        [
                            [
                                match.field_name,
                                _icon(match),
                                match.expected,
                                match.actual,
                                match.strategy or "",
                                (match.reasoning or "")[:50],
                            ]
                            for match in evaluation.field_matches
                        ],
                    )

        return "\n".join(lines)

    def save(
        self,
        path: str | Path,
        format: str = "auto",
        include_details: bool = True,
    ) -> None:
        """Write the report to a UTF-8 file.

        Args:
            path: Output file. Parent directories are created.
            format: "text", "json", "markdown" or "auto" (from the extension:
                ``.json``, ``.md``/``.markdown``, anything else is text).
            include_details: Passed to the text and Markdown renderers.
        """
        path = Path(path)
        if format == "auto":
            format = {".json": "json", ".md": "markdown", ".markdown": "markdown"}.get(
                path.suffix.lower(), "text"
            )

        if format == "json":
            content = json.dumps(self.to_json(), indent=2, ensure_ascii=False, default=str)
        elif format == "markdown":
            content = self.to_markdown(include_details=include_details)
        else:
            content = self.to_text(include_details=include_details)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def print_summary(self) -> None:
        """Print headline figures and per-field accuracy to stdout."""
        m = self.metrics
        print(f"\n{'=' * 50}\n  {self.title}\n{'=' * 50}")
        print(f"  Receipts:    {m.total_evaluations}")
        print(f"  Fields:      {m.total_fields}")
        print(f"  Micro F1:    {m.micro_f1:.2%}")
        print(f"  Accuracy:    {m.micro_accuracy:.2%}")
        print("  Per field:")
        for name, fm in sorted(m.field_metrics.items()):
            print(f"    {name:11}{fm.accuracy:.2%}")
        print(f"{'=' * 50}\n")
