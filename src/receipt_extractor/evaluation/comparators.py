"""Comparators that score an extracted receipt field against its label.

A comparator returns a `ComparisonResult` carrying a pass/fail decision,
used for the confusion matrix, and a similarity score in [0, 1], used for
the averaged score metrics. The extractor emits every field as a string
(``"450"``, ``"2024-07-28"``), so each comparator reads strings as well as
native values.
"""

import unicodedata
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Protocol, runtime_checkable


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of one expected/actual comparison.

    Attributes:
        matched: Whether the actual value counts as correct
        score: Similarity between 0.0 (unrelated) and 1.0 (identical)
        threshold_used: Threshold the decision was taken against, if any
        reasoning: Short explanation shown in reports
    """

    matched: bool
    score: float
    threshold_used: float | None = None
    reasoning: str | None = None

    def __post_init__(self) -> None:
        if self.score < 0.0 or self.score > 1.0:
            raise ValueError(f"Score must be between 0.0 and 1.0, got {self.score}")


@runtime_checkable
class FieldComparator(Protocol):
    """Anything with a ``compare(expected, actual)`` method."""

    def compare(self, expected: Any, actual: Any) -> ComparisonResult: ...


class ExactComparator:
    """Strict equality, types included (``450`` does not equal ``"450"``)."""

    def compare(self, expected: Any, actual: Any) -> ComparisonResult:
        if expected == actual:
            return ComparisonResult(matched=True, score=1.0, reasoning="Identical")
        return ComparisonResult(
            matched=False,
            score=0.0,
            reasoning=f"{actual!r} is not {expected!r}",
        )


def parse_yen(value: Any) -> float | None:
    """Read a label or extracted amount as a number.

    Accepts ints, floats and strings such as ``"1,200"`` or ``"¥450"``.
    Booleans are rejected so that ``True`` never passes for ``1``.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = unicodedata.normalize("NFKC", str(value)).strip()
    text = text.lstrip("¥\\").rstrip("円").replace(",", "")
    try:
        return float(text)
    except ValueError:
        return None


class NumericComparator:
    """Compares amounts within a tolerance.

    In ``"absolute"`` mode the tolerance is in yen and the score falls
    linearly to zero at twice the tolerance. In ``"relative"`` mode the
    tolerance is a fraction of the expected amount and the score is one
    minus the relative error.

    Example:
        ```python
        to_the_yen = NumericComparator(threshold=0, mode="absolute")
        to_the_yen.compare(450, "450").matched  # True

        NumericComparator(threshold=0.05).compare(1000, "1030").matched  # True
        ```
    """

    def __init__(
        self,
        threshold: float = 0.01,
        mode: Literal["relative", "absolute"] = "relative",
    ) -> None:
        """Initialize numeric comparator.

        Args:
            threshold: Largest difference still counted as a match, a
                fraction in relative mode and yen in absolute mode
            mode: "relative" or "absolute"
        """
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")
        self.threshold = threshold
        self.mode = mode

    def compare(self, expected: Any, actual: Any) -> ComparisonResult:
        want = parse_yen(expected)
        got = parse_yen(actual)
        if want is None or got is None:
            return ComparisonResult(
                matched=False,
                score=0.0,
                reasoning=f"Non-numeric value (expected {expected!r}, actual {actual!r})",
            )

        if self.mode == "absolute":
            error = abs(got - want)
            score = 1.0 - error / (2 * self.threshold) if self.threshold else float(error == 0)
            detail = f"off by {error:g}"
        else:
            error = abs(got - want) / abs(want) if want else abs(got)
            score = 1.0 - error
            detail = f"off by {error:.1%}"

        matched = error <= self.threshold
        return ComparisonResult(
            matched=matched,
            score=min(1.0, max(0.0, score)),
            threshold_used=self.threshold,
            reasoning="Same amount" if error == 0 else detail,
        )


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    row = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        diagonal, row[0] = row[0], i
        for j, char_b in enumerate(b, start=1):
            diagonal, row[j] = row[j], min(
                row[j] + 1,
                row[j - 1] + 1,
                diagonal + (char_a != char_b),
            )
    return row[-1]


class StringComparator:
    """Fuzzy match for store names.

    OCR regularly misreads one character of a store name (ッ as ツ, ー as
    一), so the decision uses normalized Levenshtein similarity rather than
    equality. Both sides are NFKC-normalized first.

    Example:
        ```python
        comparator = StringComparator(threshold=0.8)
        comparator.compare("スーパーマーケット田中", "スーパーマーケツト田中").matched  # True
        ```
    """

    def __init__(
        self,
        threshold: float = 0.9,
        case_sensitive: bool = False,
        strip_whitespace: bool = True,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self.threshold = threshold
        self.case_sensitive = case_sensitive
        self.strip_whitespace = strip_whitespace

    def _prepare(self, value: Any) -> str:
        text = "" if value is None else unicodedata.normalize("NFKC", str(value))
        if self.strip_whitespace:
            text = text.strip()
        return text if self.case_sensitive else text.casefold()

    def similarity(self, expected: Any, actual: Any) -> float:
        """Return 1 minus the edit distance over the longer length."""
        left, right = self._prepare(expected), self._prepare(actual)
        if left == right:
            return 1.0
        if not left or not right:
            return 0.0
        return 1.0 - edit_distance(left, right) / max(len(left), len(right))

    def compare(self, expected: Any, actual: Any) -> ComparisonResult:
        score = self.similarity(expected, actual)
        return ComparisonResult(
            matched=score >= self.threshold,
            score=score,
            threshold_used=self.threshold,
            reasoning=f"Similarity {score:.0%}",
        )


class DateComparator:
    """Compares dates written in any of the accepted notations.

    Dates on the same day match. Other dates score by distance, reaching
    zero at ``max_days_diff`` days apart.
    """

    DEFAULT_FORMATS = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%Y.%m.%d",
        "%Y年%m月%d日",
        "%m/%d/%Y",
        "%Y%m%d",
    ]

    def __init__(self, formats: list[str] | None = None, max_days_diff: int = 30) -> None:
        if max_days_diff < 1:
            raise ValueError(f"max_days_diff must be positive, got {max_days_diff}")
        self.formats = formats or self.DEFAULT_FORMATS
        self.max_days_diff = max_days_diff

    def to_date(self, value: Any) -> date | None:
        """Parse a value into a date, or None."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if value is None:
            return None
        text = unicodedata.normalize("NFKC", str(value)).strip()
        for fmt in self.formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                pass
        return None

    def compare(self, expected: Any, actual: Any) -> ComparisonResult:
        want = self.to_date(expected)
        if want is None:
            return ComparisonResult(
                matched=False, score=0.0, reasoning=f"Could not parse expected date {expected!r}"
            )
        got = self.to_date(actual)
        if got is None:
            return ComparisonResult(
                matched=False, score=0.0, reasoning=f"Could not parse actual date {actual!r}"
            )

        days = abs((want - got).days)
        return ComparisonResult(
            matched=days == 0,
            score=max(0.0, 1.0 - days / self.max_days_diff),
            reasoning="Same day" if days == 0 else f"{days} day(s) apart",
        )


def get_default_comparator(
    value: Any,
    string_threshold: float = 0.9,
    numeric_threshold: float = 0.01,
) -> FieldComparator:
    """Choose a comparator from the type of the expected value.

    Args:
        value: Expected value from the labels
        string_threshold: Similarity threshold for strings
        numeric_threshold: Relative tolerance for numbers

    Returns:
        A comparator suited to the value
    """
    if isinstance(value, bool):
        return ExactComparator()
    if isinstance(value, (int, float)):
        return NumericComparator(threshold=numeric_threshold)
    if isinstance(value, date):
        return DateComparator()
    if isinstance(value, str):
        return StringComparator(threshold=string_threshold)
    return ExactComparator()


def receipt_field_comparators(store_name_threshold: float = 0.8) -> dict[str, FieldComparator]:
    """Comparators for the three receipt fields.

    Amounts must match to the yen, dates must be the same day, store names
    are matched fuzzily.
    """
    return {
        "amount": NumericComparator(threshold=0, mode="absolute"),
        "store_name": StringComparator(threshold=store_name_threshold),
        "date": DateComparator(),
    }
