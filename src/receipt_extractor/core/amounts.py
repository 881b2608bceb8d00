"""Amount token scanning and numeric parsing.

Three token shapes are recognised, in priority order:

- ``yen_prefix``: a currency glyph before the number (``¥1,200``, ``\\1,200``)
- ``yen_suffix``: a currency glyph after the number (``1,200円``)
- ``grouped``: a bare number with thousands separators (``1,200``, ``1.200``)

A lower-priority match overlapping a higher-priority one on the same line is
dropped, so ``¥1,200円`` yields a single candidate.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from receipt_extractor.core.config import ExtractionConfig
from receipt_extractor.core.locale import LocaleProfile
from receipt_extractor.results.types import AmountCandidate, AmountPattern

logger = logging.getLogger(__name__)

# Digits with optional "," or "." thousands groups and an optional 1-2 digit fraction
NUMBER = r"(?<![\d.,])(?:\d{1,3}(?:[,.]\d{3})+|\d+)(?:\.\d{1,2})?(?!\d)"
GROUPED_NUMBER = r"(?<![\d.,])\d{1,3}(?:[,.]\d{3})+(?:\.\d{1,2})?(?!\d)"

_DECIMAL_TAIL = re.compile(r"\.\d{1,2}$")
_DOT_GROUPED = re.compile(r"^\d{1,3}\.\d{3}$")

ALL_PATTERNS: tuple[AmountPattern, ...] = (
    AmountPattern.YEN_PREFIX,
    AmountPattern.YEN_SUFFIX,
    AmountPattern.GROUPED,
)
CURRENCY_PATTERNS: tuple[AmountPattern, ...] = (
    AmountPattern.YEN_PREFIX,
    AmountPattern.YEN_SUFFIX,
)


def interpret_amount(text: str) -> list[int]:
    """Return the possible integer readings of an amount token.

    The first reading treats ``,`` and ``.`` between 3-digit groups as
    thousands separators. A token such as ``1.980`` is ambiguous (OCR often
    renders the separator as a dot), so its decimal reading ``1`` follows.
    Fractional parts are dropped.

    Args:
        text: Token as matched, e.g. ``"1,980"``, ``"1.980"``, ``"450.00"``.

    Returns:
        Readings in order of preference; empty if the token holds no digits.
    """
    token = text.strip().replace("，", ",").replace("．", ".")
    token = _DECIMAL_TAIL.sub("", token)
    digits = re.sub(r"[,.]", "", token)
    if not digits.isdigit():
        return []

    readings = [int(digits)]
    if _DOT_GROUPED.match(token):
        decimal_reading = int(token.split(".", 1)[0])
        if decimal_reading not in readings:
            readings.append(decimal_reading)
    return readings


def parse_amount_text(text: str, config: ExtractionConfig | None = None) -> int | None:
    """Parse an amount token to an integer.

    Args:
        text: Token to parse.
        config: When given, only readings inside the plausibility window
            are accepted and the first such reading wins.

    Returns:
        The chosen reading, or None when nothing acceptable remains.
    """
    readings = interpret_amount(text)
    if config is None:
        return readings[0] if readings else None
    for value in readings:
        if config.is_plausible_amount(value):
            return value
    return None


class AmountScanner:
    """Finds amount-shaped tokens in normalized receipt lines.

    Regexes are compiled once from the locale's currency glyphs. Tokens
    whose every reading falls outside the config's plausibility window are
    discarded, so every returned candidate satisfies the window.
    """

    def __init__(self, locale: LocaleProfile, config: ExtractionConfig) -> None:
        self.locale = locale
        self.config = config
        self._patterns: dict[AmountPattern, re.Pattern[str]] = {}

        if locale.currency_prefixes:
            prefixes = "|".join(re.escape(p) for p in locale.currency_prefixes)
            self._patterns[AmountPattern.YEN_PREFIX] = re.compile(
                rf"(?:{prefixes})\s*({NUMBER})"
            )
        if locale.currency_suffixes:
            suffixes = "|".join(re.escape(s) for s in locale.currency_suffixes)
            self._patterns[AmountPattern.YEN_SUFFIX] = re.compile(
                rf"({NUMBER})\s*(?:{suffixes})"
            )
        self._patterns[AmountPattern.GROUPED] = re.compile(f"({GROUPED_NUMBER})")

    def scan_line(
        self,
        line: str,
        line_index: int,
        patterns: Sequence[AmountPattern] = ALL_PATTERNS,
    ) -> list[AmountCandidate]:
        """Collect candidates from a single line.

        Args:
            line: Normalized line text.
            line_index: Position of the line in the transcript.
            patterns: Token shapes to look for, highest priority first.

        Returns:
            Candidates in the order they were matched.
        """
        candidates: list[AmountCandidate] = []
        taken: list[tuple[int, int]] = []

        for pattern in patterns:
            regex = self._patterns.get(pattern)
            if regex is None:
                continue
            for match in regex.finditer(line):
                span = match.span(1)
                if any(span[0] < end and start < span[1] for start, end in taken):
                    continue
                taken.append(span)

                value = parse_amount_text(match.group(1), self.config)
                if value is None:
                    logger.debug(
                        "Line %d: token %r outside plausibility window [%d, %d]",
                        line_index,
                        match.group(1),
                        self.config.min_amount,
                        self.config.max_amount,
                    )
                    continue
                candidates.append(
                    AmountCandidate(
                        numeric_value=value,
                        original_text=match.group(0).strip(),
                        line_index=line_index,
                        pattern=pattern,
                    )
                )

        return candidates

    def scan_lines(
        self,
        lines: Sequence[str],
        indices: Iterable[int],
        patterns: Sequence[AmountPattern] = ALL_PATTERNS,
    ) -> list[AmountCandidate]:
        """Collect candidates from the given line indices."""
        candidates: list[AmountCandidate] = []
        for index in indices:
            candidates.extend(self.scan_line(lines[index], index, patterns))
        return candidates


def pick_largest(candidates: Sequence[AmountCandidate]) -> AmountCandidate | None:
    """Return the candidate with the largest value; earliest wins ties."""
    best: AmountCandidate | None = None
    for candidate in candidates:
        if best is None or candidate.numeric_value > best.numeric_value:
            best = candidate
    return best
