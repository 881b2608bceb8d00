"""Main receipt extractor class."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Sequence
from functools import cached_property

from receipt_extractor.core.amounts import (
    ALL_PATTERNS,
    CURRENCY_PATTERNS,
    AmountScanner,
    pick_largest,
)
from receipt_extractor.core.config import ExtractionConfig
from receipt_extractor.core.locale import DatePattern, LocaleProfile
from receipt_extractor.results.types import (
    AmountCandidate,
    AmountPattern,
    ExtractionResult,
    ExtractionStatus,
    FieldResult,
)

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = "No text detected in OCR output"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def normalize_line(line: str) -> str:
    """Fold full-width digits, punctuation and currency glyphs to ASCII."""
    return unicodedata.normalize("NFKC", line)


class ReceiptInfoExtractor:
    """Rule-based extractor for receipt OCR transcripts.

    Reads the total amount, store name and transaction date out of a raw
    multi-line transcript. Extraction is a pure function of the input text,
    the locale tables and the config, so one instance can be shared across
    threads.

    Amount and date prefer None over a wrong guess. Store name prefers a
    guess over None and falls back to the first line.

    Example:
        ```python
        from receipt_extractor import ReceiptInfoExtractor

        extractor = ReceiptInfoExtractor()
        result = extractor.extract(ocr_text)
        print(result.amount, result.store_name, result.date)

        # Distinguish "OCR saw nothing" from "nothing parseable"
        result.raise_for_status()
        ```
    """

    def __init__(
        self,
        locale: LocaleProfile | None = None,
        config: ExtractionConfig | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            locale: Keyword tables to use. Defaults to the Japanese profile.
            config: Extraction limits. Defaults to ExtractionConfig().

        Raises:
            LocaleValidationError: If the locale cannot drive an extraction.
        """
        if locale is None:
            from receipt_extractor.locales.builtins import DEFAULT_LOCALE

            locale = DEFAULT_LOCALE

        for warning in locale.validate_locale():
            logger.debug("Locale '%s': %s", locale.name, warning)

        self.locale = locale
        self.config = config or ExtractionConfig()
        self._scanner = AmountScanner(self.locale, self.config)

    @cached_property
    def _date_regexes(self) -> list[tuple[DatePattern, re.Pattern[str]]]:
        return [
            (pattern, re.compile(self.locale.expand_date_pattern(pattern)))
            for pattern in self.locale.date_patterns
        ]

    @cached_property
    def _store_reject_regexes(self) -> list[re.Pattern[str]]:
        return [re.compile(pattern) for pattern in self.locale.store_reject_patterns]

    # =========================================================================
    # Public API
    # =========================================================================

    def extract(self, raw_text: str) -> ExtractionResult:
        """Extract total amount, store name and date from a transcript.

        Args:
            raw_text: Full OCR transcript, newline separated.

        Returns:
            ExtractionResult. Fields that could not be found are None. An
            empty or whitespace-only transcript yields a result with
            status ``no_text_detected``; this method never raises for it.
        """
        lines = self.split_lines(raw_text or "")
        if not lines:
            logger.debug("Empty transcript, nothing to extract")
            return ExtractionResult(
                raw_text=raw_text or "",
                status=ExtractionStatus.NO_TEXT_DETECTED,
                error=NO_TEXT_MESSAGE,
            )

        normalized = [normalize_line(line) for line in lines]

        field_results: list[FieldResult] = []

        candidate, amount_strategy, considered = self._select_amount(normalized)
        amount = str(candidate.numeric_value) if candidate else None
        if candidate is not None:
            field_results.append(
                FieldResult(
                    name="amount",
                    value=amount,
                    source_text=lines[candidate.line_index],
                    line_index=candidate.line_index,
                    strategy=amount_strategy,
                )
            )

        store_name, store_index, store_strategy = self._select_store_name(lines, normalized)
        if store_name is not None:
            field_results.append(
                FieldResult(
                    name="store_name",
                    value=store_name,
                    source_text=lines[store_index] if store_index is not None else None,
                    line_index=store_index,
                    strategy=store_strategy,
                )
            )

        date, date_index, date_strategy = self._select_date(normalized)
        if date is not None:
            field_results.append(
                FieldResult(
                    name="date",
                    value=date,
                    source_text=lines[date_index] if date_index is not None else None,
                    line_index=date_index,
                    strategy=date_strategy,
                )
            )

        logger.debug(
            "Extracted amount=%s (%s) store_name=%r (%s) date=%s (%s)",
            amount,
            amount_strategy,
            store_name,
            store_strategy,
            date,
            date_strategy,
        )

        return ExtractionResult(
            amount=amount,
            store_name=store_name,
            date=date,
            raw_text=raw_text,
            field_results=field_results,
            amount_candidates=considered,
        )

    @staticmethod
    def split_lines(raw_text: str) -> list[str]:
        """Split a transcript into trimmed, non-empty lines, order preserved."""
        return [line.strip() for line in _LINE_BREAK.split(raw_text) if line.strip()]

    def extract_amount(self, lines: Sequence[str]) -> tuple[AmountCandidate | None, str | None]:
        """Choose the total amount from already split lines.

        Returns:
            The winning candidate and the strategy that produced it, or
            ``(None, None)`` when no plausible amount exists.
        """
        candidate, strategy, _ = self._select_amount([normalize_line(line) for line in lines])
        return candidate, strategy

    def extract_store_name(self, lines: Sequence[str]) -> tuple[str | None, int | None, str | None]:
        """Choose the store name from already split lines.

        Returns:
            Store name, index of its line, and strategy. Only None when
            there are no lines at all.
        """
        return self._select_store_name(lines, [normalize_line(line) for line in lines])

    def extract_date(self, lines: Sequence[str]) -> tuple[str | None, int | None, str | None]:
        """Find the transaction date in already split lines.

        Returns:
            ``YYYY-MM-DD`` date, index of its line, and the matching
            pattern name; all None when nothing valid matches.
        """
        return self._select_date([normalize_line(line) for line in lines])

    # =========================================================================
    # Amount
    # =========================================================================

    def _select_amount(
        self, lines: Sequence[str]
    ) -> tuple[AmountCandidate | None, str | None, list[AmountCandidate]]:
        """Run the keyword tiers, then the global scan."""
        total_anchors = self._find_anchors(
            lines,
            self.locale.total_keywords,
            exclude=self.locale.tax_keywords,
        )
        found = self._search_anchors(lines, total_anchors)
        if found is not None:
            candidate, same_line, considered = found
            return candidate, "same_line" if same_line else "total_keyword", considered

        tax_anchors = self._find_anchors(lines, self.locale.tax_keywords)
        found = self._search_anchors(lines, tax_anchors)
        if found is not None:
            candidate, _, considered = found
            return candidate, "tax_keyword", considered

        considered = self._scanner.scan_lines(
            lines,
            (i for i in range(len(lines)) if not self._is_non_amount_line(lines[i])),
        )
        best = pick_largest(considered)
        if best is not None:
            logger.debug(
                "No keyword anchor yielded an amount, global scan picked %d from %d candidates",
                best.numeric_value,
                len(considered),
            )
            return best, "global_scan", considered

        return None, None, []

    def _find_anchors(
        self,
        lines: Sequence[str],
        keywords: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> list[int]:
        """Return anchor line indices, keyword priority first, then top to bottom."""
        anchors: list[int] = []
        for keyword in keywords:
            for index, line in enumerate(lines):
                if index in anchors or keyword not in line:
                    continue
                if any(term in line for term in exclude):
                    continue
                if self._is_non_amount_line(line):
                    continue
                anchors.append(index)
        return anchors

    def _search_anchors(
        self, lines: Sequence[str], anchors: Sequence[int]
    ) -> tuple[AmountCandidate, bool, list[AmountCandidate]] | None:
        """Return (winner, found on the anchor line itself, candidates) for the first productive anchor."""
        for anchor in anchors:
            same_line = self._scanner.scan_line(lines[anchor], anchor, CURRENCY_PATTERNS)
            if same_line:
                # Ordered by token shape priority: a ¥-prefixed token beats a 円-suffixed one
                winner = same_line[0]
                logger.debug(
                    "Anchor line %d %r carries amount %d",
                    anchor,
                    lines[anchor],
                    winner.numeric_value,
                )
                return winner, True, same_line

            following = range(anchor + 1, min(anchor + 1 + self.config.lookahead_lines, len(lines)))
            considered = self._scanner.scan_line(lines[anchor], anchor, (AmountPattern.GROUPED,))
            considered.extend(
                self._scanner.scan_lines(
                    lines,
                    (i for i in following if not self._is_non_amount_line(lines[i])),
                    ALL_PATTERNS,
                )
            )
            winner = pick_largest(considered)
            if winner is not None:
                logger.debug(
                    "Anchor line %d %r: picked largest %d of %s",
                    anchor,
                    lines[anchor],
                    winner.numeric_value,
                    [c.numeric_value for c in considered],
                )
                return winner, False, considered

        return None

    def _is_non_amount_line(self, line: str) -> bool:
        return any(term in line for term in self.locale.non_amount_keywords)

    # =========================================================================
    # Store name
    # =========================================================================

    def _select_store_name(
        self, lines: Sequence[str], normalized: Sequence[str]
    ) -> tuple[str | None, int | None, str | None]:
        if not lines:
            return None, None, None

        for index in range(min(self.config.store_name_scan_lines, len(lines))):
            if self._is_store_name_candidate(normalized[index]):
                return lines[index].strip(), index, "store_filter"

        logger.debug("No store name survived the filters, using the first line")
        return lines[0].strip(), 0, "first_line_fallback"

    def _is_store_name_candidate(self, line: str) -> bool:
        length = len(line.strip())
        if length < self.config.store_name_min_length or length > self.config.store_name_max_length:
            return False
        if any(keyword in line for keyword in self.locale.store_reject_keywords):
            return False
        return not any(regex.search(line) for regex in self._store_reject_regexes)

    # =========================================================================
    # Date
    # =========================================================================

    def _select_date(self, lines: Sequence[str]) -> tuple[str | None, int | None, str | None]:
        for date_pattern, regex in self._date_regexes:
            for index, line in enumerate(lines):
                for match in regex.finditer(line):
                    date = self._build_date(date_pattern, match)
                    if date is not None:
                        return date, index, date_pattern.name
        return None, None, None

    def _build_date(self, date_pattern: DatePattern, match: re.Match[str]) -> str | None:
        """Turn a pattern match into ``YYYY-MM-DD``, or None if it is not a real date."""
        groups = match.groups()
        if date_pattern.order == "era":
            if len(groups) < 4:
                return None
            era, era_year, month, day = groups[:4]
            offset = self.locale.eras.get(era)
            if offset is None:
                return None
            if era_year in self.locale.first_era_year_aliases:
                year = offset + 1
            elif era_year.isdigit():
                year = offset + int(era_year)
            else:
                return None
        else:
            if len(groups) < 3:
                return None
            if date_pattern.order == "mdy":
                month, day, year_text = groups[:3]
            else:
                year_text, month, day = groups[:3]
            year = int(year_text)

        month_value, day_value = int(month), int(day)
        if year <= self.config.min_year or not 1 <= month_value <= 12 or not 1 <= day_value <= 31:
            logger.debug("Rejected date candidate %r", match.group(0))
            return None
        return f"{year:04d}-{month_value:02d}-{day_value:02d}"


def extract_receipt_info(
    raw_text: str,
    locale: LocaleProfile | None = None,
    config: ExtractionConfig | None = None,
) -> ExtractionResult:
    """Extract receipt fields with a throwaway extractor.

    Convenience wrapper around ``ReceiptInfoExtractor(locale, config).extract``.
    """
    return ReceiptInfoExtractor(locale=locale, config=config).extract(raw_text)
