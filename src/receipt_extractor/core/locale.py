"""Locale profiles holding the keyword tables used by the extractor.

This module provides:
- DatePattern: One date regex and how to read its groups
- LocaleProfile: Keyword tables, date patterns and currency glyphs for a locale
- LocaleRegistry: Registry for managing and discovering locale profiles

Swapping the profile changes what the extractor looks for, never how it
decides. For the default Japanese tables, see receipt_extractor.locales.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from receipt_extractor.core.exceptions import LocaleValidationError

# Placeholder expanded to an alternation of the locale's era names
ERA_PLACEHOLDER = "{eras}"


class DatePattern(BaseModel):
    """A date regex together with the order of its capture groups.

    ``ymd`` and ``mdy`` patterns capture three numeric groups. ``era``
    patterns capture era name, era year, month and day.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Identifier reported as the extraction strategy")
    pattern: str = Field(description="Regular expression applied to each line")
    order: Literal["ymd", "mdy", "era"] = Field(
        default="ymd",
        description="How the capture groups map to year, month and day",
    )


class LocaleProfile(BaseModel):
    """Keyword tables and notations for receipts in one locale.

    Example:
        ```python
        from receipt_extractor import LocaleProfile, ReceiptInfoExtractor

        locale = LocaleProfile(
            name="en_us",
            total_keywords=["TOTAL", "AMOUNT DUE"],
            tax_keywords=["TAX"],
            currency_prefixes=["$"],
        )
        extractor = ReceiptInfoExtractor(locale=locale)

        # Save to file
        locale.to_yaml("locales/en_us.yaml")

        # Load from file
        loaded = LocaleProfile.from_yaml("locales/en_us.yaml")
        ```
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Locale name for identification")
    description: str | None = Field(
        default=None,
        description="Human-readable description of the locale",
    )

    # Amount keyword tiers, highest priority first
    total_keywords: list[str] = Field(
        default_factory=list,
        description="Terms meaning grand total or amount due",
    )
    tax_keywords: list[str] = Field(
        default_factory=list,
        description="Tax-related terms; lines carrying them are never primary anchors",
    )
    non_amount_keywords: list[str] = Field(
        default_factory=list,
        description="Terms marking tendered cash, change or counts; never read as totals",
    )
    currency_prefixes: list[str] = Field(
        default_factory=list,
        description="Glyphs printed before an amount",
    )
    currency_suffixes: list[str] = Field(
        default_factory=list,
        description="Glyphs printed after an amount",
    )

    # Store name filters
    store_reject_keywords: list[str] = Field(
        default_factory=list,
        description="Substrings that disqualify a line as the store name",
    )
    store_reject_patterns: list[str] = Field(
        default_factory=list,
        description="Regular expressions that disqualify a line as the store name",
    )

    # Dates
    date_patterns: list[DatePattern] = Field(
        default_factory=list,
        description="Date patterns in the order they are tried",
    )
    eras: dict[str, int] = Field(
        default_factory=dict,
        description="Era name to offset; western year = offset + era year",
    )
    first_era_year_aliases: list[str] = Field(
        default_factory=list,
        description="Spellings meaning era year 1",
    )

    version: str = Field(
        default="1.0",
        description="Profile version for compatibility tracking",
    )
    tags: list[str] | None = Field(
        default=None,
        description="Tags for categorizing and searching profiles",
    )
    parent_locale: str | None = Field(
        default=None,
        description="Name of parent profile to inherit from",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate locale name is non-empty and normalize it."""
        if not v or not v.strip():
            raise ValueError("Locale name cannot be empty")
        return v.strip().lower().replace(" ", "_")

    def validate_locale(self) -> list[str]:
        """Validate the profile.

        Returns:
            List of validation warnings (empty if valid).

        Raises:
            LocaleValidationError: If the profile cannot drive an extraction.
        """
        warnings: list[str] = []

        if not self.total_keywords:
            raise LocaleValidationError(f"Locale '{self.name}' defines no total keywords")

        for pattern in self.store_reject_patterns:
            self._check_regex(pattern, "store reject pattern")

        for date_pattern in self.date_patterns:
            if date_pattern.order == "era":
                if not self.eras:
                    raise LocaleValidationError(
                        f"Date pattern '{date_pattern.name}' needs eras, "
                        f"but locale '{self.name}' defines none"
                    )
                if ERA_PLACEHOLDER not in date_pattern.pattern:
                    warnings.append(
                        f"Era pattern '{date_pattern.name}' does not use {ERA_PLACEHOLDER}"
                    )
            self._check_regex(self.expand_date_pattern(date_pattern), "date pattern")

        overlap = set(self.total_keywords) & set(self.tax_keywords)
        if overlap:
            warnings.append(
                f"Keywords listed as both total and tax: {', '.join(sorted(overlap))}"
            )

        names = [p.name for p in self.date_patterns]
        if len(names) != len(set(names)):
            warnings.append("Date pattern names are not unique")

        if not self.currency_prefixes and not self.currency_suffixes:
            warnings.append("No currency glyphs defined; only grouped numbers will match")

        return warnings

    def _check_regex(self, pattern: str, kind: str) -> None:
        try:
            re.compile(pattern)
        except re.error as e:
            raise LocaleValidationError(
                f"Invalid {kind} {pattern!r} in locale '{self.name}': {e}"
            ) from e

    def expand_date_pattern(self, date_pattern: DatePattern) -> str:
        """Return the pattern with the era placeholder filled in."""
        if ERA_PLACEHOLDER not in date_pattern.pattern:
            return date_pattern.pattern
        # Longest first so that overlapping era names do not shadow each other
        era_names = sorted(self.eras, key=len, reverse=True)
        alternation = "|".join(re.escape(name) for name in era_names)
        return date_pattern.pattern.replace(ERA_PLACEHOLDER, f"(?:{alternation})")

    def to_dict(self) -> dict[str, Any]:
        """Convert profile to dictionary for serialization.

        Returns:
            Dictionary representation of the profile.
        """
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "total_keywords": list(self.total_keywords),
            "tax_keywords": list(self.tax_keywords),
        }

        if self.description:
            data["description"] = self.description
        if self.non_amount_keywords:
            data["non_amount_keywords"] = list(self.non_amount_keywords)
        if self.currency_prefixes:
            data["currency_prefixes"] = list(self.currency_prefixes)
        if self.currency_suffixes:
            data["currency_suffixes"] = list(self.currency_suffixes)
        if self.store_reject_keywords:
            data["store_reject_keywords"] = list(self.store_reject_keywords)
        if self.store_reject_patterns:
            data["store_reject_patterns"] = list(self.store_reject_patterns)
        if self.date_patterns:
            data["date_patterns"] = [p.model_dump() for p in self.date_patterns]
        if self.eras:
            data["eras"] = dict(self.eras)
        if self.first_era_year_aliases:
            data["first_era_year_aliases"] = list(self.first_era_year_aliases)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.parent_locale:
            data["parent_locale"] = self.parent_locale

        return data

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        """Serialize profile to JSON.

        Args:
            path: Optional file path to write to.
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        json_str = json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

        if path:
            Path(path).write_text(json_str, encoding="utf-8")

        return json_str

    def to_yaml(self, path: str | Path | None = None) -> str:
        """Serialize profile to YAML.

        Args:
            path: Optional file path to write to.

        Returns:
            YAML string representation.
        """
        yaml_str: str = yaml.safe_dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

        if path:
            Path(path).write_text(yaml_str, encoding="utf-8")

        return yaml_str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocaleProfile:
        """Create profile from dictionary.

        Args:
            data: Dictionary with profile configuration.

        Returns:
            LocaleProfile instance.
        """
        return cls(
            name=data.get("name", "unnamed"),
            description=data.get("description"),
            total_keywords=data.get("total_keywords") or [],
            tax_keywords=data.get("tax_keywords") or [],
            non_amount_keywords=data.get("non_amount_keywords") or [],
            currency_prefixes=data.get("currency_prefixes") or [],
            currency_suffixes=data.get("currency_suffixes") or [],
            store_reject_keywords=data.get("store_reject_keywords") or [],
            store_reject_patterns=data.get("store_reject_patterns") or [],
            date_patterns=[DatePattern(**p) for p in data.get("date_patterns") or []],
            eras=data.get("eras") or {},
            first_era_year_aliases=data.get("first_era_year_aliases") or [],
            version=str(data.get("version", "1.0")),
            tags=data.get("tags"),
            parent_locale=data.get("parent_locale"),
        )

    @classmethod
    def from_json(cls, source: str | Path) -> LocaleProfile:
        """Load profile from JSON file or string.

        Args:
            source: JSON string or path to JSON file.

        Returns:
            LocaleProfile instance.
        """
        return cls.from_dict(json.loads(_read_source(source)))

    @classmethod
    def from_yaml(cls, source: str | Path) -> LocaleProfile:
        """Load profile from YAML file or string.

        Args:
            source: YAML string or path to YAML file.

        Returns:
            LocaleProfile instance.
        """
        return cls.from_dict(yaml.safe_load(_read_source(source)))

    def merge_with_parent(self, parent: LocaleProfile) -> LocaleProfile:
        """Merge this profile with a parent profile.

        List-valued tables are concatenated with the child's entries first,
        so child keywords take priority. Eras are merged with the child
        overriding conflicting offsets.

        Args:
            parent: Parent profile to inherit from.

        Returns:
            New profile with merged configuration.
        """
        child_names = {p.name for p in self.date_patterns}
        merged_dates = list(self.date_patterns) + [
            p for p in parent.date_patterns if p.name not in child_names
        ]
        merged_tags = _merge_unique(parent.tags or [], self.tags or [])

        return LocaleProfile(
            name=self.name,
            description=self.description or parent.description,
            total_keywords=_merge_unique(self.total_keywords, parent.total_keywords),
            tax_keywords=_merge_unique(self.tax_keywords, parent.tax_keywords),
            non_amount_keywords=_merge_unique(
                self.non_amount_keywords, parent.non_amount_keywords
            ),
            currency_prefixes=_merge_unique(self.currency_prefixes, parent.currency_prefixes),
            currency_suffixes=_merge_unique(self.currency_suffixes, parent.currency_suffixes),
            store_reject_keywords=_merge_unique(
                self.store_reject_keywords, parent.store_reject_keywords
            ),
            store_reject_patterns=_merge_unique(
                self.store_reject_patterns, parent.store_reject_patterns
            ),
            date_patterns=merged_dates,
            eras={**parent.eras, **self.eras},
            first_era_year_aliases=_merge_unique(
                self.first_era_year_aliases, parent.first_era_year_aliases
            ),
            version=self.version,
            tags=merged_tags if merged_tags else None,
            parent_locale=parent.name,
        )


def _read_source(source: str | Path) -> str:
    if isinstance(source, Path) or (isinstance(source, str) and _is_existing_file(source)):
        return Path(source).read_text(encoding="utf-8")
    return source


def _is_existing_file(source: str) -> bool:
    # Inline documents can be long or multi-line; only short strings may be paths
    if "\n" in source or len(source) > 1024:
        return False
    try:
        return Path(source).is_file()
    except OSError:
        return False


def _merge_unique(first: list[str], second: list[str]) -> list[str]:
    merged: list[str] = []
    for item in [*first, *second]:
        if item not in merged:
            merged.append(item)
    return merged


class LocaleRegistry:
    """Registry for managing locale profiles.

    Example:
        ```python
        registry = LocaleRegistry()
        registry.register(BuiltinLocales.japanese())

        locale = registry.get_or_raise("ja_jp")
        extractor = ReceiptInfoExtractor(locale=locale)
        ```
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._locales: dict[str, LocaleProfile] = {}

    def register(
        self,
        locale: LocaleProfile,
        overwrite: bool = False,
    ) -> None:
        """Register a locale profile.

        Args:
            locale: Profile to register.
            overwrite: Whether to overwrite an existing profile.

        Raises:
            ValueError: If a profile with the same name exists and overwrite=False.
            LocaleValidationError: If the resolved profile is unusable.
        """
        if locale.name in self._locales and not overwrite:
            raise ValueError(
                f"Locale '{locale.name}' already registered. "
                "Use overwrite=True to replace."
            )

        # Resolve parent before validating, a child may inherit its keywords
        if locale.parent_locale:
            parent = self._locales.get(locale.parent_locale)
            if parent:
                locale = locale.merge_with_parent(parent)

        locale.validate_locale()
        self._locales[locale.name] = locale

    def get(self, name: str) -> LocaleProfile | None:
        """Get profile by name, or None if not found."""
        return self._locales.get(name)

    def get_or_raise(self, name: str) -> LocaleProfile:
        """Get profile by name.

        Raises:
            KeyError: If profile not found.
        """
        if name not in self._locales:
            raise KeyError(f"Locale '{name}' not found in registry")
        return self._locales[name]

    def unregister(self, name: str) -> bool:
        """Remove profile from registry.

        Returns:
            True if profile was removed, False if not found.
        """
        if name in self._locales:
            del self._locales[name]
            return True
        return False

    def list_locales(self) -> list[str]:
        """List all registered profile names."""
        return list(self._locales.keys())

    def search_by_tags(self, tags: list[str]) -> list[LocaleProfile]:
        """Find profiles with any of the given tags."""
        tag_set = set(tags)
        return [
            locale
            for locale in self._locales.values()
            if locale.tags and tag_set.intersection(locale.tags)
        ]

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Export all profiles as dictionary."""
        return {name: locale.to_dict() for name, locale in self._locales.items()}

    def __len__(self) -> int:
        """Return number of registered profiles."""
        return len(self._locales)

    def __contains__(self, name: str) -> bool:
        """Check if profile is registered."""
        return name in self._locales

    def __iter__(self) -> Iterator[str]:
        """Iterate over profile names."""
        return iter(self._locales)
