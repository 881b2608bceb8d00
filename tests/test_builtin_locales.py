"""Tests for built-in locale profiles."""

import re

import pytest

from receipt_extractor import DEFAULT_LOCALE, BuiltinLocales, LocaleProfile, LocaleRegistry


class TestJapaneseLocale:
    """Tests for the Japanese profile."""

    @pytest.fixture
    def locale(self) -> LocaleProfile:
        return BuiltinLocales.japanese()

    def test_identity(self, locale):
        """Test name and tags."""
        assert locale.name == "ja_jp"
        assert "default" in locale.tags

    def test_validates_cleanly(self, locale):
        """Test the shipped tables raise no warnings."""
        assert locale.validate_locale() == []

    def test_total_keyword_priority(self, locale):
        """Test 合計 is the highest priority keyword and 小計 the lowest."""
        assert locale.total_keywords[0] == "合計"
        assert locale.total_keywords[-1] == "小計"

    def test_tax_keywords_exclude_tax_totals(self, locale):
        """Test every tax-total notation containing 合計 is a tax keyword."""
        assert "税合計" in locale.tax_keywords
        assert "税込合計" in locale.tax_keywords

    def test_no_keyword_in_both_tiers(self, locale):
        """Test the tiers are disjoint."""
        assert not set(locale.total_keywords) & set(locale.tax_keywords)

    def test_currency_glyphs(self, locale):
        """Test yen glyphs in their normalized forms."""
        assert locale.currency_prefixes == ["¥", "\\"]
        assert locale.currency_suffixes == ["円"]

    def test_era_offsets(self, locale):
        """Test era year 1 maps to the first western year of each era."""
        assert locale.eras["令和"] + 1 == 2019
        assert locale.eras["平成"] + 1 == 1989
        assert locale.eras["昭和"] + 1 == 1926
        assert "元" in locale.first_era_year_aliases

    def test_date_pattern_order(self, locale):
        """Test western patterns are tried before era dates."""
        assert [p.name for p in locale.date_patterns] == ["ymd", "ymd_time", "mdy", "era"]

    @pytest.mark.parametrize(
        "line",
        ["2024/07/28", "2024年7月28日", "03-1234-5678", "¥1,200", "1,200円", "TEL:03-1234", "RECEIPT"],
    )
    def test_store_reject_patterns(self, locale, line):
        """Test lines that cannot be a store name."""
        assert any(re.search(p, line) for p in locale.store_reject_patterns)

    @pytest.mark.parametrize("line", ["スーパーマーケット田中", "Hotel Okura", "セブン-イレブン"])
    def test_store_names_not_rejected(self, locale, line):
        """Test real store names pass the regex filters."""
        assert not any(re.search(p, line) for p in locale.store_reject_patterns)

    def test_default_locale(self):
        """Test the module default is the Japanese profile."""
        assert DEFAULT_LOCALE == BuiltinLocales.japanese()


class TestBuiltinLocalesRegistry:
    """Tests for the registry factory."""

    def test_all_locales(self):
        """Test every built-in profile is listed."""
        assert [p.name for p in BuiltinLocales.all_locales()] == ["ja_jp"]

    def test_create_registry(self):
        """Test the pre-populated registry."""
        registry = BuiltinLocales.create_registry()

        assert isinstance(registry, LocaleRegistry)
        assert registry.get_or_raise("ja_jp") == BuiltinLocales.japanese()
        assert [p.name for p in registry.search_by_tags(["jpy"])] == ["ja_jp"]
