"""Tests for extraction configuration."""

import pytest
from pydantic import ValidationError

from receipt_extractor import ExtractionConfig


class TestExtractionConfig:
    """Tests for ExtractionConfig."""

    def test_defaults(self):
        """Test default values."""
        config = ExtractionConfig()

        assert config.min_amount == 50
        assert config.max_amount == 50_000
        assert config.lookahead_lines == 3
        assert config.store_name_scan_lines == 5
        assert config.store_name_min_length == 3
        assert config.store_name_max_length == 50
        assert config.min_year == 1900

    def test_custom_values(self):
        """Test overriding values."""
        config = ExtractionConfig(min_amount=10, max_amount=1_000_000, lookahead_lines=5)

        assert config.min_amount == 10
        assert config.max_amount == 1_000_000
        assert config.lookahead_lines == 5

    def test_min_amount_above_max_rejected(self):
        """Test the window must not be inverted."""
        with pytest.raises(ValidationError, match="min_amount must not exceed max_amount"):
            ExtractionConfig(min_amount=1000, max_amount=100)

    def test_store_name_lengths_validated(self):
        """Test the store name length range must not be inverted."""
        with pytest.raises(ValidationError):
            ExtractionConfig(store_name_min_length=10, store_name_max_length=5)

    @pytest.mark.parametrize("lookahead", [-1, 11])
    def test_lookahead_range(self, lookahead):
        """Test lookahead_lines bounds."""
        with pytest.raises(ValidationError):
            ExtractionConfig(lookahead_lines=lookahead)

    def test_scan_lines_must_be_positive(self):
        """Test store_name_scan_lines lower bound."""
        with pytest.raises(ValidationError):
            ExtractionConfig(store_name_scan_lines=0)

    def test_frozen(self):
        """Test the config cannot be mutated."""
        config = ExtractionConfig()
        with pytest.raises(ValidationError):
            config.min_amount = 1

    def test_is_plausible_amount(self):
        """Test the inclusive window check."""
        config = ExtractionConfig()

        assert config.is_plausible_amount(50)
        assert config.is_plausible_amount(50_000)
        assert not config.is_plausible_amount(49)
        assert not config.is_plausible_amount(50_001)
