"""Configuration classes for extraction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExtractionConfig(BaseModel):
    """Tunable limits used by the receipt extractor."""

    model_config = ConfigDict(frozen=True)

    # Amount plausibility window
    min_amount: int = Field(
        default=50,
        ge=0,
        description="Smallest amount accepted as a candidate (inclusive)",
    )
    max_amount: int = Field(
        default=50_000,
        ge=1,
        description="Largest amount accepted as a candidate (inclusive)",
    )
    lookahead_lines: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Lines after a keyword line searched for the amount",
    )

    # Store name settings
    store_name_scan_lines: int = Field(
        default=5,
        ge=1,
        description="Number of leading lines inspected for the store name",
    )
    store_name_min_length: int = Field(
        default=3,
        ge=1,
        description="Shortest line accepted as a store name",
    )
    store_name_max_length: int = Field(
        default=50,
        ge=1,
        description="Longest line accepted as a store name",
    )

    # Date settings
    min_year: int = Field(
        default=1900,
        description="Parsed years must be strictly greater than this",
    )

    @model_validator(mode="after")
    def _validate_ranges(self) -> ExtractionConfig:
        """Ensure lower bounds do not exceed upper bounds."""
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        if self.store_name_min_length > self.store_name_max_length:
            raise ValueError("store_name_min_length must not exceed store_name_max_length")
        return self

    def is_plausible_amount(self, value: int) -> bool:
        """Return True when value lies inside the plausibility window."""
        return self.min_amount <= value <= self.max_amount
