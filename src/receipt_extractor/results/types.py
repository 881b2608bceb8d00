"""Result types for extraction outputs."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ExtractionStatus(str, Enum):
    """Outcome of an extraction call as a whole."""

    OK = "ok"
    NO_TEXT_DETECTED = "no_text_detected"


class AmountPattern(str, Enum):
    """Token shapes recognised as monetary amounts, highest priority first."""

    YEN_PREFIX = "yen_prefix"  # ¥1,200 / \1,200
    YEN_SUFFIX = "yen_suffix"  # 1,200円
    GROUPED = "grouped"  # bare 1,200


class AmountCandidate(BaseModel):
    """A number from the transcript that is plausibly a monetary amount."""

    model_config = ConfigDict(frozen=True)

    numeric_value: int = Field(description="Parsed integer amount")
    original_text: str = Field(description="Token as it appeared in the line")
    line_index: int = Field(ge=0, description="Index of the line in the split transcript")
    pattern: AmountPattern = Field(description="Which token shape matched")


class FieldResult(BaseModel):
    """Provenance for a single extracted field."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Field name")
    value: Any = Field(description="Extracted value")
    source_text: str | None = Field(
        default=None,
        description="Line this value was extracted from",
    )
    line_index: int | None = Field(
        default=None,
        description="Index of that line in the split transcript",
    )
    strategy: str | None = Field(
        default=None,
        description="Rule that produced the value",
    )


class ExtractionResult(BaseModel):
    """Structured fields read from one receipt transcript.

    Any of ``amount``, ``store_name`` and ``date`` may be None when no
    defensible value exists. That is a normal outcome, not an error.
    Only an empty transcript is flagged, through ``status``.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    amount: str | None = Field(
        default=None,
        description="Total as a plain decimal string, no symbol or separators",
    )
    store_name: str | None = Field(default=None, description="Store name line, trimmed")
    date: str | None = Field(default=None, description="Transaction date as YYYY-MM-DD")
    raw_text: str = Field(default="", description="Transcript the fields came from")

    status: ExtractionStatus = Field(default=ExtractionStatus.OK)
    error: str | None = Field(
        default=None,
        description="Message describing why extraction could not run",
    )

    field_results: list[FieldResult] = Field(
        default_factory=list,
        description="Where each extracted field came from",
    )
    amount_candidates: list[AmountCandidate] = Field(
        default_factory=list,
        description="Candidates considered for the winning amount",
    )

    @model_validator(mode="after")
    def _validate_status(self) -> ExtractionResult:
        """Keep the status flag consistent with the field values."""
        if self.status is ExtractionStatus.NO_TEXT_DETECTED:
            if any(v is not None for v in (self.amount, self.store_name, self.date)):
                raise ValueError("fields must be None when no text was detected")
        elif self.error is not None:
            raise ValueError("error must be None when status is ok")
        return self

    @property
    def success(self) -> bool:
        """Whether the transcript contained any text at all."""
        return self.status is ExtractionStatus.OK

    def get_field_result(self, name: str) -> FieldResult | None:
        """Return provenance for a field, or None if it was not found."""
        for field_result in self.field_results:
            if field_result.name == name:
                return field_result
        return None

    def missing_fields(self) -> list[str]:
        """Names of the fields the caller has to fill in by hand."""
        values = {"amount": self.amount, "store_name": self.store_name, "date": self.date}
        return [name for name, value in values.items() if value is None]

    def raise_for_status(self) -> None:
        """Raise NoTextDetectedError if the transcript was empty."""
        from receipt_extractor.core.exceptions import NoTextDetectedError

        if self.status is ExtractionStatus.NO_TEXT_DETECTED:
            raise NoTextDetectedError(self.error or "No text detected in OCR output", self.raw_text)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase payload the web client expects."""
        payload = self.model_dump(
            by_alias=True,
            include={"amount", "store_name", "date", "raw_text"},
        )
        payload["success"] = self.success
        if self.error is not None:
            payload["error"] = self.error
        return payload
