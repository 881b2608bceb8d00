"""Result types for extraction outputs."""

from receipt_extractor.results.types import (
    AmountCandidate,
    AmountPattern,
    ExtractionResult,
    ExtractionStatus,
    FieldResult,
)

__all__ = [
    "AmountCandidate",
    "AmountPattern",
    "ExtractionResult",
    "ExtractionStatus",
    "FieldResult",
]
