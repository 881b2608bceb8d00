"""Custom exceptions for receipt-extractor."""

from typing import Any


class ReceiptExtractorError(Exception):
    """Base exception for all receipt-extractor errors."""

    pass


class NoTextDetectedError(ReceiptExtractorError):
    """Raised when the OCR transcript is empty or whitespace only."""

    def __init__(self, message: str = "No text detected in OCR output", raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class ConfigurationError(ReceiptExtractorError):
    """Raised when extractor configuration is invalid."""

    pass


class LocaleValidationError(ReceiptExtractorError):
    """Raised when a locale profile cannot be used for extraction."""

    pass


class OcrResponseError(ReceiptExtractorError):
    """Raised when an OCR engine response reports an error."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details
