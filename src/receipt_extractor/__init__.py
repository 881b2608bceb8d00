"""
receipt-extractor: A rule-based extractor for Japanese receipt OCR text.
"""

from receipt_extractor.core.amounts import AmountScanner, interpret_amount, parse_amount_text
from receipt_extractor.core.config import ExtractionConfig
from receipt_extractor.core.exceptions import (
    ConfigurationError,
    LocaleValidationError,
    NoTextDetectedError,
    OcrResponseError,
    ReceiptExtractorError,
)
from receipt_extractor.core.extractor import ReceiptInfoExtractor, extract_receipt_info
from receipt_extractor.core.locale import DatePattern, LocaleProfile, LocaleRegistry

# Evaluation
from receipt_extractor.evaluation import (
    ComparisonResult,
    DateComparator,
    EvaluationMetrics,
    EvaluationReporter,
    ExactComparator,
    ExtractionEvaluation,
    ExtractionEvaluator,
    FieldComparator,
    FieldEvaluationMetrics,
    FieldMatch,
    MatchStatus,
    NumericComparator,
    ReceiptTestCase,
    StringComparator,
    get_default_comparator,
)

# Built-in locales
from receipt_extractor.locales import DEFAULT_LOCALE, BuiltinLocales
from receipt_extractor.ocr import extract_from_vision_response, text_from_vision_response
from receipt_extractor.results.types import (
    AmountCandidate,
    AmountPattern,
    ExtractionResult,
    ExtractionStatus,
    FieldResult,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ReceiptInfoExtractor",
    "extract_receipt_info",
    "AmountScanner",
    "interpret_amount",
    "parse_amount_text",
    "ReceiptExtractorError",
    "NoTextDetectedError",
    "ConfigurationError",
    "LocaleValidationError",
    "OcrResponseError",
    # Config
    "ExtractionConfig",
    # Locales
    "DatePattern",
    "LocaleProfile",
    "LocaleRegistry",
    "BuiltinLocales",
    "DEFAULT_LOCALE",
    # OCR
    "text_from_vision_response",
    "extract_from_vision_response",
    # Results
    "ExtractionResult",
    "ExtractionStatus",
    "FieldResult",
    "AmountCandidate",
    "AmountPattern",
    # Evaluation
    "MatchStatus",
    "FieldMatch",
    "ExtractionEvaluation",
    "FieldEvaluationMetrics",
    "EvaluationMetrics",
    "ComparisonResult",
    "FieldComparator",
    "ExactComparator",
    "NumericComparator",
    "StringComparator",
    "DateComparator",
    "get_default_comparator",
    "ExtractionEvaluator",
    "ReceiptTestCase",
    "EvaluationReporter",
]
