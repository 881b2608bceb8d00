"""Adapter for Google Cloud Vision text-detection responses.

Works on the JSON-decoded response only; calling the Vision API is the
caller's job. Accepts either a single ``AnnotateImageResponse`` or the
batch envelope ``{"responses": [...]}`` returned by ``images:annotate``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from receipt_extractor.core.exceptions import OcrResponseError
from receipt_extractor.core.extractor import ReceiptInfoExtractor
from receipt_extractor.results.types import ExtractionResult

logger = logging.getLogger(__name__)


def _single_response(response: Mapping[str, Any]) -> Mapping[str, Any]:
    responses = response.get("responses")
    if responses is None:
        return response
    if not responses:
        return {}
    return responses[0]


def text_from_vision_response(response: Mapping[str, Any]) -> str:
    """Return the full transcript from a Vision text-detection response.

    The first ``textAnnotations`` entry holds the whole block of text; the
    remaining entries are individual words. ``fullTextAnnotation.text`` is
    used when ``textAnnotations`` is absent (``documentTextDetection``).

    Args:
        response: JSON-decoded Vision response.

    Returns:
        The transcript, or an empty string when nothing was detected.

    Raises:
        OcrResponseError: If the response carries an ``error`` object.
    """
    annotated = _single_response(response)

    error = annotated.get("error")
    if error:
        message = error.get("message", "unknown error") if isinstance(error, Mapping) else str(error)
        raise OcrResponseError(f"Vision API returned an error: {message}", details=error)

    annotations = annotated.get("textAnnotations") or []
    if annotations:
        description = annotations[0].get("description") or ""
        if description:
            return description

    full_text = annotated.get("fullTextAnnotation") or {}
    return full_text.get("text") or ""


def extract_from_vision_response(
    response: Mapping[str, Any],
    extractor: ReceiptInfoExtractor | None = None,
) -> ExtractionResult:
    """Extract receipt fields straight from a Vision response.

    Args:
        response: JSON-decoded Vision response.
        extractor: Extractor to use. A default one is created if omitted.

    Returns:
        ExtractionResult; status is ``no_text_detected`` when Vision found
        no text.

    Raises:
        OcrResponseError: If the response carries an ``error`` object.
    """
    text = text_from_vision_response(response)
    logger.debug("Vision transcript has %d characters", len(text))
    return (extractor or ReceiptInfoExtractor()).extract(text)
