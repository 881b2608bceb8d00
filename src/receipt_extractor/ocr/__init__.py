"""Adapters from OCR engine responses to raw transcripts."""

from receipt_extractor.ocr.vision import extract_from_vision_response, text_from_vision_response

__all__ = ["extract_from_vision_response", "text_from_vision_response"]
