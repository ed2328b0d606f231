"""
OCR extractor interface.

Provides:
- BaseOCRExtractor: Interface implemented by OCR service adapters
- ExtractionResult: Values read from one receipt
"""

from .base import BaseOCRExtractor, ExtractionResult

__all__ = [
    "BaseOCRExtractor",
    "ExtractionResult",
]
