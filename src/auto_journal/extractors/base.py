"""
Base OCR extractor interface and common types.

Text recognition itself is an external capability; implementations wrap an
OCR service and report what it read. Fields the service could not read stay
None (unknown), never zero.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ExtractionResult:
    """Result from an extraction attempt."""

    # Extracted values
    amount: Optional[int] = None  # whole yen
    date: Optional[str] = None  # YYYY-MM-DD
    supplier: Optional[str] = None
    tax_amount: Optional[int] = None

    # Line items (None if the receipt was not itemized or unreadable)
    items: Optional[list[dict[str, Any]]] = None

    # Metadata
    confidence: float = 0.0
    raw_text: str = ""
    raw_matches: dict[str, Any] = field(default_factory=dict)  # Debug info


class BaseOCRExtractor(ABC):
    """
    Base class for OCR extractors.

    Implementations must raise ExtractionError on failure, including when
    the service does not answer within the timeout.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name for logging."""
        pass

    @abstractmethod
    def extract(self, file_bytes: bytes, mime_type: str, timeout: float) -> ExtractionResult:
        """
        Extract transaction facts from a receipt file.

        Args:
            file_bytes: Original file bytes
            mime_type: MIME type of the file (image/jpeg, image/png, application/pdf)
            timeout: Seconds the extractor may spend on this file

        Returns:
            ExtractionResult with the values read

        Raises:
            ExtractionError: If the file could not be read
        """
        pass
