"""
Master data records managed by staff: clients, industries, account items,
tax categories and uploaded documents.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .transaction import ClientContext


class OCRStatus(str, Enum):
    """OCR progress of an uploaded document."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Industry:
    """Industry grouping for clients (e.g. driver, streamer, freelancer)."""

    id: str
    code: str
    name: str
    status: str = "active"


@dataclass
class Client:
    """Bookkeeping client."""

    id: str
    name: str
    industry_id: Optional[str] = None
    use_custom_rules: bool = False
    status: str = "active"
    created_at: str = ""

    def context(self, industry: Optional[Industry] = None) -> ClientContext:
        """Build the classification context for this client."""
        return ClientContext(
            client_id=self.id,
            industry_id=self.industry_id,
            use_custom_rules=self.use_custom_rules,
            industry_name=industry.name if industry else None,
        )


@dataclass
class AccountItem:
    """Account item (勘定科目)."""

    id: str
    code: str
    name: str
    category: str = ""


@dataclass
class TaxCategory:
    """Consumption tax category (税区分)."""

    id: str
    name: str
    applicable_to_income: bool = True
    applicable_to_expense: bool = True


@dataclass
class Document:
    """Uploaded receipt or invoice file."""

    id: str
    client_id: str
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    ocr_status: OCRStatus = OCRStatus.PENDING
    ocr_error: Optional[str] = None
    is_excluded: bool = False
    exclusion_reason: Optional[str] = None
    upload_date: str = ""

    def __post_init__(self) -> None:
        self.ocr_status = OCRStatus(self.ocr_status)
