"""
Journal entry: the persisted outcome of classifying one document.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .classification import Category, Provenance
from .transaction import RuleType


class JournalStatus(str, Enum):
    """Lifecycle of a journal entry."""

    PENDING = "pending"  # Generated, awaiting staff review
    APPROVED = "approved"  # Approved by staff, ready for export
    EXPORTED = "exported"  # Accepted by the export sink


@dataclass
class JournalEntry:
    """Journal entry owned by a single client."""

    id: str
    client_id: str
    entry_date: str  # YYYY-MM-DD
    amount: int
    rule_type: RuleType = RuleType.EXPENSE
    category: Category = Category.BUSINESS
    document_id: Optional[str] = None
    supplier: Optional[str] = None
    account_item_id: Optional[str] = None
    tax_category_id: Optional[str] = None
    tax_amount: Optional[int] = None
    notes: Optional[str] = None
    status: JournalStatus = JournalStatus.PENDING
    confidence: Optional[float] = None
    provenance: Optional[Provenance] = None
    matched_rule_id: Optional[str] = None
    reviewed_at: Optional[str] = None
    exported_at: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        self.rule_type = RuleType.parse(self.rule_type)
        self.category = Category.parse(self.category)
        self.status = JournalStatus(self.status)
        if self.provenance is not None:
            self.provenance = Provenance(self.provenance)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JournalEntry":
        return cls(
            id=data["id"],
            client_id=data["client_id"],
            entry_date=data["entry_date"],
            amount=int(data["amount"]),
            rule_type=data.get("rule_type", RuleType.EXPENSE.value),
            category=data.get("category", Category.BUSINESS.value),
            document_id=data.get("document_id"),
            supplier=data.get("supplier"),
            account_item_id=data.get("account_item_id"),
            tax_category_id=data.get("tax_category_id"),
            tax_amount=data.get("tax_amount"),
            notes=data.get("notes"),
            status=data.get("status", JournalStatus.PENDING.value),
            confidence=data.get("confidence"),
            provenance=data.get("provenance"),
            matched_rule_id=data.get("matched_rule_id"),
            reviewed_at=data.get("reviewed_at"),
            exported_at=data.get("exported_at"),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "document_id": self.document_id,
            "entry_date": self.entry_date,
            "rule_type": self.rule_type.value,
            "category": self.category.value,
            "supplier": self.supplier,
            "account_item_id": self.account_item_id,
            "tax_category_id": self.tax_category_id,
            "amount": self.amount,
            "tax_amount": self.tax_amount,
            "notes": self.notes,
            "status": self.status.value,
            "confidence": self.confidence,
            "provenance": self.provenance.value if self.provenance else None,
            "matched_rule_id": self.matched_rule_id,
            "reviewed_at": self.reviewed_at,
            "exported_at": self.exported_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
