"""
Classification result produced per transaction by the classification pipeline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    """Business or private use of a transaction."""

    BUSINESS = "business"  # 事業用
    PRIVATE = "private"  # プライベート

    @property
    def label(self) -> str:
        return "事業用" if self is Category.BUSINESS else "プライベート"

    @classmethod
    def parse(cls, value: "Category | str | None") -> "Category":
        """Parse an English or Japanese label; unknown values mean business."""
        if isinstance(value, Category):
            return value
        if value in ("private", "プライベート"):
            return cls.PRIVATE
        return cls.BUSINESS


class Provenance(str, Enum):
    """Where a classification came from."""

    RULE = "rule"
    AI = "ai"
    MANUAL = "manual"


@dataclass(frozen=True)
class ClassificationResult:
    """
    Final classification for one transaction.

    Derived, not persisted on its own; it is copied onto the journal entry.
    """

    account_item_id: Optional[str]
    tax_category_id: Optional[str]
    category: Category
    confidence: float
    provenance: Provenance
    matched_rule_id: Optional[str] = None
    rationale: str = ""
    is_fallback: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_item_id": self.account_item_id,
            "tax_category_id": self.tax_category_id,
            "category": self.category.value,
            "confidence": self.confidence,
            "provenance": self.provenance.value,
            "matched_rule_id": self.matched_rule_id,
            "rationale": self.rationale,
            "is_fallback": self.is_fallback,
        }


def clamp_confidence(value: Any) -> float:
    """Clamp a reported confidence into [0, 1]; unreadable values become 0."""
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    return max(0.0, min(1.0, confidence))
