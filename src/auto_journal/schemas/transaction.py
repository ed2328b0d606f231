"""
Transaction facts produced by OCR and the client context they are classified in.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from ..exceptions import MalformedTransactionError


class RuleType(str, Enum):
    """Direction of a transaction; also selects which rules apply."""

    EXPENSE = "expense"  # 支出
    INCOME = "income"  # 収入

    @classmethod
    def parse(cls, value: "RuleType | str | None") -> "RuleType":
        """Parse an English or Japanese rule type label."""
        if isinstance(value, RuleType):
            return value
        labels = {
            "expense": cls.EXPENSE,
            "支出": cls.EXPENSE,
            "income": cls.INCOME,
            "収入": cls.INCOME,
        }
        if value is None or value not in labels:
            raise MalformedTransactionError(f"Unknown rule type: {value!r}")
        return labels[value]


@dataclass(frozen=True)
class LineItem:
    """Single purchased item read from a receipt."""

    name: str
    amount: Optional[int] = None
    quantity: Optional[int] = None
    unit_price: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        return cls(
            name=str(data.get("name") or ""),
            amount=_optional_int(data.get("amount")),
            quantity=_optional_int(data.get("quantity")),
            unit_price=_optional_int(data.get("unit_price")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }


@dataclass(frozen=True)
class TransactionFact:
    """
    Immutable transaction facts extracted from one document.

    Amounts are whole yen. Fields the extractor could not read are None
    (unknown), never zero.
    """

    amount: Optional[int]
    date: Optional[str] = None  # YYYY-MM-DD
    supplier_text: Optional[str] = None
    tax_amount: Optional[int] = None
    line_items: Optional[tuple[LineItem, ...]] = None
    rule_type: RuleType = RuleType.EXPENSE

    @classmethod
    def from_extraction(
        cls,
        extraction: Any,
        rule_type: RuleType = RuleType.EXPENSE,
    ) -> "TransactionFact":
        """Build facts from an OCR ExtractionResult."""
        items = None
        if extraction.items is not None:
            items = tuple(
                item if isinstance(item, LineItem) else LineItem.from_dict(item)
                for item in extraction.items
            )
        return cls(
            amount=extraction.amount,
            date=extraction.date,
            supplier_text=extraction.supplier,
            tax_amount=extraction.tax_amount,
            line_items=items,
            rule_type=rule_type,
        )

    def validate(self) -> RuleType:
        """
        Check the shape needed for classification.

        Returns:
            The parsed rule type

        Raises:
            MalformedTransactionError: If the rule type or amount is unusable
        """
        rule_type = RuleType.parse(self.rule_type)
        if self.amount is not None and (
            isinstance(self.amount, bool) or not isinstance(self.amount, int)
        ):
            raise MalformedTransactionError(f"Amount must be whole yen, got {self.amount!r}")
        if self.tax_amount is not None and (
            isinstance(self.tax_amount, bool) or not isinstance(self.tax_amount, int)
        ):
            raise MalformedTransactionError(
                f"Tax amount must be whole yen, got {self.tax_amount!r}"
            )
        return rule_type

    @property
    def item_names(self) -> list[str]:
        if not self.line_items:
            return []
        return [item.name for item in self.line_items if item.name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "supplier_text": self.supplier_text,
            "amount": self.amount,
            "tax_amount": self.tax_amount,
            "line_items": (
                [item.to_dict() for item in self.line_items]
                if self.line_items is not None
                else None
            ),
            "rule_type": RuleType.parse(self.rule_type).value,
        }


@dataclass
class ClientContext:
    """Client attributes that decide which rules are in play."""

    client_id: str
    industry_id: Optional[str] = None
    use_custom_rules: bool = False
    # Passed to the AI classifier as a hint (e.g. "ドライバー")
    industry_name: Optional[str] = None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(Decimal(str(value).replace(",", "").strip()))
    except (InvalidOperation, ValueError):
        return None
