"""
Classification rules authored by staff.

A rule's scope tier is derived from which owner id is set:
client_id → client, industry_id → industry, neither → shared.
Setting both is invalid.

Matching conditions are modelled as a small set of predicates that are
AND-composed, so the matching logic can be tested without the tier logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..exceptions import MalformedTransactionError, RuleValidationError
from .transaction import RuleType, TransactionFact


class RuleScope(str, Enum):
    """Scope tier, in resolution order."""

    CLIENT = "client"  # 顧客別
    INDUSTRY = "industry"  # 業種別
    SHARED = "shared"  # 共通


class RuleStatus(str, Enum):
    """Inactive rules are kept for audit but never resolved."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class SupplierMatch:
    """Case-insensitive substring containment on the supplier text."""

    pattern: str

    def holds(self, transaction: TransactionFact) -> bool:
        # Unknown supplier cannot satisfy a supplier condition
        if not transaction.supplier_text:
            return False
        return self.pattern.casefold() in transaction.supplier_text.casefold()

    def describe(self) -> str:
        return f"supplier contains '{self.pattern}'"


@dataclass(frozen=True)
class AmountRange:
    """Inclusive amount bounds; a missing bound is unbounded on that side."""

    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def holds(self, transaction: TransactionFact) -> bool:
        if transaction.amount is None:
            return False
        if self.minimum is not None and transaction.amount < self.minimum:
            return False
        if self.maximum is not None and transaction.amount > self.maximum:
            return False
        return True

    def describe(self) -> str:
        low = "-∞" if self.minimum is None else str(self.minimum)
        high = "∞" if self.maximum is None else str(self.maximum)
        return f"amount in [{low}, {high}]"


@dataclass(frozen=True)
class Unconstrained:
    """Matches every transaction (rule without conditions)."""

    def holds(self, transaction: TransactionFact) -> bool:
        return True

    def describe(self) -> str:
        return "unconstrained"


Predicate = Union[SupplierMatch, AmountRange, Unconstrained]


@dataclass
class Rule:
    """Staff-authored classification rule."""

    id: str
    priority: int
    rule_type: RuleType
    account_item_id: Optional[str]
    tax_category_id: Optional[str]
    client_id: Optional[str] = None
    industry_id: Optional[str] = None
    supplier_pattern: Optional[str] = None
    # Stored and shown in the rule list, not used for matching
    transaction_pattern: Optional[str] = None
    amount_min: Optional[int] = None
    amount_max: Optional[int] = None
    status: RuleStatus = RuleStatus.ACTIVE
    created_at: str = ""  # ISO timestamp, used for tie-breaks
    updated_at: str = ""
    predicates: tuple[Predicate, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Blank owner ids mean no owner
        self.client_id = self.client_id or None
        self.industry_id = self.industry_id or None
        if self.client_id and self.industry_id:
            raise RuleValidationError(
                f"Rule {self.id}: client_id and industry_id are mutually exclusive"
            )
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise RuleValidationError(f"Rule {self.id}: priority must be an integer")
        if self.priority < 1:
            raise RuleValidationError(f"Rule {self.id}: priority must be positive")
        if (
            self.amount_min is not None
            and self.amount_max is not None
            and self.amount_min > self.amount_max
        ):
            raise RuleValidationError(f"Rule {self.id}: amount_min is greater than amount_max")
        try:
            self.rule_type = RuleType.parse(self.rule_type)
            self.status = RuleStatus(self.status)
        except (MalformedTransactionError, ValueError) as e:
            raise RuleValidationError(f"Rule {self.id}: {e}") from e
        self.predicates = self._build_predicates()

    def _build_predicates(self) -> tuple[Predicate, ...]:
        predicates: list[Predicate] = []
        if self.supplier_pattern and self.supplier_pattern.strip():
            predicates.append(SupplierMatch(self.supplier_pattern.strip()))
        if self.amount_min is not None or self.amount_max is not None:
            predicates.append(AmountRange(self.amount_min, self.amount_max))
        if not predicates:
            predicates.append(Unconstrained())
        return tuple(predicates)

    @property
    def scope(self) -> RuleScope:
        if self.client_id:
            return RuleScope.CLIENT
        if self.industry_id:
            return RuleScope.INDUSTRY
        return RuleScope.SHARED

    @property
    def is_active(self) -> bool:
        return self.status == RuleStatus.ACTIVE

    def matches(self, transaction: TransactionFact) -> bool:
        """Return True if every predicate holds for the transaction."""
        return all(predicate.holds(transaction) for predicate in self.predicates)

    def sort_key(self) -> tuple[int, str, str]:
        """Priority first, then creation order, then id."""
        return (self.priority, self.created_at, self.id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        return cls(
            id=data["id"],
            priority=int(data["priority"]),
            rule_type=data["rule_type"],
            account_item_id=data.get("account_item_id"),
            tax_category_id=data.get("tax_category_id"),
            client_id=data.get("client_id"),
            industry_id=data.get("industry_id"),
            supplier_pattern=data.get("supplier_pattern"),
            transaction_pattern=data.get("transaction_pattern"),
            amount_min=data.get("amount_min"),
            amount_max=data.get("amount_max"),
            status=data.get("status", RuleStatus.ACTIVE.value),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "rule_type": self.rule_type.value,
            "scope": self.scope.value,
            "client_id": self.client_id,
            "industry_id": self.industry_id,
            "supplier_pattern": self.supplier_pattern,
            "transaction_pattern": self.transaction_pattern,
            "amount_min": self.amount_min,
            "amount_max": self.amount_max,
            "account_item_id": self.account_item_id,
            "tax_category_id": self.tax_category_id,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
