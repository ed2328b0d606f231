"""Per-client journal totals for the reconcile step.

Totals cover every stored entry of the client (pending, approved and
exported). The account item breakdown is over expenses only, each item's
share taken against the expense total.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from auto_journal.exceptions import NotFoundError
from auto_journal.schemas import JournalStatus, RuleType

if TYPE_CHECKING:
    from auto_journal.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class AccountItemTotal:
    """Expense total for one account item."""

    account_item_id: str | None
    name: str
    amount: int
    entry_count: int
    percent: int  # Share of the expense total, rounded


@dataclass
class ClientSummary:
    """Journal totals for one client."""

    client_id: str
    entry_count: int = 0
    income_total: int = 0
    expense_total: int = 0
    pending_count: int = 0
    account_items: list[AccountItemTotal] = field(default_factory=list)

    @property
    def difference(self) -> int:
        """Income minus expenses."""
        return self.income_total - self.expense_total


class SummaryService:
    """Aggregate a client's journal entries."""

    UNASSIGNED_NAME = "未設定"

    def __init__(self, state_store: StateStore) -> None:
        self.store = state_store

    def summarize_client(self, client_id: str) -> ClientSummary:
        """Build totals for one client.

        Raises:
            NotFoundError: If the client does not exist.
        """
        if self.store.get_client(client_id) is None:
            raise NotFoundError("client", client_id)

        entries = self.store.list_journal_entries(client_id=client_id)
        summary = ClientSummary(client_id=client_id, entry_count=len(entries))

        by_item: dict[str | None, list[int]] = {}
        for entry in entries:
            if entry.status == JournalStatus.PENDING:
                summary.pending_count += 1
            if entry.rule_type == RuleType.INCOME:
                summary.income_total += entry.amount
                continue
            summary.expense_total += entry.amount
            by_item.setdefault(entry.account_item_id, []).append(entry.amount)

        for account_item_id, amounts in by_item.items():
            amount = sum(amounts)
            percent = round(amount * 100 / summary.expense_total) if summary.expense_total else 0
            summary.account_items.append(
                AccountItemTotal(
                    account_item_id=account_item_id,
                    name=self._account_item_name(account_item_id),
                    amount=amount,
                    entry_count=len(amounts),
                    percent=percent,
                )
            )
        summary.account_items.sort(key=lambda item: (-item.amount, item.name))

        logger.debug(
            "Summary for client %s: %d entries, income %d, expense %d",
            client_id,
            summary.entry_count,
            summary.income_total,
            summary.expense_total,
        )
        return summary

    def _account_item_name(self, account_item_id: str | None) -> str:
        if not account_item_id:
            return self.UNASSIGNED_NAME
        item = self.store.get_account_item(account_item_id)
        return item.name if item else account_item_id
