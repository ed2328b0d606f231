"""Tests for per-client journal totals."""

import pytest

from auto_journal.exceptions import NotFoundError
from auto_journal.schemas import JournalEntry, JournalStatus, RuleType
from auto_journal.services import SummaryService


def save_entry(store, amount, account_item_id="acc-501", **overrides) -> JournalEntry:
    data = {
        "id": "",
        "client_id": "client-tanaka",
        "entry_date": "2024-11-18",
        "amount": amount,
        "account_item_id": account_item_id,
        "tax_category_id": "tax-standard-10",
    }
    data.update(overrides)
    return store.save_journal_entry(JournalEntry(**data))


@pytest.fixture
def service(store, driver_client) -> SummaryService:
    return SummaryService(store)


class TestSummaryService:
    """Tests for SummaryService.summarize_client."""

    def test_income_expense_and_difference(self, store, service):
        save_entry(store, 350000, "acc-401", rule_type=RuleType.INCOME)
        save_entry(store, 24000, "acc-501")
        save_entry(store, 12000, "acc-599", status=JournalStatus.APPROVED)
        save_entry(store, 12000, "acc-599", status=JournalStatus.EXPORTED)

        summary = service.summarize_client("client-tanaka")

        assert summary.entry_count == 4
        assert summary.pending_count == 1
        assert summary.income_total == 350000
        assert summary.expense_total == 48000
        assert summary.difference == 302000

    def test_account_item_breakdown(self, store, service):
        save_entry(store, 24000, "acc-501")
        save_entry(store, 8000, "acc-599")
        save_entry(store, 4000, "acc-599")
        save_entry(store, 12000, None)
        save_entry(store, 100000, "acc-401", rule_type=RuleType.INCOME)

        items = service.summarize_client("client-tanaka").account_items

        assert [(i.name, i.amount, i.percent) for i in items] == [
            ("燃料費", 24000, 50),
            ("未設定", 12000, 25),
            ("雑費", 12000, 25),
        ]
        assert items[2].entry_count == 2

    def test_no_entries(self, service):
        summary = service.summarize_client("client-tanaka")

        assert summary.entry_count == 0
        assert summary.difference == 0
        assert summary.account_items == []

    def test_other_clients_excluded(self, store, service):
        save_entry(store, 5000, client_id="client-suzuki")

        assert service.summarize_client("client-tanaka").entry_count == 0

    def test_unknown_client(self, service):
        with pytest.raises(NotFoundError):
            service.summarize_client("client-missing")
