"""Tests for the SQLite state store."""

import sqlite3

import pytest

from auto_journal.exceptions import ConflictError, NotFoundError, RuleValidationError
from auto_journal.schemas import (
    Category,
    JournalEntry,
    JournalStatus,
    OCRStatus,
    Provenance,
    RuleStatus,
    RuleType,
    WorkflowState,
)
from auto_journal.state_store import StateStore, seed_master_data


def make_entry(**overrides) -> JournalEntry:
    data = {
        "id": "",
        "client_id": "client-tanaka",
        "entry_date": "2024-11-18",
        "amount": 4800,
        "tax_amount": 436,
        "category": Category.BUSINESS,
        "supplier": "エネオス 渋谷店",
        "account_item_id": "acc-501",
        "tax_category_id": "tax-standard-10",
        "confidence": 1.0,
        "provenance": Provenance.RULE,
    }
    data.update(overrides)
    return JournalEntry(**data)


class TestSchema:
    """Tests for database initialization."""

    def test_creates_tables(self, temp_db):
        StateStore(temp_db)

        conn = sqlite3.connect(temp_db)
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        conn.close()

        assert {
            "industries",
            "clients",
            "account_items",
            "tax_categories",
            "rules",
            "documents",
            "journal_entries",
            "workflows",
        } <= tables

    def test_reopen_keeps_data(self, temp_db, make_rule):
        StateStore(temp_db).create_rule(make_rule("rule-1", 1))

        assert StateStore(temp_db).get_rule("rule-1") is not None

    def test_seed_is_idempotent(self, store):
        counts = seed_master_data(store)

        assert counts["account_items"] == len(store.list_account_items())
        assert store.find_account_item(name="燃料費").id == "acc-501"


class TestMasterData:
    """Tests for master data lookups."""

    def test_find_account_item_prefers_code(self, store):
        assert store.find_account_item(code="504", name="燃料費").id == "acc-504"

    def test_find_account_item_by_name(self, store):
        assert store.find_account_item(code="000", name="雑費").id == "acc-599"

    def test_find_account_item_missing(self, store):
        assert store.find_account_item(code=None, name="存在しない") is None

    def test_find_tax_category(self, store):
        assert store.find_tax_category("対象外").id == "tax-out-of-scope"
        assert store.find_tax_category("課税") is None

    def test_client_roundtrip(self, store, driver_client):
        client = store.get_client("client-tanaka")

        assert client.name == "田中太郎"
        assert client.use_custom_rules is True
        assert client.created_at


class TestRules:
    """Tests for rule persistence."""

    def test_create_assigns_id_and_timestamps(self, store, make_rule):
        stored = store.create_rule(make_rule("", 1, created_at=""))

        assert stored.id.startswith("rule-")
        assert stored.created_at
        assert stored.updated_at
        assert store.get_rule(stored.id) == stored

    def test_list_rules_ordered_by_priority(self, store, make_rule):
        store.create_rule(make_rule("rule-b", 5))
        store.create_rule(make_rule("rule-a", 1))
        store.create_rule(make_rule("rule-c", 5, created_at="2023-01-01T00:00:00Z"))

        assert [r.id for r in store.list_rules()] == ["rule-a", "rule-c", "rule-b"]

    def test_get_active_rules_filters_type_and_status(self, store, make_rule):
        store.create_rule(make_rule("rule-expense", 1))
        store.create_rule(make_rule("rule-income", 1, rule_type=RuleType.INCOME))
        store.create_rule(make_rule("rule-off", 1, status=RuleStatus.INACTIVE))

        assert [r.id for r in store.get_active_rules(RuleType.EXPENSE)] == ["rule-expense"]
        assert [r.id for r in store.get_active_rules("収入")] == ["rule-income"]

    def test_update_rule_revalidates(self, store, make_rule):
        store.create_rule(make_rule("rule-1", 1, client_id="client-a"))

        with pytest.raises(RuleValidationError):
            store.update_rule("rule-1", industry_id="ind-driver")

    def test_blank_client_id_stored_as_industry_rule(self, store, make_rule):
        store.create_rule(make_rule("rule-1", 1, client_id="", industry_id="ind-driver"))
        store.update_rule("rule-1", client_id="", priority=2)

        stored = store.get_rule("rule-1")
        assert stored.client_id is None
        assert stored.industry_id == "ind-driver"
        assert stored.priority == 2

    def test_update_rule_changes_priority(self, store, make_rule):
        store.create_rule(make_rule("rule-1", 1))

        updated = store.update_rule("rule-1", priority=7)

        assert updated.priority == 7
        assert store.get_rule("rule-1").priority == 7

    def test_update_missing_rule(self, store):
        with pytest.raises(NotFoundError):
            store.update_rule("rule-missing", priority=2)

    def test_deactivate_keeps_rule(self, store, make_rule):
        store.create_rule(make_rule("rule-1", 1))

        store.deactivate_rule("rule-1")

        assert store.get_rule("rule-1").status == RuleStatus.INACTIVE
        assert store.get_active_rules(RuleType.EXPENSE) == []

    def test_delete_rule(self, store, make_rule):
        store.create_rule(make_rule("rule-1", 1))

        assert store.delete_rule("rule-1") is True
        assert store.delete_rule("rule-1") is False


class TestDocuments:
    """Tests for document records."""

    def test_create_document_pending(self, store):
        document = store.create_document("client-tanaka", "receipt.jpg", "image/jpeg", 2048)

        assert document.id.startswith("doc-")
        assert store.get_document(document.id).ocr_status == OCRStatus.PENDING

    def test_ocr_status_and_exclusion(self, store):
        document = store.create_document("client-tanaka", "receipt.jpg")

        store.update_document_ocr_status(document.id, OCRStatus.FAILED, "blurry")
        store.set_document_excluded(document.id, True, "私用")

        stored = store.get_document(document.id)
        assert stored.ocr_status == OCRStatus.FAILED
        assert stored.ocr_error == "blurry"
        assert stored.is_excluded
        assert [d.id for d in store.list_documents("client-tanaka", excluded=True)] == [
            document.id
        ]


class TestJournalEntries:
    """Tests for journal entry persistence."""

    def test_save_assigns_id(self, store):
        entry = store.save_journal_entry(make_entry())

        assert entry.id.startswith("entry-")
        stored = store.get_journal_entry(entry.id)
        assert stored.amount == 4800
        assert stored.status == JournalStatus.PENDING
        assert stored.rule_type == RuleType.EXPENSE
        assert stored.provenance == Provenance.RULE

    def test_update_entry(self, store):
        entry = store.save_journal_entry(make_entry())
        entry.status = JournalStatus.APPROVED

        store.update_journal_entry(entry)

        assert store.get_journal_entry(entry.id).status == JournalStatus.APPROVED

    def test_update_missing_entry(self, store):
        with pytest.raises(NotFoundError):
            store.update_journal_entry(make_entry(id="entry-missing"))

    def test_list_filters(self, store):
        store.save_journal_entry(make_entry())
        store.save_journal_entry(make_entry(status=JournalStatus.APPROVED))
        store.save_journal_entry(make_entry(client_id="client-suzuki"))

        assert len(store.list_journal_entries(client_id="client-tanaka")) == 2
        assert len(store.list_journal_entries(status=JournalStatus.APPROVED)) == 1
        assert len(store.list_journal_entries()) == 3


class TestWorkflows:
    """Tests for workflow persistence."""

    def test_one_workflow_per_client(self, store):
        store.create_workflow(WorkflowState(id="wf-1", client_id="client-a", client_name="A"))

        with pytest.raises(ConflictError) as exc_info:
            store.create_workflow(WorkflowState(id="wf-2", client_id="client-a", client_name="A"))

        assert exc_info.value.existing_workflow_id == "wf-1"

    def test_supersede_replaces_existing(self, store):
        store.create_workflow(WorkflowState(id="wf-1", client_id="client-a", client_name="A"))

        store.create_workflow(
            WorkflowState(id="wf-2", client_id="client-a", client_name="A"), supersede=True
        )

        assert store.get_workflow("wf-1") is None
        assert store.get_workflow_by_client("client-a").id == "wf-2"

    def test_save_persists_progress(self, store):
        state = store.create_workflow(
            WorkflowState(id="wf-1", client_id="client-a", client_name="A")
        )
        state.current_step = 3
        state.add_completed(1)
        state.add_completed(2)
        state.data.document_ids.append("doc-1")

        assert store.save_workflow(state) is True

        loaded = store.get_workflow("wf-1")
        assert loaded.current_step == 3
        assert loaded.completed_steps == [1, 2]
        assert loaded.data.document_ids == ["doc-1"]

    def test_save_deleted_workflow(self, store):
        state = store.create_workflow(
            WorkflowState(id="wf-1", client_id="client-a", client_name="A")
        )
        store.delete_workflow("wf-1")

        assert store.save_workflow(state) is False


class TestStats:
    """Tests for statistics."""

    def test_stats(self, store, driver_client, make_rule):
        store.create_rule(make_rule("rule-1", 1))
        store.save_journal_entry(make_entry())
        document = store.create_document("client-tanaka", "a.jpg")
        store.update_document_ocr_status(document.id, OCRStatus.FAILED, "x")

        stats = store.get_stats()

        assert stats["clients"] == 1
        assert stats["rules_active"] == 1
        assert stats["documents_total"] == 1
        assert stats["documents_failed"] == 1
        assert stats["entries_pending"] == 1
        assert stats["entries_exported"] == 0
        assert stats["workflows_active"] == 0
