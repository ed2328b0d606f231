"""Test fixtures and utilities."""

from pathlib import Path

import pytest

from auto_journal.config import Config
from auto_journal.schemas import (
    Client,
    ClientContext,
    LineItem,
    Rule,
    RuleType,
    TransactionFact,
)
from auto_journal.state_store import StateStore, seed_master_data

# Sample receipt read by OCR (gas station, driver client)
SAMPLE_ENEOS_RECEIPT = {
    "amount": 4800,
    "date": "2024-11-18",
    "supplier": "エネオス 渋谷店",
    "tax_amount": 436,
    "items": [{"name": "レギュラーガソリン", "amount": 4800, "quantity": 30}],
}


def build_rule(rule_id: str, priority: int, **overrides) -> Rule:
    """Build an active expense rule; overrides replace any field."""
    data = {
        "id": rule_id,
        "priority": priority,
        "rule_type": RuleType.EXPENSE,
        "account_item_id": "acc-599",
        "tax_category_id": "tax-standard-10",
        "created_at": "2024-01-01T00:00:00Z",
    }
    data.update(overrides)
    return Rule(**data)


@pytest.fixture
def eneos_receipt() -> dict:
    """OCR output for the sample gas station receipt."""
    return dict(SAMPLE_ENEOS_RECEIPT)


@pytest.fixture
def make_rule():
    """Factory for rules with sensible defaults."""
    return build_rule


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_state.db"


@pytest.fixture
def store(temp_db) -> StateStore:
    """State store seeded with default master data."""
    state_store = StateStore(temp_db)
    seed_master_data(state_store)
    return state_store


@pytest.fixture
def config(temp_db) -> Config:
    """Default config pointing at the temporary database."""
    return Config(state_db_path=temp_db)


@pytest.fixture
def driver_client(store) -> Client:
    """Driver client who opted into custom rules."""
    client = Client(
        id="client-tanaka",
        name="田中太郎",
        industry_id="ind-driver",
        use_custom_rules=True,
    )
    store.upsert_client(client)
    return client


@pytest.fixture
def driver_context() -> ClientContext:
    """Classification context of the driver client."""
    return ClientContext(
        client_id="client-tanaka",
        industry_id="ind-driver",
        use_custom_rules=True,
        industry_name="ドライバー",
    )


@pytest.fixture
def eneos_transaction() -> TransactionFact:
    """Gas station receipt: 4,800 yen including 436 yen tax."""
    return TransactionFact(
        amount=4800,
        date="2024-11-18",
        supplier_text="エネオス 渋谷店",
        tax_amount=436,
        line_items=(LineItem(name="レギュラーガソリン", amount=4800, quantity=30),),
    )
