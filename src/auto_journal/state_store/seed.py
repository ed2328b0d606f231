"""
Default master data for a fresh state database.

Ids match the classification fallback defaults in config.py.
"""

import logging

from ..schemas import AccountItem, Industry, TaxCategory
from .sqlite_store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRIES = [
    Industry(id="ind-driver", code="driver", name="ドライバー"),
    Industry(id="ind-liver", code="liver", name="ライバー"),
    Industry(id="ind-freelance", code="freelance", name="フリーランス"),
]

DEFAULT_ACCOUNT_ITEMS = [
    AccountItem(id="acc-501", code="501", name="燃料費", category="経費"),
    AccountItem(id="acc-502", code="502", name="車両費", category="経費"),
    AccountItem(id="acc-503", code="503", name="消耗品費", category="経費"),
    AccountItem(id="acc-504", code="504", name="通信費", category="経費"),
    AccountItem(id="acc-505", code="505", name="接待交際費", category="経費"),
    AccountItem(id="acc-599", code="599", name="雑費", category="経費"),
    AccountItem(id="acc-401", code="401", name="売上高", category="収益"),
]

DEFAULT_TAX_CATEGORIES = [
    TaxCategory(
        id="tax-standard-10",
        name="課税仕入 10%",
        applicable_to_income=False,
        applicable_to_expense=True,
    ),
    TaxCategory(
        id="tax-reduced-8",
        name="課税仕入 8%（軽減）",
        applicable_to_income=False,
        applicable_to_expense=True,
    ),
    TaxCategory(
        id="tax-sales-10",
        name="課税売上 10%",
        applicable_to_income=True,
        applicable_to_expense=False,
    ),
    TaxCategory(id="tax-out-of-scope", name="対象外"),
]


def seed_master_data(store: StateStore) -> dict[str, int]:
    """Insert or refresh the default industries, account items and tax categories."""
    for industry in DEFAULT_INDUSTRIES:
        store.upsert_industry(industry)
    for item in DEFAULT_ACCOUNT_ITEMS:
        store.upsert_account_item(item)
    for tax_category in DEFAULT_TAX_CATEGORIES:
        store.upsert_tax_category(tax_category)

    counts = {
        "industries": len(DEFAULT_INDUSTRIES),
        "account_items": len(DEFAULT_ACCOUNT_ITEMS),
        "tax_categories": len(DEFAULT_TAX_CATEGORIES),
    }
    logger.info("Seeded master data: %s", counts)
    return counts
