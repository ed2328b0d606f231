"""
SQLite-based state store implementation.

Tables:
- industries, clients, account_items, tax_categories: master data
- rules: classification rules (active and inactive)
- documents: uploaded receipts and their OCR status
- journal_entries: classified, reviewed and exported entries
- workflows: per-client workflow progress (UNIQUE client_id)
"""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from ..exceptions import ConflictError, NotFoundError
from ..schemas import (
    AccountItem,
    Client,
    Document,
    Industry,
    JournalEntry,
    JournalStatus,
    OCRStatus,
    Rule,
    RuleStatus,
    RuleType,
    TaxCategory,
    WorkflowState,
)

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO timestamp with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_id(prefix: str) -> str:
    """Generate a prefixed record id (e.g. wf-1a2b3c4d5e6f)."""
    return f"{prefix}-{uuid4().hex[:12]}"


class StateStore:
    """
    SQLite-based record store for the bookkeeping pipeline.

    Provides persistent tracking of:
    - Master data (clients, industries, account items, tax categories)
    - Classification rules
    - Uploaded documents
    - Journal entries
    - Workflow progress

    Thread-safe for single-writer scenarios.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str):
        """
        Initialize state store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS industries (
                    id TEXT PRIMARY KEY,
                    code TEXT NOT NULL,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'active'
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clients (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    industry_id TEXT,
                    use_custom_rules INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS account_items (
                    id TEXT PRIMARY KEY,
                    code TEXT NOT NULL,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT ''
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tax_categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    applicable_to_income INTEGER NOT NULL DEFAULT 1,
                    applicable_to_expense INTEGER NOT NULL DEFAULT 1
                )
            """
            )

            # Exactly one of client_id / industry_id may be set (scope tier)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rules (
                    id TEXT PRIMARY KEY,
                    priority INTEGER NOT NULL CHECK (priority > 0),
                    rule_type TEXT NOT NULL,
                    client_id TEXT,
                    industry_id TEXT,
                    supplier_pattern TEXT,
                    transaction_pattern TEXT,
                    amount_min INTEGER,
                    amount_max INTEGER,
                    account_item_id TEXT,
                    tax_category_id TEXT,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK (client_id IS NULL OR industry_id IS NULL)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    client_id TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    file_type TEXT,
                    file_size INTEGER,
                    ocr_status TEXT NOT NULL,
                    ocr_error TEXT,
                    is_excluded INTEGER NOT NULL DEFAULT 0,
                    exclusion_reason TEXT,
                    upload_date TEXT NOT NULL
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS journal_entries (
                    id TEXT PRIMARY KEY,
                    document_id TEXT,
                    client_id TEXT NOT NULL,
                    entry_date TEXT NOT NULL,
                    rule_type TEXT NOT NULL,
                    category TEXT NOT NULL,
                    supplier TEXT,
                    account_item_id TEXT,
                    tax_category_id TEXT,
                    amount INTEGER NOT NULL,
                    tax_amount INTEGER,
                    notes TEXT,
                    status TEXT NOT NULL,
                    confidence REAL,
                    provenance TEXT,
                    matched_rule_id TEXT,
                    reviewed_at TEXT,
                    exported_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )

            # One workflow per client
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS workflows (
                    id TEXT PRIMARY KEY,
                    client_id TEXT NOT NULL UNIQUE,
                    client_name TEXT NOT NULL,
                    current_step INTEGER NOT NULL CHECK (current_step BETWEEN 1 AND 8),
                    completed_steps TEXT NOT NULL,  -- JSON array
                    data_json TEXT NOT NULL,
                    last_updated TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_rules_type_status ON rules(rule_type, status)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_client ON journal_entries(client_id)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_status ON journal_entries(status)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_client ON documents(client_id)")

            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,)
            )

    # Master data methods

    def upsert_industry(self, industry: Industry) -> None:
        """Insert or update an industry."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO industries (id, code, name, status) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET code = excluded.code, name = excluded.name,
                    status = excluded.status
            """,
                (industry.id, industry.code, industry.name, industry.status),
            )

    def get_industry(self, industry_id: str) -> Industry | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM industries WHERE id = ?", (industry_id,)).fetchone()
            return Industry(**dict(row)) if row else None

    def list_industries(self) -> list[Industry]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM industries ORDER BY code").fetchall()
            return [Industry(**dict(row)) for row in rows]

    def upsert_client(self, client: Client) -> None:
        """Insert or update a client."""
        created_at = client.created_at or utc_now()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO clients (id, name, industry_id, use_custom_rules, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name,
                    industry_id = excluded.industry_id,
                    use_custom_rules = excluded.use_custom_rules,
                    status = excluded.status
            """,
                (
                    client.id,
                    client.name,
                    client.industry_id,
                    int(client.use_custom_rules),
                    client.status,
                    created_at,
                ),
            )

    def get_client(self, client_id: str) -> Client | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
            return self._client_from_row(row) if row else None

    def list_clients(self) -> list[Client]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM clients ORDER BY created_at DESC").fetchall()
            return [self._client_from_row(row) for row in rows]

    @staticmethod
    def _client_from_row(row: sqlite3.Row) -> Client:
        return Client(
            id=row["id"],
            name=row["name"],
            industry_id=row["industry_id"],
            use_custom_rules=bool(row["use_custom_rules"]),
            status=row["status"],
            created_at=row["created_at"],
        )

    def upsert_account_item(self, item: AccountItem) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO account_items (id, code, name, category) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET code = excluded.code, name = excluded.name,
                    category = excluded.category
            """,
                (item.id, item.code, item.name, item.category),
            )

    def get_account_item(self, item_id: str) -> AccountItem | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM account_items WHERE id = ?", (item_id,)).fetchone()
            return AccountItem(**dict(row)) if row else None

    def find_account_item(
        self, code: str | None = None, name: str | None = None
    ) -> AccountItem | None:
        """Find an account item by code first, then by exact name."""
        with self._transaction() as conn:
            if code:
                row = conn.execute(
                    "SELECT * FROM account_items WHERE code = ? ORDER BY id LIMIT 1", (code,)
                ).fetchone()
                if row:
                    return AccountItem(**dict(row))
            if name:
                row = conn.execute(
                    "SELECT * FROM account_items WHERE name = ? ORDER BY id LIMIT 1", (name,)
                ).fetchone()
                if row:
                    return AccountItem(**dict(row))
        return None

    def list_account_items(self) -> list[AccountItem]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM account_items ORDER BY code").fetchall()
            return [AccountItem(**dict(row)) for row in rows]

    def upsert_tax_category(self, tax_category: TaxCategory) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO tax_categories (id, name, applicable_to_income, applicable_to_expense)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name,
                    applicable_to_income = excluded.applicable_to_income,
                    applicable_to_expense = excluded.applicable_to_expense
            """,
                (
                    tax_category.id,
                    tax_category.name,
                    int(tax_category.applicable_to_income),
                    int(tax_category.applicable_to_expense),
                ),
            )

    def get_tax_category(self, tax_category_id: str) -> TaxCategory | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM tax_categories WHERE id = ?", (tax_category_id,)
            ).fetchone()
            return self._tax_category_from_row(row) if row else None

    def find_tax_category(self, name: str) -> TaxCategory | None:
        """Find a tax category by exact name."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM tax_categories WHERE name = ? ORDER BY id LIMIT 1", (name,)
            ).fetchone()
            return self._tax_category_from_row(row) if row else None

    def list_tax_categories(self) -> list[TaxCategory]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM tax_categories ORDER BY id").fetchall()
            return [self._tax_category_from_row(row) for row in rows]

    @staticmethod
    def _tax_category_from_row(row: sqlite3.Row) -> TaxCategory:
        return TaxCategory(
            id=row["id"],
            name=row["name"],
            applicable_to_income=bool(row["applicable_to_income"]),
            applicable_to_expense=bool(row["applicable_to_expense"]),
        )

    # Rule methods

    def create_rule(self, rule: Rule) -> Rule:
        """
        Persist a new rule.

        Assigns an id and timestamps when missing. Returns the stored rule.
        """
        now = utc_now()
        data = rule.to_dict()
        data["id"] = rule.id or new_id("rule")
        data["created_at"] = rule.created_at or now
        data["updated_at"] = now
        stored = Rule.from_dict(data)

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO rules
                (id, priority, rule_type, client_id, industry_id, supplier_pattern,
                 transaction_pattern, amount_min, amount_max, account_item_id, tax_category_id,
                 status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    stored.id,
                    stored.priority,
                    stored.rule_type.value,
                    stored.client_id,
                    stored.industry_id,
                    stored.supplier_pattern,
                    stored.transaction_pattern,
                    stored.amount_min,
                    stored.amount_max,
                    stored.account_item_id,
                    stored.tax_category_id,
                    stored.status.value,
                    stored.created_at,
                    stored.updated_at,
                ),
            )
        logger.info(
            "Created %s rule %s (priority %d, %s)",
            stored.scope.value,
            stored.id,
            stored.priority,
            stored.rule_type.value,
        )
        return stored

    def update_rule(self, rule_id: str, **changes: Any) -> Rule:
        """
        Update fields of an existing rule.

        The updated rule is re-validated before it is written.

        Raises:
            NotFoundError: If the rule does not exist
            RuleValidationError: If the change breaks a rule invariant
        """
        current = self.get_rule(rule_id)
        if current is None:
            raise NotFoundError("rule", rule_id)

        data = current.to_dict()
        for key, value in changes.items():
            if key in ("id", "created_at", "scope"):
                continue
            data[key] = value.value if hasattr(value, "value") else value
        data["updated_at"] = utc_now()
        updated = Rule.from_dict(data)

        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE rules
                SET priority = ?, rule_type = ?, client_id = ?, industry_id = ?,
                    supplier_pattern = ?, transaction_pattern = ?, amount_min = ?,
                    amount_max = ?, account_item_id = ?, tax_category_id = ?, status = ?,
                    updated_at = ?
                WHERE id = ?
            """,
                (
                    updated.priority,
                    updated.rule_type.value,
                    updated.client_id,
                    updated.industry_id,
                    updated.supplier_pattern,
                    updated.transaction_pattern,
                    updated.amount_min,
                    updated.amount_max,
                    updated.account_item_id,
                    updated.tax_category_id,
                    updated.status.value,
                    updated.updated_at,
                    rule_id,
                ),
            )
        return updated

    def deactivate_rule(self, rule_id: str) -> Rule:
        """Mark a rule inactive; it stays stored for audit."""
        return self.update_rule(rule_id, status=RuleStatus.INACTIVE)

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule. Returns False if it did not exist."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM rules WHERE id = ?", (rule_id,))
            return cursor.rowcount > 0

    def get_rule(self, rule_id: str) -> Rule | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM rules WHERE id = ?", (rule_id,)).fetchone()
            return Rule.from_dict(dict(row)) if row else None

    def list_rules(self) -> list[Rule]:
        """All rules, ordered by priority like the rule master list."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM rules ORDER BY priority ASC, created_at ASC, id ASC"
            ).fetchall()
            return [Rule.from_dict(dict(row)) for row in rows]

    def get_active_rules(self, rule_type: RuleType) -> list[Rule]:
        """All active rules of one type, in no particular order."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM rules WHERE rule_type = ? AND status = ?",
                (RuleType.parse(rule_type).value, RuleStatus.ACTIVE.value),
            ).fetchall()
            return [Rule.from_dict(dict(row)) for row in rows]

    # Document methods

    def create_document(
        self,
        client_id: str,
        file_name: str,
        file_type: str | None = None,
        file_size: int | None = None,
    ) -> Document:
        """Record an uploaded document with OCR pending."""
        document = Document(
            id=new_id("doc"),
            client_id=client_id,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            upload_date=utc_now()[:10],
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO documents
                (id, client_id, file_name, file_type, file_size, ocr_status, upload_date)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    document.id,
                    client_id,
                    file_name,
                    file_type,
                    file_size,
                    document.ocr_status.value,
                    document.upload_date,
                ),
            )
        return document

    def get_document(self, document_id: str) -> Document | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM documents WHERE id = ?", (document_id,)).fetchone()
            return self._document_from_row(row) if row else None

    def list_documents(self, client_id: str, excluded: bool | None = None) -> list[Document]:
        """Documents of a client, newest upload first."""
        query = "SELECT * FROM documents WHERE client_id = ?"
        params: list[Any] = [client_id]
        if excluded is not None:
            query += " AND is_excluded = ?"
            params.append(int(excluded))
        query += " ORDER BY upload_date DESC, id"
        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._document_from_row(row) for row in rows]

    def update_document_ocr_status(
        self, document_id: str, status: OCRStatus, error: str | None = None
    ) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE documents SET ocr_status = ?, ocr_error = ? WHERE id = ?",
                (OCRStatus(status).value, error, document_id),
            )
            return cursor.rowcount > 0

    def set_document_excluded(
        self, document_id: str, excluded: bool, reason: str | None = None
    ) -> bool:
        """Flag a document as out of scope for bookkeeping (対象外証憑)."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE documents SET is_excluded = ?, exclusion_reason = ? WHERE id = ?",
                (int(excluded), reason if excluded else None, document_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _document_from_row(row: sqlite3.Row) -> Document:
        return Document(
            id=row["id"],
            client_id=row["client_id"],
            file_name=row["file_name"],
            file_type=row["file_type"],
            file_size=row["file_size"],
            ocr_status=row["ocr_status"],
            ocr_error=row["ocr_error"],
            is_excluded=bool(row["is_excluded"]),
            exclusion_reason=row["exclusion_reason"],
            upload_date=row["upload_date"],
        )

    # Journal entry methods

    def save_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        """Insert a new journal entry. Assigns id and timestamps when missing."""
        now = utc_now()
        entry.id = entry.id or new_id("entry")
        entry.created_at = entry.created_at or now
        entry.updated_at = now
        data = entry.to_dict()
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)

        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO journal_entries ({columns}) VALUES ({placeholders})",
                list(data.values()),
            )
        return entry

    def update_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        """
        Overwrite a stored journal entry.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry.updated_at = utc_now()
        data = entry.to_dict()
        data.pop("id")
        data.pop("created_at")
        assignments = ", ".join(f"{key} = ?" for key in data)

        with self._transaction() as conn:
            cursor = conn.execute(
                f"UPDATE journal_entries SET {assignments} WHERE id = ?",
                [*data.values(), entry.id],
            )
            if cursor.rowcount == 0:
                raise NotFoundError("journal entry", entry.id)
        return entry

    def get_journal_entry(self, entry_id: str) -> JournalEntry | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM journal_entries WHERE id = ?", (entry_id,)
            ).fetchone()
            return JournalEntry.from_dict(dict(row)) if row else None

    def list_journal_entries(
        self,
        client_id: str | None = None,
        status: JournalStatus | None = None,
    ) -> list[JournalEntry]:
        """Journal entries, newest entry date first."""
        query = "SELECT * FROM journal_entries WHERE 1 = 1"
        params: list[Any] = []
        if client_id is not None:
            query += " AND client_id = ?"
            params.append(client_id)
        if status is not None:
            query += " AND status = ?"
            params.append(JournalStatus(status).value)
        query += " ORDER BY entry_date DESC, created_at DESC"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [JournalEntry.from_dict(dict(row)) for row in rows]

    def delete_journal_entry(self, entry_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM journal_entries WHERE id = ?", (entry_id,))
            return cursor.rowcount > 0

    # Workflow methods

    def create_workflow(self, state: WorkflowState, supersede: bool = False) -> WorkflowState:
        """
        Persist a new workflow.

        Args:
            state: Workflow to store
            supersede: Replace any existing workflow of the same client

        Raises:
            ConflictError: If the client already has a workflow and supersede is False
        """
        with self._transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM workflows WHERE client_id = ?", (state.client_id,)
            ).fetchone()
            if existing:
                if not supersede:
                    raise ConflictError(state.client_id, existing["id"])
                conn.execute("DELETE FROM workflows WHERE id = ?", (existing["id"],))

            conn.execute(
                """
                INSERT INTO workflows
                (id, client_id, client_name, current_step, completed_steps, data_json,
                 last_updated, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    state.id,
                    state.client_id,
                    state.client_name,
                    state.current_step,
                    json.dumps(state.completed_steps),
                    json.dumps(state.data.to_dict()),
                    state.last_updated,
                    state.created_at,
                ),
            )
        return state

    def save_workflow(self, state: WorkflowState) -> bool:
        """Write workflow progress. Returns False if the workflow no longer exists."""
        state.last_updated = utc_now()
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE workflows
                SET client_name = ?, current_step = ?, completed_steps = ?, data_json = ?,
                    last_updated = ?
                WHERE id = ?
            """,
                (
                    state.client_name,
                    state.current_step,
                    json.dumps(state.completed_steps),
                    json.dumps(state.data.to_dict()),
                    state.last_updated,
                    state.id,
                ),
            )
            return cursor.rowcount > 0

    def get_workflow(self, workflow_id: str) -> WorkflowState | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM workflows WHERE id = ?", (workflow_id,)).fetchone()
            return WorkflowState.from_row(row) if row else None

    def get_workflow_by_client(self, client_id: str) -> WorkflowState | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM workflows WHERE client_id = ?", (client_id,)
            ).fetchone()
            return WorkflowState.from_row(row) if row else None

    def list_workflows(self) -> list[WorkflowState]:
        """All persisted workflows, most recently touched first."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM workflows ORDER BY last_updated DESC").fetchall()
            return [WorkflowState.from_row(row) for row in rows]

    def delete_workflow(self, workflow_id: str) -> bool:
        """Remove a workflow. Returns False if it did not exist."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM workflows WHERE id = ?", (workflow_id,))
            return cursor.rowcount > 0

    # Statistics

    def get_stats(self) -> dict[str, Any]:
        """Get pipeline statistics."""
        with self._transaction() as conn:
            stats: dict[str, Any] = {}

            stats["clients"] = conn.execute("SELECT COUNT(*) FROM clients").fetchone()[0]
            stats["rules_active"] = conn.execute(
                "SELECT COUNT(*) FROM rules WHERE status = 'active'"
            ).fetchone()[0]
            stats["documents_total"] = conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
            stats["documents_failed"] = conn.execute(
                "SELECT COUNT(*) FROM documents WHERE ocr_status = 'failed'"
            ).fetchone()[0]
            stats["documents_excluded"] = conn.execute(
                "SELECT COUNT(*) FROM documents WHERE is_excluded = 1"
            ).fetchone()[0]

            for status in JournalStatus:
                stats[f"entries_{status.value}"] = conn.execute(
                    "SELECT COUNT(*) FROM journal_entries WHERE status = ?", (status.value,)
                ).fetchone()[0]

            stats["workflows_active"] = conn.execute(
                "SELECT COUNT(*) FROM workflows"
            ).fetchone()[0]

            return stats
