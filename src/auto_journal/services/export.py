"""Export of approved journal entries to an accounting sink.

The sink is an external capability. ExportService only decides what is sent
and records the outcome: accepted entries become exported, rejected ones stay
approved so they can be fixed and sent again.
"""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from auto_journal.exceptions import ExportError
from auto_journal.schemas import JournalEntry, JournalStatus, RuleType
from auto_journal.state_store import utc_now

if TYPE_CHECKING:
    from auto_journal.state_store import StateStore
    from auto_journal.workflow import WorkflowStateMachine

logger = logging.getLogger(__name__)

# Column layout of the freee transaction import file
CSV_COLUMNS = [
    "収支区分",
    "管理番号",
    "発生日",
    "取引先",
    "勘定科目",
    "税区分",
    "金額",
    "税額",
    "備考",
    "事業区分",
]


@dataclass
class ExportOutcome:
    """Result reported by an export sink."""

    accepted_count: int = 0
    rejected_count: int = 0
    errors: list[str] = field(default_factory=list)
    accepted_ids: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Return True if nothing was rejected."""
        return self.rejected_count == 0 and not self.errors


class ExportSink(ABC):
    """Destination for approved journal entries."""

    @abstractmethod
    def export(self, batch: list[JournalEntry]) -> ExportOutcome:
        """
        Send a batch of entries.

        Returns:
            ExportOutcome listing the accepted entry ids

        Raises:
            ExportError: If the whole batch was refused
        """
        pass


class CsvExportSink(ExportSink):
    """Write entries to a freee-style import CSV file.

    Entries without an account item are rejected; all others are written.
    """

    def __init__(
        self,
        output_path: Path,
        state_store: StateStore | None = None,
        encoding: str = "utf-8-sig",
    ) -> None:
        """Initialize the CSV sink.

        Args:
            output_path: CSV file to write (overwritten).
            state_store: Optional store used to print master data names instead of ids.
            encoding: File encoding. freee also accepts shift_jis.
        """
        self.output_path = Path(output_path)
        self.store = state_store
        self.encoding = encoding

    def export(self, batch: list[JournalEntry]) -> ExportOutcome:
        outcome = ExportOutcome()
        rows = []
        for entry in batch:
            if not entry.account_item_id:
                outcome.rejected_count += 1
                outcome.errors.append(f"{entry.id}: account item missing")
                continue
            rows.append(self._to_row(entry))
            outcome.accepted_ids.append(entry.id)
        outcome.accepted_count = len(outcome.accepted_ids)

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "w", newline="", encoding=self.encoding) as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                writer.writeheader()
                writer.writerows(rows)
        except (OSError, UnicodeEncodeError) as e:
            raise ExportError(f"Could not write {self.output_path}: {e}") from e

        return outcome

    def _to_row(self, entry: JournalEntry) -> dict[str, str]:
        return {
            "収支区分": "収入" if entry.rule_type == RuleType.INCOME else "支出",
            "管理番号": entry.id,
            "発生日": entry.entry_date,
            "取引先": entry.supplier or "",
            "勘定科目": self._account_item_name(entry.account_item_id),
            "税区分": self._tax_category_name(entry.tax_category_id),
            "金額": str(entry.amount),
            "税額": "" if entry.tax_amount is None else str(entry.tax_amount),
            "備考": entry.notes or "",
            "事業区分": entry.category.label,
        }

    def _account_item_name(self, account_item_id: str | None) -> str:
        if not account_item_id:
            return ""
        item = self.store.get_account_item(account_item_id) if self.store else None
        return item.name if item else account_item_id

    def _tax_category_name(self, tax_category_id: str | None) -> str:
        if not tax_category_id:
            return ""
        tax_category = self.store.get_tax_category(tax_category_id) if self.store else None
        return tax_category.name if tax_category else tax_category_id


class ExportService:
    """Send a client's approved entries to an export sink."""

    def __init__(
        self,
        state_store: StateStore,
        sink: ExportSink,
        workflow: WorkflowStateMachine | None = None,
    ) -> None:
        """Initialize the export service.

        Args:
            state_store: Store holding journal entries.
            sink: Export destination.
            workflow: Optional state machine used to flag the export as done.
        """
        self.store = state_store
        self.sink = sink
        self.workflow = workflow

    def export_client(self, client_id: str, workflow_id: str | None = None) -> ExportOutcome:
        """Export every approved entry of a client.

        Raises:
            ExportError: If the sink refused the whole batch.
        """
        batch = self.store.list_journal_entries(client_id=client_id, status=JournalStatus.APPROVED)
        if not batch:
            logger.info("No approved entries to export for client %s", client_id)
            return ExportOutcome()

        try:
            outcome = self.sink.export(batch)
        except ExportError:
            logger.error("Export sink refused %d entries for client %s", len(batch), client_id)
            raise

        exported_at = utc_now()
        by_id = {entry.id: entry for entry in batch}
        for entry_id in outcome.accepted_ids:
            entry = by_id.get(entry_id)
            if entry is None:
                continue
            entry.status = JournalStatus.EXPORTED
            entry.exported_at = exported_at
            self.store.update_journal_entry(entry)

        for error in outcome.errors:
            logger.warning("Export rejected: %s", error)
        logger.info(
            "Exported %d entries for client %s (%d rejected)",
            outcome.accepted_count,
            client_id,
            outcome.rejected_count,
        )

        if workflow_id and self.workflow is not None and outcome.success:
            self.workflow.update_data(workflow_id, export_completed=True)

        return outcome
