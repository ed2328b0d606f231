"""
Staff review of generated journal entries.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..exceptions import NotFoundError
from ..schemas import Category, JournalEntry, JournalStatus, Provenance
from ..state_store import StateStore, utc_now
from ..workflow import WorkflowStateMachine

logger = logging.getLogger(__name__)

# Fields staff may change during review
EDITABLE_FIELDS = (
    "account_item_id",
    "tax_category_id",
    "category",
    "notes",
    "supplier",
    "entry_date",
    "amount",
    "tax_amount",
)


class ReviewDecision(str, Enum):
    """Staff decision on a pending journal entry."""

    ACCEPTED = "ACCEPTED"  # Approve as-is
    EDITED = "EDITED"  # Approve with edits
    REJECTED = "REJECTED"  # Delete the entry
    SKIPPED = "SKIPPED"  # Leave pending, review later


@dataclass
class ReviewResult:
    """Outcome of recording one decision."""

    decision: ReviewDecision
    entry: Optional[JournalEntry]
    changes_made: list[str] = field(default_factory=list)


class JournalReview:
    """
    Manages staff review of journal entries.

    Responsibilities:
    - List entries awaiting review
    - Apply manual edits (provenance becomes manual)
    - Record approve / reject decisions
    - Flag the client's workflow once nothing is left to review
    """

    def __init__(self, store: StateStore, workflow: Optional[WorkflowStateMachine] = None):
        """Initialize with state store and an optional workflow state machine."""
        self.store = store
        self.workflow = workflow

    def get_pending_reviews(self, client_id: Optional[str] = None) -> list[JournalEntry]:
        """Get all entries pending review, optionally for one client."""
        return self.store.list_journal_entries(client_id=client_id, status=JournalStatus.PENDING)

    def apply_edit(self, entry: JournalEntry, field_name: str, value: str) -> JournalEntry:
        """
        Apply a single field edit to an entry.

        Any edit turns the classification into a manual one with full confidence.

        Args:
            entry: The entry to edit
            field_name: Field name (see EDITABLE_FIELDS)
            value: New value as entered by staff

        Returns:
            Updated entry (not yet persisted)
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field cannot be edited: {field_name}")

        if field_name in ("amount", "tax_amount"):
            cleaned = value.replace(",", "").replace("¥", "").strip()
            if field_name == "tax_amount" and not cleaned:
                entry.tax_amount = None
            else:
                setattr(entry, field_name, int(cleaned))
        elif field_name == "category":
            entry.category = Category.parse(value)
        else:
            setattr(entry, field_name, value or None)

        entry.provenance = Provenance.MANUAL
        entry.confidence = 1.0
        return entry

    def record_decision(
        self,
        entry_id: str,
        decision: ReviewDecision,
        updated_entry: Optional[JournalEntry] = None,
    ) -> ReviewResult:
        """
        Record a review decision.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self.store.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError("journal entry", entry_id)

        if decision == ReviewDecision.SKIPPED:
            return ReviewResult(decision=decision, entry=entry)

        if decision == ReviewDecision.REJECTED:
            self.store.delete_journal_entry(entry_id)
            logger.info("Rejected journal entry %s", entry_id)
            self._flag_review_completed(entry.client_id)
            return ReviewResult(decision=decision, entry=None)

        changes: list[str] = []
        if updated_entry is not None:
            before = entry.to_dict()
            after = updated_entry.to_dict()
            changes = [name for name in EDITABLE_FIELDS if before[name] != after[name]]
            entry = updated_entry

        entry.status = JournalStatus.APPROVED
        entry.reviewed_at = utc_now()
        self.store.update_journal_entry(entry)
        logger.info("Approved journal entry %s (%d field(s) edited)", entry_id, len(changes))
        self._flag_review_completed(entry.client_id)
        return ReviewResult(decision=decision, entry=entry, changes_made=changes)

    def approve(self, entry_id: str) -> ReviewResult:
        return self.record_decision(entry_id, ReviewDecision.ACCEPTED)

    def reject(self, entry_id: str) -> ReviewResult:
        return self.record_decision(entry_id, ReviewDecision.REJECTED)

    def _flag_review_completed(self, client_id: str) -> None:
        """Set review_completed on the client's workflow once no entry is pending."""
        if self.workflow is None or self.get_pending_reviews(client_id):
            return
        state = self.workflow.get_by_client(client_id)
        if state is None or state.data.review_completed:
            return
        self.workflow.update_data(state.id, review_completed=True)
        logger.info("Review completed for client %s (workflow %s)", client_id, state.id)
