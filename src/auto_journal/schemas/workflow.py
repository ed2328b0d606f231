"""
Workflow progress record for one client.
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class WorkflowStep(IntEnum):
    """The eight ordered workflow steps."""

    SELECT_CLIENT = 1
    UPLOAD = 2
    OCR = 3
    CLASSIFY_REVIEW = 4
    EXPORT = 5
    RECONCILE = 6
    EXCEPTIONS = 7
    COMPLETE = 8

    @property
    def label(self) -> str:
        return STEP_LABELS[self]

    @property
    def path(self) -> str:
        return STEP_PATHS[self]


FIRST_STEP = WorkflowStep.SELECT_CLIENT
LAST_STEP = WorkflowStep.COMPLETE

STEP_LABELS = {
    WorkflowStep.SELECT_CLIENT: "顧客選択",
    WorkflowStep.UPLOAD: "証憑アップロード",
    WorkflowStep.OCR: "OCR処理",
    WorkflowStep.CLASSIFY_REVIEW: "仕訳確認",
    WorkflowStep.EXPORT: "仕訳出力",
    WorkflowStep.RECONCILE: "集計・チェック",
    WorkflowStep.EXCEPTIONS: "対象外証憑",
    WorkflowStep.COMPLETE: "完了",
}

STEP_PATHS = {
    WorkflowStep.SELECT_CLIENT: "/clients",
    WorkflowStep.UPLOAD: "/upload",
    WorkflowStep.OCR: "/ocr",
    WorkflowStep.CLASSIFY_REVIEW: "/review",
    WorkflowStep.EXPORT: "/export",
    WorkflowStep.RECONCILE: "/summary",
    WorkflowStep.EXCEPTIONS: "/excluded",
    WorkflowStep.COMPLETE: "/clients",
}


def is_valid_step(step: Any) -> bool:
    """Return True if step is an int within [1, 8]."""
    if isinstance(step, bool) or not isinstance(step, int):
        return False
    return FIRST_STEP <= step <= LAST_STEP


def step_path(step: int, client_id: str | None = None) -> str:
    """UI path for a step; unknown steps fall back to client selection."""
    base = STEP_PATHS[WorkflowStep(step)] if is_valid_step(step) else "/clients"
    if client_id and is_valid_step(step) and step > FIRST_STEP:
        return f"{base}?client_id={client_id}"
    return base


@dataclass
class WorkflowData:
    """Artifacts accumulated while a workflow runs."""

    document_ids: list[str] = field(default_factory=list)
    ocr_result_ids: list[str] = field(default_factory=list)
    journal_entry_ids: list[str] = field(default_factory=list)
    review_completed: bool = False
    export_completed: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "WorkflowData":
        data = data or {}
        return cls(
            document_ids=list(data.get("document_ids", [])),
            ocr_result_ids=list(data.get("ocr_result_ids", [])),
            journal_entry_ids=list(data.get("journal_entry_ids", [])),
            review_completed=bool(data.get("review_completed", False)),
            export_completed=bool(data.get("export_completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_ids": list(self.document_ids),
            "ocr_result_ids": list(self.ocr_result_ids),
            "journal_entry_ids": list(self.journal_entry_ids),
            "review_completed": self.review_completed,
            "export_completed": self.export_completed,
        }


@dataclass
class WorkflowState:
    """
    Persisted progress of one client's workflow.

    Invariants:
    - current_step is always within [1, 8]
    - completed_steps is sorted, unique, and within [1, 8]
    """

    id: str
    client_id: str
    client_name: str
    current_step: int = FIRST_STEP.value
    completed_steps: list[int] = field(default_factory=list)
    data: WorkflowData = field(default_factory=WorkflowData)
    last_updated: str = ""
    created_at: str = ""

    def add_completed(self, step: int) -> None:
        """Add a step to completed_steps without duplicates."""
        if step not in self.completed_steps:
            self.completed_steps.append(step)
            self.completed_steps.sort()

    def is_step_complete(self, step: int) -> bool:
        return step in self.completed_steps

    @property
    def step(self) -> WorkflowStep:
        return WorkflowStep(self.current_step)

    @classmethod
    def from_row(cls, row: Any) -> "WorkflowState":
        """Create from database row."""
        return cls(
            id=row["id"],
            client_id=row["client_id"],
            client_name=row["client_name"],
            current_step=row["current_step"],
            completed_steps=sorted(set(json.loads(row["completed_steps"] or "[]"))),
            data=WorkflowData.from_dict(json.loads(row["data_json"] or "{}")),
            last_updated=row["last_updated"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "current_step": self.current_step,
            "completed_steps": list(self.completed_steps),
            "data": self.data.to_dict(),
            "last_updated": self.last_updated,
            "created_at": self.created_at,
        }
