"""
Per-client workflow state machine.

Steps run 1..8 (client selection through completion). A workflow is
persisted after every transition so staff can leave and resume later.

State transitions:
    start     -> step 1, nothing completed
    advance   -> current step marked complete, step + 1 (rejected at 8)
    retreat   -> step - 1, completed steps kept (rejected at 1)
    jump_to   -> any step in [1, 8], completed steps kept
    complete  -> step 8 marked complete, record deleted

Operations on a missing workflow return None.
"""

import logging
from typing import Any, Optional

from ..exceptions import ConflictError, InvalidTransitionError
from ..schemas import FIRST_STEP, LAST_STEP, WorkflowState, WorkflowStep, is_valid_step
from ..state_store import StateStore, new_id, utc_now

logger = logging.getLogger(__name__)


class WorkflowStateMachine:
    """
    Drives workflow records through the eight steps.

    Single actor per client: concurrent writers are not coordinated and the
    last write wins.
    """

    def __init__(self, state_store: StateStore):
        self.store = state_store

    def start(self, client_id: str, client_name: str) -> WorkflowState:
        """
        Start a new workflow for a client at step 1.

        An existing workflow for the same client is superseded.
        """
        now = utc_now()
        state = WorkflowState(
            id=new_id("wf"),
            client_id=client_id,
            client_name=client_name,
            current_step=FIRST_STEP.value,
            completed_steps=[],
            last_updated=now,
            created_at=now,
        )

        try:
            self.store.create_workflow(state)
        except ConflictError as e:
            logger.warning(
                "Superseding workflow %s for client %s", e.existing_workflow_id, client_id
            )
            self.store.create_workflow(state, supersede=True)

        logger.info("Started workflow %s for client %s", state.id, client_id)
        return state

    def resume(self, workflow_id: str) -> Optional[WorkflowState]:
        """Load a workflow exactly as it was last persisted."""
        return self.store.get_workflow(workflow_id)

    def get_by_client(self, client_id: str) -> Optional[WorkflowState]:
        return self.store.get_workflow_by_client(client_id)

    def list_workflows(self) -> list[WorkflowState]:
        return self.store.list_workflows()

    def advance(self, workflow_id: str) -> Optional[WorkflowState]:
        """
        Mark the current step complete and move to the next one.

        Raises:
            InvalidTransitionError: If the workflow is already at the last step
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None
        if state.current_step >= LAST_STEP:
            raise InvalidTransitionError(workflow_id, state.current_step, "already at last step")

        state.add_completed(state.current_step)
        state.current_step += 1
        return self._save(state, "advanced")

    def retreat(self, workflow_id: str) -> Optional[WorkflowState]:
        """
        Move back one step. Completed steps are kept.

        Raises:
            InvalidTransitionError: If the workflow is at the first step
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None
        if state.current_step <= FIRST_STEP:
            raise InvalidTransitionError(workflow_id, state.current_step, "already at first step")

        state.current_step -= 1
        return self._save(state, "retreated")

    def jump_to(self, workflow_id: str, step: int) -> Optional[WorkflowState]:
        """
        Move directly to a step. Completed steps are kept.

        Raises:
            InvalidTransitionError: If step is outside [1, 8]
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None
        if not is_valid_step(step):
            raise InvalidTransitionError(workflow_id, state.current_step, f"invalid step {step!r}")

        state.current_step = int(step)
        return self._save(state, "jumped")

    def mark_complete(self, workflow_id: str, step: int) -> Optional[WorkflowState]:
        """
        Add a step to the completed set. Idempotent.

        Raises:
            InvalidTransitionError: If step is outside [1, 8]
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None
        if not is_valid_step(step):
            raise InvalidTransitionError(workflow_id, state.current_step, f"invalid step {step!r}")

        state.add_completed(int(step))
        return self._save(state, "marked")

    def update_data(self, workflow_id: str, **changes: Any) -> Optional[WorkflowState]:
        """
        Merge values into the workflow's accumulated data.

        Unknown keys raise TypeError.
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None

        for key, value in changes.items():
            if not hasattr(state.data, key):
                raise TypeError(f"Unknown workflow data field: {key}")
            setattr(state.data, key, value)
        return self._save(state, "updated")

    def suspend(self, workflow_id: str) -> Optional[WorkflowState]:
        """Persist the workflow unchanged so it can be resumed later."""
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return None
        return self._save(state, "suspended")

    def complete(self, workflow_id: str) -> bool:
        """
        Finish a workflow. The record is deleted; resuming afterwards finds nothing.

        Returns:
            False if the workflow did not exist
        """
        state = self.store.get_workflow(workflow_id)
        if state is None:
            return False

        state.add_completed(LAST_STEP.value)
        logger.info(
            "Completed workflow %s for client %s (steps %s)",
            workflow_id,
            state.client_id,
            state.completed_steps,
        )
        return self.store.delete_workflow(workflow_id)

    def can_advance(self, state: WorkflowState) -> bool:
        return state.current_step < LAST_STEP

    def can_retreat(self, state: WorkflowState) -> bool:
        return state.current_step > FIRST_STEP

    def is_step_complete(self, workflow_id: str, step: int) -> bool:
        state = self.store.get_workflow(workflow_id)
        return state is not None and state.is_step_complete(step)

    def _save(self, state: WorkflowState, action: str) -> Optional[WorkflowState]:
        if not self.store.save_workflow(state):
            # Deleted between load and save
            return None
        logger.debug(
            "Workflow %s %s: step %d (%s), completed %s",
            state.id,
            action,
            state.current_step,
            WorkflowStep(state.current_step).name,
            state.completed_steps,
        )
        return state
