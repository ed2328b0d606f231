"""
Exception taxonomy shared across the classification engine and the workflow.
"""


class AutoJournalError(Exception):
    """Base exception for all auto_journal errors."""

    pass


class NotFoundError(AutoJournalError):
    """Referenced client, rule, entry or workflow does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidTransitionError(AutoJournalError):
    """A workflow step guard was violated."""

    def __init__(self, workflow_id: str, current_step: int, message: str):
        self.workflow_id = workflow_id
        self.current_step = current_step
        super().__init__(f"Workflow {workflow_id} at step {current_step}: {message}")


class ConflictError(AutoJournalError):
    """An active workflow already exists for the client."""

    def __init__(self, client_id: str, existing_workflow_id: str):
        self.client_id = client_id
        self.existing_workflow_id = existing_workflow_id
        super().__init__(
            f"Client {client_id} already has active workflow {existing_workflow_id}"
        )


class MalformedTransactionError(AutoJournalError):
    """Transaction input is missing fields required for classification."""

    pass


class RuleValidationError(AutoJournalError):
    """Rule definition violates its invariants."""

    pass


class ExternalServiceError(AutoJournalError):
    """An external capability (OCR, AI, export sink) failed."""

    pass


class ExtractionError(ExternalServiceError):
    """OCR extraction failed for a document."""

    pass


class AIClassifierError(ExternalServiceError):
    """AI classifier call failed or returned an unusable response."""

    pass


class ExportError(ExternalServiceError):
    """Export sink rejected the whole batch."""

    pass
