"""Batch document processing.

Each uploaded file runs through OCR, classification and the journal entry
write independently. A failure in one file is recorded with the stage it
happened in and the batch moves on to the next file.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from auto_journal.classification import build_journal_entry
from auto_journal.exceptions import ExtractionError, MalformedTransactionError, NotFoundError
from auto_journal.schemas import OCRStatus, RuleType, TransactionFact

if TYPE_CHECKING:
    from auto_journal.classification import ClassificationPipeline
    from auto_journal.config import Config
    from auto_journal.extractors import BaseOCRExtractor
    from auto_journal.schemas import ClientContext
    from auto_journal.state_store import StateStore
    from auto_journal.workflow import WorkflowStateMachine

logger = logging.getLogger(__name__)

STAGE_EXTRACTION = "extraction"
STAGE_CLASSIFICATION = "classification"
STAGE_STORE = "store"


@dataclass
class BatchFile:
    """One uploaded file."""

    file_name: str
    content: bytes
    mime_type: str
    rule_type: RuleType = RuleType.EXPENSE


@dataclass
class FileResult:
    """Outcome for one file of a batch."""

    file_name: str
    document_id: str | None = None
    ocr_result_id: str | None = None  # Document whose OCR completed
    entry_id: str | None = None
    stage: str | None = None  # Stage that failed, None on success
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """Result of processing a batch of uploaded files."""

    client_id: str
    files: list[FileResult] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def succeeded(self) -> int:
        return sum(1 for f in self.files if f.success)

    @property
    def failed(self) -> int:
        return sum(1 for f in self.files if not f.success)

    @property
    def success(self) -> bool:
        """Return True if every file was processed."""
        return self.failed == 0


class BatchProcessor:
    """Process uploaded receipts into pending journal entries."""

    def __init__(
        self,
        state_store: StateStore,
        config: Config,
        extractor: BaseOCRExtractor,
        pipeline: ClassificationPipeline,
        workflow: WorkflowStateMachine | None = None,
    ) -> None:
        """Initialize the batch processor.

        Args:
            state_store: Store for documents and journal entries.
            config: Application configuration.
            extractor: OCR extractor.
            pipeline: Classification pipeline.
            workflow: Optional state machine used to record batch artifacts.
        """
        self.store = state_store
        self.config = config
        self.extractor = extractor
        self.pipeline = pipeline
        self.workflow = workflow

    def process(
        self,
        client_id: str,
        files: list[BatchFile],
        workflow_id: str | None = None,
    ) -> BatchResult:
        """Process every file of a batch for one client.

        Args:
            client_id: Client the files belong to.
            files: Uploaded files.
            workflow_id: Workflow whose data collects document and entry ids.

        Returns:
            BatchResult with per-file outcomes.

        Raises:
            NotFoundError: If the client does not exist.
        """
        start = time.monotonic()
        context = self._client_context(client_id)
        result = BatchResult(client_id=client_id)

        for batch_file in files:
            file_result = self._process_file(context, batch_file)
            result.files.append(file_result)

        result.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Batch for client %s: %d succeeded, %d failed (%dms)",
            client_id,
            result.succeeded,
            result.failed,
            result.duration_ms,
        )

        if workflow_id and self.workflow is not None:
            self._record_in_workflow(workflow_id, result)

        return result

    def _client_context(self, client_id: str) -> ClientContext:
        client = self.store.get_client(client_id)
        if client is None:
            raise NotFoundError("client", client_id)
        industry = self.store.get_industry(client.industry_id) if client.industry_id else None
        return client.context(industry)

    def _process_file(self, context: ClientContext, batch_file: BatchFile) -> FileResult:
        file_result = FileResult(file_name=batch_file.file_name)
        batch_config = self.config.batch

        if batch_file.mime_type not in batch_config.allowed_mime_types:
            return self._fail(
                file_result, STAGE_EXTRACTION, f"Unsupported file type: {batch_file.mime_type}"
            )
        if len(batch_file.content) > batch_config.max_file_size:
            return self._fail(file_result, STAGE_EXTRACTION, "File exceeds maximum upload size")

        try:
            document = self.store.create_document(
                client_id=context.client_id,
                file_name=batch_file.file_name,
                file_type=batch_file.mime_type,
                file_size=len(batch_file.content),
            )
        except Exception as e:
            logger.exception("Could not record document %s", batch_file.file_name)
            return self._fail(file_result, STAGE_STORE, str(e))
        file_result.document_id = document.id

        # OCR
        self.store.update_document_ocr_status(document.id, OCRStatus.PROCESSING)
        try:
            extraction = self.extractor.extract(
                batch_file.content,
                batch_file.mime_type,
                timeout=batch_config.ocr_timeout_seconds,
            )
        except ExtractionError as e:
            self.store.update_document_ocr_status(document.id, OCRStatus.FAILED, str(e))
            return self._fail(file_result, STAGE_EXTRACTION, str(e))
        except Exception as e:
            logger.exception("Unexpected OCR failure for %s", batch_file.file_name)
            self.store.update_document_ocr_status(document.id, OCRStatus.FAILED, str(e))
            return self._fail(file_result, STAGE_EXTRACTION, str(e))
        self.store.update_document_ocr_status(document.id, OCRStatus.COMPLETED)
        file_result.ocr_result_id = document.id

        # Classification
        try:
            fact = TransactionFact.from_extraction(extraction, batch_file.rule_type)
            classification = self.pipeline.classify(fact, context)
            entry = build_journal_entry(fact, classification, context.client_id, document.id)
        except MalformedTransactionError as e:
            return self._fail(file_result, STAGE_CLASSIFICATION, str(e))
        except Exception as e:
            logger.exception("Unexpected classification failure for %s", batch_file.file_name)
            return self._fail(file_result, STAGE_CLASSIFICATION, str(e))

        # Journal entry write
        try:
            saved = self.store.save_journal_entry(entry)
        except Exception as e:
            logger.exception("Could not store journal entry for %s", batch_file.file_name)
            return self._fail(file_result, STAGE_STORE, str(e))

        file_result.entry_id = saved.id
        logger.debug(
            "Processed %s -> entry %s (%s, confidence %.2f)",
            batch_file.file_name,
            saved.id,
            classification.provenance.value,
            classification.confidence,
        )
        return file_result

    def _fail(self, file_result: FileResult, stage: str, error: str) -> FileResult:
        logger.warning("File %s failed at %s stage: %s", file_result.file_name, stage, error)
        file_result.stage = stage
        file_result.error = error
        return file_result

    def _record_in_workflow(self, workflow_id: str, result: BatchResult) -> None:
        state = self.workflow.resume(workflow_id)
        if state is None:
            logger.warning("Workflow %s not found, batch artifacts not recorded", workflow_id)
            return

        document_ids = [f.document_id for f in result.files if f.document_id]
        ocr_result_ids = [f.ocr_result_id for f in result.files if f.ocr_result_id]
        entry_ids = [f.entry_id for f in result.files if f.entry_id]
        self.workflow.update_data(
            workflow_id,
            document_ids=state.data.document_ids + document_ids,
            ocr_result_ids=state.data.ocr_result_ids + ocr_result_ids,
            journal_entry_ids=state.data.journal_entry_ids + entry_ids,
        )
