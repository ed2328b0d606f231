"""Services for batch document processing, summaries and export."""

from auto_journal.services.batch import BatchFile, BatchProcessor, BatchResult, FileResult
from auto_journal.services.export import CsvExportSink, ExportOutcome, ExportService, ExportSink
from auto_journal.services.summary import AccountItemTotal, ClientSummary, SummaryService

__all__ = [
    "BatchProcessor",
    "BatchFile",
    "BatchResult",
    "FileResult",
    "SummaryService",
    "ClientSummary",
    "AccountItemTotal",
    "ExportService",
    "ExportSink",
    "ExportOutcome",
    "CsvExportSink",
]
