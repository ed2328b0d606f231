"""Classification pipeline: rules, AI classifier, fallback."""

from auto_journal.classification.pipeline import (
    RULE_CONFIDENCE,
    ClassificationPipeline,
    build_journal_entry,
    format_notes,
)

__all__ = ["ClassificationPipeline", "build_journal_entry", "format_notes", "RULE_CONFIDENCE"]
