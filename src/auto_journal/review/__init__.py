"""
Human-in-the-loop review module.

Provides:
- Review of pending journal entries
- Manual edits and decision persistence
"""

from .journal_review import EDITABLE_FIELDS, JournalReview, ReviewDecision, ReviewResult

__all__ = [
    "JournalReview",
    "ReviewDecision",
    "ReviewResult",
    "EDITABLE_FIELDS",
]
