"""AI classifier for transactions that no staff rule covers."""

from auto_journal.ai.prompts import PROMPT_VERSION, JournalPrompt
from auto_journal.ai.service import AIClassification, AIClassifierService, LLMConcurrencyLimiter

__all__ = [
    "AIClassifierService",
    "AIClassification",
    "LLMConcurrencyLimiter",
    "JournalPrompt",
    "PROMPT_VERSION",
]
