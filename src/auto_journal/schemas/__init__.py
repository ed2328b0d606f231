"""
SSOT schemas shared by the resolver, pipeline, workflow and state store.
"""

from .classification import Category, ClassificationResult, Provenance, clamp_confidence
from .journal_entry import JournalEntry, JournalStatus
from .master_data import AccountItem, Client, Document, Industry, OCRStatus, TaxCategory
from .rule import (
    AmountRange,
    Predicate,
    Rule,
    RuleScope,
    RuleStatus,
    SupplierMatch,
    Unconstrained,
)
from .transaction import ClientContext, LineItem, RuleType, TransactionFact
from .workflow import (
    FIRST_STEP,
    LAST_STEP,
    WorkflowData,
    WorkflowState,
    WorkflowStep,
    is_valid_step,
    step_path,
)

__all__ = [
    # Transactions
    "TransactionFact",
    "LineItem",
    "RuleType",
    "ClientContext",
    # Rules
    "Rule",
    "RuleScope",
    "RuleStatus",
    "Predicate",
    "SupplierMatch",
    "AmountRange",
    "Unconstrained",
    # Classification
    "ClassificationResult",
    "Category",
    "Provenance",
    "clamp_confidence",
    # Journal entries
    "JournalEntry",
    "JournalStatus",
    # Master data
    "Client",
    "Industry",
    "AccountItem",
    "TaxCategory",
    "Document",
    "OCRStatus",
    # Workflow
    "WorkflowState",
    "WorkflowData",
    "WorkflowStep",
    "FIRST_STEP",
    "LAST_STEP",
    "is_valid_step",
    "step_path",
]
