"""Classification pipeline: staff rules first, then the AI classifier, then a fallback.

The pipeline never fails a document because the AI classifier failed. When the
classifier is unavailable or returns something unusable, the transaction gets a
low-confidence default classification that staff must review.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from auto_journal.exceptions import AIClassifierError, MalformedTransactionError
from auto_journal.matching import RuleResolver
from auto_journal.schemas import (
    Category,
    ClassificationResult,
    ClientContext,
    JournalEntry,
    JournalStatus,
    Provenance,
    Rule,
    TransactionFact,
)

if TYPE_CHECKING:
    from auto_journal.ai import AIClassification, AIClassifierService
    from auto_journal.config import ClassificationConfig, Config
    from auto_journal.state_store import StateStore

logger = logging.getLogger(__name__)

# Confidence of a staff rule match
RULE_CONFIDENCE = 1.0


class ClassificationPipeline:
    """Turn transaction facts into a final classification.

    Precedence:
    1. Winning staff rule (client > industry > shared)
    2. AI classifier
    3. Configured fallback (misc expense, tax category from tax amount)
    """

    def __init__(
        self,
        state_store: StateStore,
        config: Config,
        ai_classifier: AIClassifierService | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            state_store: Store providing rules and master data.
            config: Application configuration.
            ai_classifier: Optional AI classifier. Without one every unmatched
                transaction gets the fallback classification.
        """
        self.store = state_store
        self.config = config
        self.cls_config: ClassificationConfig = config.classification
        self.ai = ai_classifier
        self.resolver = RuleResolver(state_store)

    def classify(
        self,
        transaction: TransactionFact,
        client_context: ClientContext,
    ) -> ClassificationResult:
        """Classify one transaction.

        Raises:
            MalformedTransactionError: Only for malformed transaction input.
        """
        rule = self.resolver.resolve_from_store(transaction, client_context)
        if rule is not None:
            return self._from_rule(rule)

        if self.ai is None:
            logger.debug("No AI classifier configured, using fallback")
            return self.fallback(transaction, "AI classifier not configured")

        try:
            suggestion = self.ai.classify(transaction, client_context.industry_name)
        except AIClassifierError as e:
            logger.info("AI classification failed for client %s: %s", client_context.client_id, e)
            return self.fallback(transaction, str(e))

        return self._from_ai(transaction, suggestion)

    def fallback(self, transaction: TransactionFact, reason: str = "") -> ClassificationResult:
        """Default classification used when the AI classifier cannot answer."""
        tax_category_id = (
            self.cls_config.taxable_tax_category_id
            if transaction.tax_amount is not None
            else self.cls_config.out_of_scope_tax_category_id
        )
        rationale = "AI判定失敗 - デフォルト値を使用"
        if reason:
            rationale = f"{rationale} ({reason})"

        return ClassificationResult(
            account_item_id=self.cls_config.default_account_item_id,
            tax_category_id=tax_category_id,
            category=Category.BUSINESS,
            confidence=self.cls_config.fallback_confidence,
            provenance=Provenance.AI,
            rationale=rationale,
            is_fallback=True,
        )

    def _from_rule(self, rule: Rule) -> ClassificationResult:
        conditions = ", ".join(p.describe() for p in rule.predicates)
        return ClassificationResult(
            account_item_id=rule.account_item_id,
            tax_category_id=rule.tax_category_id,
            category=Category.BUSINESS,
            confidence=RULE_CONFIDENCE,
            provenance=Provenance.RULE,
            matched_rule_id=rule.id,
            rationale=f"{rule.scope.value} rule {rule.id} (priority {rule.priority}): {conditions}",
        )

    def _from_ai(
        self,
        transaction: TransactionFact,
        suggestion: AIClassification,
    ) -> ClassificationResult:
        """Map the classifier's names onto master data ids."""
        rationale = suggestion.reasoning

        account_item = self.store.find_account_item(
            code=suggestion.account_item_code, name=suggestion.account_item
        )
        if account_item is not None:
            account_item_id = account_item.id
        else:
            logger.warning(
                "AI account item %r (code %r) not in master data, using default",
                suggestion.account_item,
                suggestion.account_item_code,
            )
            account_item_id = self.cls_config.default_account_item_id
            rationale = f"{rationale} [unknown account item: {suggestion.account_item}]"

        tax_category = (
            self.store.find_tax_category(suggestion.tax_category)
            if suggestion.tax_category
            else None
        )
        if tax_category is not None:
            tax_category_id = tax_category.id
        else:
            tax_category_id = (
                self.cls_config.taxable_tax_category_id
                if transaction.tax_amount is not None
                else self.cls_config.out_of_scope_tax_category_id
            )

        return ClassificationResult(
            account_item_id=account_item_id,
            tax_category_id=tax_category_id,
            category=Category.parse(suggestion.category),
            confidence=suggestion.confidence,
            provenance=Provenance.AI,
            rationale=rationale,
        )


def format_notes(transaction: TransactionFact) -> str:
    """Build the 摘要 text as "<supplier> - <item names>"."""
    supplier = transaction.supplier_text or ""
    items = "、".join(transaction.item_names)
    if supplier and items:
        return f"{supplier} - {items}"
    return supplier or items


def build_journal_entry(
    transaction: TransactionFact,
    result: ClassificationResult,
    client_id: str,
    document_id: str | None = None,
) -> JournalEntry:
    """Create a pending journal entry from facts and their classification.

    The entry id and timestamps are assigned when the store saves it.

    Raises:
        MalformedTransactionError: If the amount is unknown.
    """
    if transaction.amount is None:
        raise MalformedTransactionError("Cannot create a journal entry without an amount")

    entry_date = transaction.date
    if not entry_date:
        entry_date = date.today().isoformat()
        logger.warning("Transaction date unknown for document %s, using %s", document_id, entry_date)

    return JournalEntry(
        id="",
        client_id=client_id,
        document_id=document_id,
        entry_date=entry_date,
        rule_type=transaction.rule_type,
        amount=transaction.amount,
        tax_amount=transaction.tax_amount,
        category=result.category,
        supplier=transaction.supplier_text,
        account_item_id=result.account_item_id,
        tax_category_id=result.tax_category_id,
        notes=format_notes(transaction) or None,
        status=JournalStatus.PENDING,
        confidence=result.confidence,
        provenance=result.provenance,
        matched_rule_id=result.matched_rule_id,
    )
