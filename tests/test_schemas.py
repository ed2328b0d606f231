"""Tests for schemas: transactions, rules, predicates and workflow records."""

import math

import pytest

from auto_journal.exceptions import MalformedTransactionError, RuleValidationError
from auto_journal.extractors import ExtractionResult
from auto_journal.schemas import (
    AmountRange,
    Category,
    ClassificationResult,
    JournalEntry,
    LineItem,
    Provenance,
    RuleScope,
    RuleType,
    SupplierMatch,
    TransactionFact,
    Unconstrained,
    WorkflowState,
    WorkflowStep,
    clamp_confidence,
    is_valid_step,
    step_path,
)


class TestRuleType:
    """Tests for rule type parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("expense", RuleType.EXPENSE),
            ("支出", RuleType.EXPENSE),
            ("income", RuleType.INCOME),
            ("収入", RuleType.INCOME),
        ],
    )
    def test_parse_labels(self, value, expected):
        assert RuleType.parse(value) is expected

    def test_parse_unknown_raises(self):
        with pytest.raises(MalformedTransactionError):
            RuleType.parse("transfer")

    def test_parse_none_raises(self):
        with pytest.raises(MalformedTransactionError):
            RuleType.parse(None)


class TestTransactionFact:
    """Tests for transaction facts."""

    def test_from_extraction_keeps_unknown_fields_none(self):
        """Unread fields stay None, never zero."""
        fact = TransactionFact.from_extraction(ExtractionResult(amount=1200))

        assert fact.amount == 1200
        assert fact.tax_amount is None
        assert fact.supplier_text is None
        assert fact.line_items is None

    def test_from_extraction_parses_items(self):
        extraction = ExtractionResult(
            amount=4800,
            supplier="エネオス",
            items=[{"name": "ガソリン", "amount": "4,800", "quantity": 30}],
        )

        fact = TransactionFact.from_extraction(extraction, RuleType.EXPENSE)

        assert fact.line_items == (LineItem(name="ガソリン", amount=4800, quantity=30),)
        assert fact.item_names == ["ガソリン"]

    def test_is_immutable(self, eneos_transaction):
        with pytest.raises(AttributeError):
            eneos_transaction.amount = 1

    def test_validate_rejects_fractional_amount(self):
        with pytest.raises(MalformedTransactionError):
            TransactionFact(amount=12.5).validate()

    def test_validate_returns_rule_type(self):
        assert TransactionFact(amount=100, rule_type="収入").validate() is RuleType.INCOME


class TestPredicates:
    """Tests for rule matching predicates."""

    def test_supplier_match_is_case_insensitive_substring(self):
        predicate = SupplierMatch("eneos")

        assert predicate.holds(TransactionFact(amount=1, supplier_text="ENEOS 渋谷SS"))
        assert not predicate.holds(TransactionFact(amount=1, supplier_text="出光"))

    def test_supplier_match_fails_on_unknown_supplier(self):
        assert not SupplierMatch("eneos").holds(TransactionFact(amount=1, supplier_text=None))

    def test_amount_range_is_inclusive(self):
        predicate = AmountRange(1000, 5000)

        assert predicate.holds(TransactionFact(amount=1000))
        assert predicate.holds(TransactionFact(amount=5000))
        assert not predicate.holds(TransactionFact(amount=5001))

    def test_amount_range_open_bounds(self):
        assert AmountRange(minimum=None, maximum=100).holds(TransactionFact(amount=-5))
        assert AmountRange(minimum=100, maximum=None).holds(TransactionFact(amount=10**9))

    def test_unconstrained_matches_everything(self):
        assert Unconstrained().holds(TransactionFact(amount=None))


class TestRule:
    """Tests for rule construction and matching."""

    def test_scope_derivation(self, make_rule):
        assert make_rule("r1", 1).scope == RuleScope.SHARED
        assert make_rule("r2", 1, industry_id="ind-driver").scope == RuleScope.INDUSTRY
        assert make_rule("r3", 1, client_id="client-a").scope == RuleScope.CLIENT

    def test_both_owners_rejected(self, make_rule):
        with pytest.raises(RuleValidationError):
            make_rule("r1", 1, client_id="client-a", industry_id="ind-driver")

    def test_blank_owner_ids_normalised(self, make_rule):
        rule = make_rule("r1", 1, client_id="", industry_id="ind-driver")

        assert rule.client_id is None
        assert rule.scope == RuleScope.INDUSTRY
        assert make_rule("r2", 1, client_id="", industry_id="").scope == RuleScope.SHARED

    @pytest.mark.parametrize("priority", [0, -3])
    def test_non_positive_priority_rejected(self, make_rule, priority):
        with pytest.raises(RuleValidationError):
            make_rule("r1", priority)

    def test_inverted_amount_range_rejected(self, make_rule):
        with pytest.raises(RuleValidationError):
            make_rule("r1", 1, amount_min=500, amount_max=100)

    def test_unknown_rule_type_rejected(self, make_rule):
        with pytest.raises(RuleValidationError):
            make_rule("r1", 1, rule_type="transfer")

    def test_predicates_are_and_composed(self, make_rule):
        rule = make_rule("r1", 1, supplier_pattern="エネオス", amount_max=3000)

        assert isinstance(rule.predicates[0], SupplierMatch)
        assert isinstance(rule.predicates[1], AmountRange)
        assert not rule.matches(TransactionFact(amount=4800, supplier_text="エネオス"))
        assert rule.matches(TransactionFact(amount=2000, supplier_text="エネオス"))

    def test_rule_without_conditions_is_unconstrained(self, make_rule):
        rule = make_rule("r1", 1, supplier_pattern="  ")

        assert rule.predicates == (Unconstrained(),)

    def test_transaction_pattern_is_not_matched(self, make_rule):
        """Transaction pattern is stored for audit only."""
        rule = make_rule("r1", 1, transaction_pattern="ガソリン代")

        assert rule.matches(TransactionFact(amount=100, supplier_text="コンビニ"))

    def test_dict_roundtrip_keeps_predicates(self, make_rule):
        rule = make_rule("r1", 3, supplier_pattern="Amazon", amount_min=10)

        restored = type(rule).from_dict(rule.to_dict())

        assert restored == rule
        assert restored.predicates == rule.predicates


class TestClassificationResult:
    """Tests for classification results."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(1.7, 1.0), (-0.2, 0.0), (0.42, 0.42), ("0.9", 0.9), ("high", 0.0), (None, 0.0)],
    )
    def test_clamp_confidence(self, raw, expected):
        assert clamp_confidence(raw) == expected

    def test_clamp_confidence_nan(self):
        assert clamp_confidence(math.nan) == 0.0

    def test_confidence_clamped_on_construction(self):
        result = ClassificationResult(
            account_item_id="acc-599",
            tax_category_id="tax-out-of-scope",
            category=Category.BUSINESS,
            confidence=3.0,
            provenance=Provenance.AI,
        )

        assert result.confidence == 1.0

    def test_category_parse(self):
        assert Category.parse("プライベート") is Category.PRIVATE
        assert Category.parse("事業用") is Category.BUSINESS
        assert Category.parse("unknown") is Category.BUSINESS
        assert Category.PRIVATE.label == "プライベート"


class TestJournalEntry:
    """Tests for journal entry coercion."""

    def test_from_dict_coerces_enums(self):
        entry = JournalEntry.from_dict(
            {
                "id": "entry-1",
                "client_id": "client-a",
                "entry_date": "2024-11-18",
                "amount": "4800",
                "rule_type": "支出",
                "category": "private",
                "status": "approved",
                "provenance": "manual",
            }
        )

        assert entry.amount == 4800
        assert entry.rule_type is RuleType.EXPENSE
        assert entry.category is Category.PRIVATE
        assert entry.provenance is Provenance.MANUAL


class TestWorkflowSchema:
    """Tests for workflow steps and records."""

    def test_eight_steps(self):
        assert [step.value for step in WorkflowStep] == list(range(1, 9))
        assert WorkflowStep.CLASSIFY_REVIEW.label == "仕訳確認"

    @pytest.mark.parametrize("step,valid", [(1, True), (8, True), (0, False), (9, False)])
    def test_is_valid_step(self, step, valid):
        assert is_valid_step(step) is valid

    def test_is_valid_step_rejects_non_int(self):
        assert not is_valid_step("3")
        assert not is_valid_step(True)
        assert not is_valid_step(3.0)

    def test_step_path_includes_client(self):
        assert step_path(4, "client-a") == "/review?client_id=client-a"
        assert step_path(1, "client-a") == "/clients"
        assert step_path(42) == "/clients"

    def test_add_completed_keeps_sorted_unique(self):
        state = WorkflowState(id="wf-1", client_id="client-a", client_name="A")

        for step in (3, 1, 3, 2):
            state.add_completed(step)

        assert state.completed_steps == [1, 2, 3]
