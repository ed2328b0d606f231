"""Tests for the rule resolver."""

import itertools

import pytest

from auto_journal.exceptions import MalformedTransactionError
from auto_journal.matching import RuleResolver
from auto_journal.schemas import ClientContext, RuleStatus, RuleType, TransactionFact


@pytest.fixture
def resolver() -> RuleResolver:
    return RuleResolver()


class TestTierPrecedence:
    """Client rules beat industry rules beat shared rules."""

    def test_client_rule_beats_shared_rule_regardless_of_priority(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        """Client rule priority 99 wins over shared rule priority 1."""
        shared = make_rule("rule-shared", 1, supplier_pattern="エネオス")
        client = make_rule(
            "rule-client", 99, client_id="client-tanaka", supplier_pattern="エネオス"
        )

        winner = resolver.resolve(eneos_transaction, driver_context, [shared, client])

        assert winner is client

    def test_industry_rule_beats_shared_rule(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        """Industry tier is consulted before the shared tier."""
        shared = make_rule("rule-shared", 1)
        industry = make_rule("rule-industry", 50, industry_id="ind-driver")

        winner = resolver.resolve(eneos_transaction, driver_context, [shared, industry])

        assert winner is industry

    def test_client_rules_ignored_without_custom_rules(
        self, make_rule, resolver, eneos_transaction
    ):
        """use_custom_rules=False skips the client tier entirely."""
        context = ClientContext(client_id="client-tanaka", use_custom_rules=False)
        shared = make_rule("rule-shared", 10, supplier_pattern="エネオス")
        client = make_rule("rule-client", 1, client_id="client-tanaka")

        winner = resolver.resolve(eneos_transaction, context, [client, shared])

        assert winner is shared

    def test_other_clients_rules_ignored(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        """Rules of another client never apply."""
        other = make_rule("rule-other", 1, client_id="client-suzuki")

        assert resolver.resolve(eneos_transaction, driver_context, [other]) is None

    def test_industry_rules_ignored_without_industry(self, make_rule, resolver, eneos_transaction):
        """A client without an industry skips the industry tier."""
        context = ClientContext(client_id="client-x", industry_id=None)
        industry = make_rule("rule-industry", 1, industry_id="ind-driver")

        assert resolver.resolve(eneos_transaction, context, [industry]) is None

    def test_falls_through_when_client_tier_has_no_match(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        """A non-matching client rule does not block lower tiers."""
        client = make_rule("rule-client", 1, client_id="client-tanaka", supplier_pattern="ENEOS!")
        shared = make_rule("rule-shared", 5, supplier_pattern="エネオス")

        assert resolver.resolve(eneos_transaction, driver_context, [client, shared]) is shared


class TestWithinTier:
    """Ordering inside one tier."""

    def test_lowest_priority_wins(self, make_rule, resolver, eneos_transaction, driver_context):
        rules = [make_rule("rule-a", 3), make_rule("rule-b", 2), make_rule("rule-c", 7)]

        assert resolver.resolve(eneos_transaction, driver_context, rules).id == "rule-b"

    def test_insertion_order_does_not_matter(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        """Every permutation of the same rules yields the same winner."""
        rules = [
            make_rule("rule-a", 4, supplier_pattern="エネオス"),
            make_rule("rule-b", 2, amount_min=1000, amount_max=9999),
            make_rule("rule-c", 9),
        ]

        winners = {
            resolver.resolve(eneos_transaction, driver_context, list(order)).id
            for order in itertools.permutations(rules)
        }

        assert winners == {"rule-b"}

    def test_priority_tie_broken_by_creation_then_id(
        self, make_rule, resolver, eneos_transaction, driver_context
    ):
        older = make_rule("rule-z", 1, created_at="2024-01-01T00:00:00Z")
        newer = make_rule("rule-a", 1, created_at="2024-06-01T00:00:00Z")
        same_time = make_rule("rule-y", 1, created_at="2024-01-01T00:00:00Z")

        winner = resolver.resolve(eneos_transaction, driver_context, [newer, older, same_time])

        assert winner.id == "rule-y"


class TestFiltering:
    """Inactive, wrong-type and non-matching rules."""

    def test_inactive_rules_skipped(self, make_rule, resolver, eneos_transaction, driver_context):
        inactive = make_rule("rule-off", 1, status=RuleStatus.INACTIVE)

        assert resolver.resolve(eneos_transaction, driver_context, [inactive]) is None

    def test_rule_type_must_match(self, make_rule, resolver, eneos_transaction, driver_context):
        income_rule = make_rule("rule-income", 1, rule_type=RuleType.INCOME)

        assert resolver.resolve(eneos_transaction, driver_context, [income_rule]) is None

    def test_no_rules_is_none(self, resolver, eneos_transaction, driver_context):
        assert resolver.resolve(eneos_transaction, driver_context, []) is None

    def test_unknown_amount_fails_amount_range(self, make_rule, resolver, driver_context):
        transaction = TransactionFact(amount=None, supplier_text="エネオス")
        ranged = make_rule("rule-ranged", 1, amount_min=0)

        assert resolver.resolve(transaction, driver_context, [ranged]) is None

    def test_malformed_rule_type_raises(self, resolver, driver_context):
        transaction = TransactionFact(amount=100, rule_type="transfer")

        with pytest.raises(MalformedTransactionError):
            resolver.resolve(transaction, driver_context, [])


class TestResolveFromStore:
    """Resolution against persisted rules."""

    def test_uses_current_store_contents(
        self, make_rule, store, eneos_transaction, driver_context
    ):
        """Rules added after the resolver was built are visible."""
        resolver = RuleResolver(store)
        assert resolver.resolve_from_store(eneos_transaction, driver_context) is None

        stored = store.create_rule(
            make_rule(
                "",
                1,
                client_id="client-tanaka",
                supplier_pattern="エネオス",
                account_item_id="acc-501",
            )
        )

        assert resolver.resolve_from_store(eneos_transaction, driver_context).id == stored.id

    def test_deactivated_rule_no_longer_resolves(
        self, make_rule, store, eneos_transaction, driver_context
    ):
        resolver = RuleResolver(store)
        stored = store.create_rule(make_rule("", 1, supplier_pattern="エネオス"))
        store.deactivate_rule(stored.id)

        assert resolver.resolve_from_store(eneos_transaction, driver_context) is None

    def test_requires_store(self, eneos_transaction, driver_context):
        with pytest.raises(RuntimeError):
            RuleResolver().resolve_from_store(eneos_transaction, driver_context)
