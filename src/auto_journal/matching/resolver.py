"""Rule resolver for the layered classification precedence.

Rules are grouped into three scope tiers that are consulted in a fixed order:

1. Client rules (only when the client opted into custom rules)
2. Industry rules (only when the client has an industry)
3. Shared rules

The first tier with at least one matching rule wins; inside that tier the
lowest priority number wins. A client rule with priority 99 therefore beats a
shared rule with priority 1.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from auto_journal.schemas import ClientContext, Rule, RuleScope, RuleType, TransactionFact

if TYPE_CHECKING:
    from auto_journal.state_store import StateStore

logger = logging.getLogger(__name__)

# Resolution order; never merge tiers into one sorted list
TIER_ORDER: tuple[RuleScope, ...] = (RuleScope.CLIENT, RuleScope.INDUSTRY, RuleScope.SHARED)


class RuleResolver:
    """Select the single winning rule for a transaction.

    The resolver is a pure function of its inputs: it holds no rule cache and
    has no side effects, so rule edits are visible on the next call.
    """

    def __init__(self, state_store: StateStore | None = None) -> None:
        """Initialize the resolver.

        Args:
            state_store: Optional store used by resolve_from_store().
        """
        self.store = state_store

    def resolve(
        self,
        transaction: TransactionFact,
        client_context: ClientContext,
        rules: Iterable[Rule],
    ) -> Rule | None:
        """Return the winning rule, or None when nothing matches.

        Args:
            transaction: Transaction facts to classify.
            client_context: Client the transaction belongs to.
            rules: Candidate rules in any order.

        Returns:
            The winning Rule, or None.

        Raises:
            MalformedTransactionError: If the transaction has no usable rule type.
        """
        rule_type = transaction.validate()
        tiers = self._partition(rules, rule_type, client_context)

        for scope in TIER_ORDER:
            candidates = [rule for rule in tiers[scope] if rule.matches(transaction)]
            if not candidates:
                continue

            winner = min(candidates, key=Rule.sort_key)
            logger.debug(
                "Rule %s (%s tier, priority %d) selected for client %s among %d candidate(s)",
                winner.id,
                scope.value,
                winner.priority,
                client_context.client_id,
                len(candidates),
            )
            return winner

        logger.debug(
            "No %s rule matched for client %s (supplier=%r, amount=%s)",
            rule_type.value,
            client_context.client_id,
            transaction.supplier_text,
            transaction.amount,
        )
        return None

    def resolve_from_store(
        self,
        transaction: TransactionFact,
        client_context: ClientContext,
    ) -> Rule | None:
        """Resolve against the current active rules in the state store."""
        if self.store is None:
            raise RuntimeError("RuleResolver was created without a state store")
        rule_type = transaction.validate()
        return self.resolve(transaction, client_context, self.store.get_active_rules(rule_type))

    def _partition(
        self,
        rules: Iterable[Rule],
        rule_type: RuleType,
        client_context: ClientContext,
    ) -> dict[RuleScope, list[Rule]]:
        """Group active rules of the given type into the tiers that apply."""
        tiers: dict[RuleScope, list[Rule]] = {scope: [] for scope in TIER_ORDER}

        for rule in rules:
            if not rule.is_active or rule.rule_type != rule_type:
                continue

            scope = rule.scope
            if scope == RuleScope.CLIENT:
                if client_context.use_custom_rules and rule.client_id == client_context.client_id:
                    tiers[scope].append(rule)
            elif scope == RuleScope.INDUSTRY:
                if client_context.industry_id and rule.industry_id == client_context.industry_id:
                    tiers[scope].append(rule)
            else:
                tiers[scope].append(rule)

        return tiers
