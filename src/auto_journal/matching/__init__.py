"""Rule resolver implementing the client > industry > shared precedence."""

from auto_journal.matching.resolver import TIER_ORDER, RuleResolver

__all__ = ["RuleResolver", "TIER_ORDER"]
