"""
Rule: Key Lookup

Detects key/RID lookups that also evaluate a residual predicate: rows are
fetched one lookup at a time only for some of them to be discarded. A
covering index usually removes both the lookup and the predicate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, PredicateRuleConfig, has_text, truncate
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


@register_rule
class KeyLookup(NodeRule):
    rule_id = "KEY_LOOKUP"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Key Lookup"
    description = "Key Lookup with a residual predicate"
    config_schema = PredicateRuleConfig
    position = 80

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        if not node.lookup or not has_text(node.predicate):
            return []

        predicate = truncate(node.predicate, self.config.max_predicate_length)
        return [self.warning(
            "Key Lookup with residual predicate. A covering index may eliminate "
            f"this lookup. Predicate: {predicate}"
        )]
