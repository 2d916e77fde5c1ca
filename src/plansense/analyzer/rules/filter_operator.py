"""
Rule: Filter Operator

Detects Filter operators with a predicate. Every row reaching a Filter was
read, joined and carried up the tree only to be thrown away; the predicate is
usually better pushed down to the access method.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, PredicateRuleConfig, has_text, truncate
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


@register_rule
class FilterOperator(NodeRule):
    rule_id = "FILTER_OPERATOR"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Filter Operator"
    description = "Filter operator discards rows late in the plan"
    config_schema = PredicateRuleConfig
    position = 10

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        if node.physical_op != "Filter" or not has_text(node.predicate):
            return []

        predicate = truncate(node.predicate, self.config.max_predicate_length)
        return [self.warning(f"Filter discards rows late in the plan. Predicate: {predicate}")]
