"""
Rule: Eager Index Spool

Detects the optimizer building a temporary index in tempdb at runtime.

Why it matters:
- The spool is rebuilt on every execution
- It is built single-threaded, even in parallel plans
- It is a strong hint that a permanent index is missing

The suggested index text, when the plan carries one, is passed through as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, has_text
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


@register_rule
class EagerIndexSpool(NodeRule):
    rule_id = "EAGER_INDEX_SPOOL"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Eager Index Spool"
    description = "Optimizer builds a temporary index at runtime"
    position = 20

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        if node.logical_op != "Eager Spool":
            return []
        if "spool" not in node.physical_op.lower():
            return []

        message = "Optimizer is building a temporary index at runtime. A permanent index may help."
        if has_text(node.suggested_index):
            message += f"\n\nSuggested index:\n{node.suggested_index}"

        return [self.warning(message)]
