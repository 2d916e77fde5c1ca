"""
Rule: Scan With Predicate

Detects table/index scans that filter rows with a residual predicate.

Operator classification is by substring ("Table Scan", "Clustered Index Scan",
"Index Scan", ...), since operator names are an open, versioned vocabulary.
Spool operators that happen to contain "Scan" are excluded so a spool isn't
reported twice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, PredicateRuleConfig, has_text, truncate
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


@register_rule
class ScanWithPredicate(NodeRule):
    rule_id = "SCAN_WITH_PREDICATE"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Scan With Predicate"
    description = "Scan filtering rows with a residual predicate"
    config_schema = PredicateRuleConfig
    position = 90

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        op = node.physical_op.lower()
        if "scan" not in op or "spool" in op:
            return []
        if not has_text(node.predicate):
            return []

        predicate = truncate(node.predicate, self.config.max_predicate_length)
        return [self.warning(
            "Scan filtering rows with a residual predicate. An index on the "
            f"predicate columns may help. Predicate: {predicate}"
        )]
