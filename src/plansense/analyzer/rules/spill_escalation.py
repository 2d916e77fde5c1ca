"""
Rule: Spill Escalation

Raises spill warnings to CRITICAL when the spill wrote more than 1000 pages
to tempdb.

Spill warnings are produced by the plan parser from operator runtime
counters, so this rule does not create warnings of its own. It rewrites the
severity of warnings already on the node, including any added earlier in the
same pass; it must therefore run after every rule that can attach a
spill-bearing warning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, RuleConfig
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


class SpillEscalationConfig(RuleConfig):
    # Exclusive: exactly 1000 pages stays at its current severity
    writes_threshold: int = 1000


@register_rule
class SpillEscalation(NodeRule):
    rule_id = "SPILL_ESCALATION"
    version = "1.0.0"
    severity = PlanWarningSeverity.CRITICAL
    description = "Escalates large tempdb spills to critical"
    config_schema = SpillEscalationConfig
    position = 60

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        return []

    def escalate(self, node: "PlanNode") -> int:
        """Escalate qualifying spill warnings in place; return how many changed."""
        changed = 0
        # Snapshot: the list is read while warnings on it are rewritten
        for warning in list(node.warnings):
            details = warning.spill_details
            if details is None or details.writes_to_temp_db <= self.config.writes_threshold:
                continue
            if warning.severity != PlanWarningSeverity.CRITICAL:
                changed += 1
            warning.severity = PlanWarningSeverity.CRITICAL
        return changed
