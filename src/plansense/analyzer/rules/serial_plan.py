"""
Rule: Serial Plan

Detects statements the optimizer was prevented from parallelizing, and says
why in plain words.

Why it matters:
- A serial plan runs on one scheduler no matter how many cores are idle
- The reason code tells you whether it's a setting (MAXDOP), a hint, an
  edition limit, or something in the query itself
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import StatementRule, has_text
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanStatement


# NonParallelPlanReason codes with a friendlier phrasing. Codes not listed
# here are reported verbatim.
NON_PARALLEL_REASONS: dict[str, str] = {
    "MaxDOPSetToOne": "MAXDOP is set to 1",
    "EstimatedDOPIsOne": "Estimated DOP is 1",
    "NoParallelPlansInDesktopOrExpressEdition": "Express/Desktop edition does not support parallelism",
    "CouldNotGenerateValidParallelPlan": "Optimizer could not generate a valid parallel plan",
    "QueryHintNoParallelSet": "OPTION (MAXDOP 1) hint forces serial execution",
}


def describe_non_parallel_reason(code: str) -> str:
    return NON_PARALLEL_REASONS.get(code, code)


@register_rule
class SerialPlan(StatementRule):
    """Flag statements that carry a NonParallelPlanReason."""

    rule_id = "SERIAL_PLAN"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Serial Plan"
    description = "Statement was forced to run serially"
    position = 10

    def apply(self, statement: "PlanStatement") -> list[PlanWarning]:
        code = statement.non_parallel_plan_reason
        if not has_text(code):
            return []

        reason = describe_non_parallel_reason(code)
        return [self.warning(f"Query forced to run serially: {reason}")]
