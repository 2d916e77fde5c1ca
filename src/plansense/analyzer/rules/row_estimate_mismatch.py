"""
Rule: Row Estimate Mismatch

Detects operators whose actual row count is at least 10x away from the
optimizer's estimate, in either direction (actual plans only).

Why it matters:
- SQL Server picks join types, memory grants and parallelism from estimates
- Underestimates cause spills and nested loops over far too many rows
- Overestimates waste memory grants and pick scans where seeks would do

Severity based on the mismatch factor:
- >= 100x: CRITICAL
- >= 10x: WARNING
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, RuleConfig
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


class RowEstimateMismatchConfig(RuleConfig):
    """
    mismatch_ratio: flag when actual/estimate >= ratio or <= 1/ratio
    critical_factor: escalate when the factor reaches this value
    """

    mismatch_ratio: float = 10.0
    critical_factor: float = 100.0


@register_rule
class RowEstimateMismatch(NodeRule):
    rule_id = "ROW_ESTIMATE_MISMATCH"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Row Estimate Mismatch"
    description = "Actual rows differ from the estimate by 10x or more"
    config_schema = RowEstimateMismatchConfig
    position = 40

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        if not node.has_actual_stats or node.estimate_rows <= 0:
            return []

        threshold = self.config.mismatch_ratio
        ratio = node.actual_rows / node.estimate_rows

        if ratio >= threshold:
            direction = "underestimated"
            factor = ratio
        elif ratio <= 1.0 / threshold:
            direction = "overestimated"
            # Zero actual rows against a positive estimate is an unbounded miss
            factor = 1.0 / ratio if ratio > 0 else math.inf
        else:
            return []

        severity = (
            PlanWarningSeverity.CRITICAL
            if factor >= self.config.critical_factor
            else PlanWarningSeverity.WARNING
        )
        return [self.warning(
            f"Estimated {node.estimate_rows:,.0f} rows, actual {node.actual_rows:,.0f} "
            f"({_format_factor(factor)}x {direction}). May cause poor plan choices.",
            severity,
        )]


def _format_factor(factor: float) -> str:
    if math.isinf(factor):
        return "∞"
    return f"{factor:.0f}"
