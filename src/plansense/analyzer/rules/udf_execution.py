"""
Rule: UDF Execution

Reports time an operator spent inside scalar UDFs (actual plans only).
Timings arrive in microseconds and are reported in milliseconds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, RuleConfig
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


class UdfExecutionConfig(RuleConfig):
    critical_elapsed_ms: float = 1000.0


@register_rule
class UdfExecution(NodeRule):
    """
    Flag operators with measured UDF CPU or elapsed time.

    Severity:
    - elapsed >= 1000ms: CRITICAL
    - otherwise: WARNING
    """

    rule_id = "UDF_EXECUTION"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "UDF Execution"
    description = "Scalar UDF time measured on this operator"
    config_schema = UdfExecutionConfig
    position = 30

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        if node.udf_cpu_time_us <= 0 and node.udf_elapsed_time_us <= 0:
            return []

        cpu_ms = node.udf_cpu_time_us / 1000.0
        elapsed_ms = node.udf_elapsed_time_us / 1000.0

        severity = (
            PlanWarningSeverity.CRITICAL
            if elapsed_ms >= self.config.critical_elapsed_ms
            else PlanWarningSeverity.WARNING
        )
        return [self.warning(
            f"Scalar UDF executing on this operator. "
            f"UDF elapsed: {elapsed_ms:.1f}ms, UDF CPU: {cpu_ms:.1f}ms",
            severity,
        )]
