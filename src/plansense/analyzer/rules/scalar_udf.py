"""
Rule: Scalar UDF

One warning per scalar UDF referenced by an operator. Works on estimated
plans too, since the reference is compile-time information.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


@register_rule
class ScalarUdfReference(NodeRule):
    rule_id = "SCALAR_UDF"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Scalar UDF"
    description = "Operator references a scalar UDF"
    position = 50

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        warnings: list[PlanWarning] = []
        for udf in node.scalar_udfs:
            kind = "CLR" if udf.is_clr_function else "T-SQL"
            warnings.append(self.warning(
                f"Scalar {kind} UDF reference: {udf.function_name}. "
                f"Scalar UDFs execute row-by-row and prevent parallelism."
            ))
        return warnings
