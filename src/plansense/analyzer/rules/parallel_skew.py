"""
Rule: Parallel Skew

Detects parallel operators where one thread did nearly all the work
(actual plans with per-thread counters).

Why it matters:
- A parallel operator finishes when its slowest thread finishes
- With 90% of rows on one thread, a DOP 8 plan runs at roughly serial speed
  while still holding eight workers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import NodeRule, RuleConfig
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode


class ParallelSkewConfig(RuleConfig):
    """Both thresholds are inclusive."""

    skew_ratio: float = 0.9
    min_threads: int = 4


@register_rule
class ParallelSkew(NodeRule):
    rule_id = "PARALLEL_SKEW"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    warning_type = "Parallel Skew"
    description = "One thread processed nearly all rows of a parallel operator"
    config_schema = ParallelSkewConfig
    position = 70

    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        stats = node.per_thread_stats
        if len(stats) <= 1:
            return []

        total_rows = sum(t.actual_rows for t in stats)
        if total_rows <= 0:
            return []

        # max() keeps the first thread on ties
        busiest = max(stats, key=lambda t: t.actual_rows)
        skew = busiest.actual_rows / total_rows

        if skew < self.config.skew_ratio or len(stats) < self.config.min_threads:
            return []

        return [self.warning(
            f"Thread {busiest.thread_id} processed {skew:.0%} of rows "
            f"({busiest.actual_rows:,}/{total_rows:,}). Work is heavily skewed to one thread."
        )]
