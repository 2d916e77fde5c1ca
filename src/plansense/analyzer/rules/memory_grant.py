"""
Rule: Memory Grant

Detects two statement-level memory grant problems:
- Excessive grant: the query reserved far more memory than it ever used
- Grant wait: the query queued for its grant before it could start

Why it matters:
- Granted memory is reserved for the whole execution, used or not
- Oversized grants starve concurrent queries and push them into
  RESOURCE_SEMAPHORE waits
- A long grant wait means the server is already under memory pressure

Both checks treat zero as "not reported" and stay silent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plansense.analyzer.registry import register_rule
from plansense.analyzer.rules.base import RuleConfig, StatementRule
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import MemoryGrantInfo, PlanStatement


class MemoryGrantConfig(RuleConfig):
    """
    Thresholds for memory grant warnings.

    waste_ratio and critical_wait_ms are inclusive; min_granted_kb is
    exclusive (grants of exactly 1 MB are not flagged).
    """

    waste_ratio: float = 10.0
    min_granted_kb: int = 1024
    critical_wait_ms: int = 5000


@register_rule
class MemoryGrant(StatementRule):
    """Flag oversized memory grants and memory grant waits."""

    rule_id = "MEMORY_GRANT"
    version = "1.0.0"
    severity = PlanWarningSeverity.WARNING
    description = "Memory grant far larger than used, or query waited for its grant"
    config_schema = MemoryGrantConfig
    position = 20

    EXCESSIVE_GRANT = "Excessive Memory Grant"
    GRANT_WAIT = "Memory Grant Wait"

    def apply(self, statement: "PlanStatement") -> list[PlanWarning]:
        grant = statement.memory_grant
        if grant is None:
            return []

        warnings: list[PlanWarning] = []

        excessive = self._check_excessive_grant(grant)
        if excessive is not None:
            warnings.append(excessive)

        wait = self._check_grant_wait(grant)
        if wait is not None:
            warnings.append(wait)

        return warnings

    def _check_excessive_grant(self, grant: "MemoryGrantInfo") -> PlanWarning | None:
        granted = grant.granted_memory_kb
        used = grant.max_used_memory_kb
        if granted <= 0 or used <= 0:
            return None

        waste_ratio = granted / used
        if waste_ratio < self.config.waste_ratio or granted <= self.config.min_granted_kb:
            return None

        return PlanWarning(
            warning_type=self.EXCESSIVE_GRANT,
            message=(
                f"Granted {granted:,} KB but only used {used:,} KB "
                f"({waste_ratio:.0f}x overestimate). Wasted memory blocks other queries."
            ),
            severity=PlanWarningSeverity.WARNING,
        )

    def _check_grant_wait(self, grant: "MemoryGrantInfo") -> PlanWarning | None:
        wait_ms = grant.grant_wait_time_ms
        if wait_ms <= 0:
            return None

        severity = (
            PlanWarningSeverity.CRITICAL
            if wait_ms >= self.config.critical_wait_ms
            else PlanWarningSeverity.WARNING
        )
        return PlanWarning(
            warning_type=self.GRANT_WAIT,
            message=(
                f"Query waited {wait_ms:,}ms for a memory grant. "
                f"Server may be under memory pressure."
            ),
            severity=severity,
        )
