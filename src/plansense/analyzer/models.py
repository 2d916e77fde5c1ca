"""
Data models for the analyzer module.

The warnings themselves live on the plan (see plansense.parser.models). These
models describe the analysis run: which rules ran, how long they took, how many
warnings they added, and whether any of them failed.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RulePhase(IntEnum):
    """
    Where a rule applies.

    STATEMENT: Runs once per statement, before its operator tree is walked
    NODE: Runs at every operator, in pre-order
    """
    STATEMENT = 1
    NODE = 2


class RuleRunStatus(str, Enum):
    """
    Status of a rule across one analysis run.

    PASS: Every application completed
    SKIP: Rule was disabled by configuration
    FAIL: At least one application raised
    """

    PASS = "pass"
    SKIP = "skip"
    FAIL = "fail"


class RuleRun(BaseModel):
    """Record of one rule's applications during an analysis run."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Unique rule identifier")
    version: str = Field(..., description="Rule version")
    status: RuleRunStatus = Field(..., description="Execution status")
    applications: int = Field(default=0, description="Statements or nodes the rule was applied to")
    warnings_added: int = Field(default=0, description="Warnings appended by this rule")
    runtime_ms: float = Field(default=0.0, description="Total time spent in the rule")
    failures: int = Field(default=0, description="Applications that raised")
    skip_reason: str | None = Field(default=None, description="Reason if SKIP")


class AnalysisResult(BaseModel):
    """
    Observability record of one Analyzer.run() call.

    The annotated plan is the primary output; this is what the run did to it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    statement_count: int = Field(default=0, description="Statements visited")
    node_count: int = Field(default=0, description="Operators visited")
    warnings_added: int = Field(default=0, description="Warnings appended across the plan")
    escalations: int = Field(default=0, description="Existing warnings raised to Critical")

    rule_runs: tuple[RuleRun, ...] = Field(default_factory=tuple)

    errors: tuple[Any, ...] = Field(
        default_factory=tuple,
        description="RuleError instances from failed rule applications",
    )

    duration_ms: float = Field(default=0.0, description="Wall time of the run")

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def rule_runs_by_status(self, status: RuleRunStatus) -> list[RuleRun]:
        return [r for r in self.rule_runs if r.status == status]

    def summary(self) -> dict[str, int | float]:
        return {
            "statements": self.statement_count,
            "nodes": self.node_count,
            "warnings_added": self.warnings_added,
            "escalations": self.escalations,
            "rules_passed": len(self.rule_runs_by_status(RuleRunStatus.PASS)),
            "rules_skipped": len(self.rule_runs_by_status(RuleRunStatus.SKIP)),
            "rules_failed": len(self.rule_runs_by_status(RuleRunStatus.FAIL)),
            "duration_ms": round(self.duration_ms, 3),
        }
