"""
JSON Schema definitions for stable report output.

Provides versioned schema for:
- CI/CD integration
- Log aggregation
- Documentation generation

The schema is stable across minor versions.
Breaking changes only in major versions.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LocatedWarningSchema(BaseModel):
    """Schema for one plan warning and where it was found."""

    model_config = ConfigDict(frozen=True)

    batch: int = Field(..., description="Batch index in the plan")
    statement: int = Field(..., description="Statement index within the batch")
    path: str = Field(..., description="Path to the statement or operator")
    node_id: int | None = Field(None, description="Operator NodeId, None for statement warnings")
    physical_op: str | None = Field(None, description="Operator name, None for statement warnings")
    warning_type: str = Field(..., description="Warning category")
    severity: str = Field(..., description="Info, Warning or Critical")
    message: str = Field(..., description="Human-readable diagnostic")


class RuleRunSchema(BaseModel):
    """Schema for rule execution record."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Rule identifier")
    version: str = Field(..., description="Rule version")
    status: str = Field(..., description="Execution status (pass/skip/fail)")
    applications: int = Field(0, description="Statements or nodes visited")
    warnings_added: int = Field(0, description="Warnings appended by the rule")
    runtime_ms: float = Field(0.0, description="Execution time in milliseconds")
    failures: int = Field(0, description="Applications that raised")
    skip_reason: str | None = Field(None, description="Reason if skipped")


class SummarySchema(BaseModel):
    """Schema for the report summary."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(..., description="Warnings on the plan after analysis")
    critical: int = Field(0)
    warning: int = Field(0)
    info: int = Field(0)
    statements: int = Field(0, description="Statements analyzed")
    nodes: int = Field(0, description="Operators analyzed")
    warnings_added: int = Field(0, description="Warnings added by this run")
    escalations: int = Field(0, description="Warnings escalated to Critical")
    rules_passed: int = Field(0)
    rules_skipped: int = Field(0)
    rules_failed: int = Field(0)
    duration_ms: float = Field(0.0)


class ReportSchema(BaseModel):
    """Top-level JSON report."""

    model_config = ConfigDict(frozen=True)

    version: str = Field("1.0", description="Schema version")
    summary: SummarySchema
    warnings: list[LocatedWarningSchema] = Field(default_factory=list)
    rule_runs: list[RuleRunSchema] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list, description="Rule failures")
