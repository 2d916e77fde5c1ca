"""
Output renderers for different formats.

Separates presentation logic from analysis logic. The analyzer writes its
diagnostics onto the plan; renderers flatten them with their location and
format them alongside the run's AnalysisResult.

JSON goes through the schema.py Pydantic models so the report shape has a
single source of truth.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from plansense.analyzer.path import NodePath, traverse_with_path
from plansense.output.schema import (
    LocatedWarningSchema,
    ReportSchema,
    RuleRunSchema,
    SummarySchema,
)
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.analyzer.models import AnalysisResult
    from plansense.parser.models import ParsedPlan


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class LocatedWarning(BaseModel):
    """A plan warning together with the statement or operator carrying it."""

    model_config = ConfigDict(frozen=True)

    batch_index: int
    statement_index: int
    path: NodePath
    node_id: int | None = None
    physical_op: str | None = None
    warning: PlanWarning

    @property
    def severity(self) -> PlanWarningSeverity:
        return self.warning.severity


SEVERITY_ORDER = {
    PlanWarningSeverity.INFO: 0,
    PlanWarningSeverity.WARNING: 1,
    PlanWarningSeverity.CRITICAL: 2,
}


def collect_warnings(plan: "ParsedPlan") -> list[LocatedWarning]:
    """
    Flatten every warning on the plan, in plan order.

    Statement warnings come before the warnings of that statement's
    operators; operators are listed in pre-order.
    """
    located: list[LocatedWarning] = []

    for b, batch in enumerate(plan.batches):
        for s, statement in enumerate(batch.statements):
            statement_path = NodePath.statement(b, s)
            for warning in statement.plan_warnings:
                located.append(LocatedWarning(
                    batch_index=b,
                    statement_index=s,
                    path=statement_path,
                    warning=warning,
                ))

            if statement.root_node is None:
                continue

            for path, node in traverse_with_path(statement.root_node, statement_path.root_node()):
                for warning in node.warnings:
                    located.append(LocatedWarning(
                        batch_index=b,
                        statement_index=s,
                        path=path,
                        node_id=node.node_id,
                        physical_op=node.physical_op or None,
                        warning=warning,
                    ))

    return located


def count_by_severity(warnings: list[LocatedWarning]) -> dict[PlanWarningSeverity, int]:
    counts = {severity: 0 for severity in PlanWarningSeverity}
    for located in warnings:
        counts[located.severity] += 1
    return counts


def max_severity(warnings: list[LocatedWarning]) -> PlanWarningSeverity | None:
    """Highest severity present, or None for a clean plan."""
    if not warnings:
        return None
    return max((w.severity for w in warnings), key=SEVERITY_ORDER.__getitem__)


def render(
    plan: "ParsedPlan",
    result: "AnalysisResult",
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Render an analyzed plan in the specified format.

    Args:
        plan: Plan after analysis (warnings attached)
        result: The AnalysisResult of that analysis
        format: Output format (text, json, markdown)

    Returns:
        Formatted string
    """
    if format == OutputFormat.TEXT:
        return render_text(plan, result)
    elif format == OutputFormat.JSON:
        return render_json(plan, result)
    elif format == OutputFormat.MARKDOWN:
        return render_markdown(plan, result)
    else:
        raise ValueError(f"Unknown output format: {format}")


def _severity_icon(severity: PlanWarningSeverity) -> str:
    return {
        PlanWarningSeverity.CRITICAL: "🔴",
        PlanWarningSeverity.WARNING: "🟡",
        PlanWarningSeverity.INFO: "🔵",
    }[severity]


def format_location(located: LocatedWarning) -> str:
    """Where a warning lives, e.g. "Batches[0] → ... → Children[1] (Node 2: Clustered Index Seek)"."""
    if located.node_id is None:
        return str(located.path)
    return f"{located.path} (Node {located.node_id}: {located.physical_op or '?'})"


def message_lines(located: LocatedWarning) -> list[str]:
    """The warning message split for indented display."""
    return located.warning.message.split("\n")


# =============================================================================
# Schema-based serialization (single source of truth)
# =============================================================================


def build_report(plan: "ParsedPlan", result: "AnalysisResult") -> ReportSchema:
    """Convert an analyzed plan and its result to the report schema."""
    warnings = collect_warnings(plan)
    counts = count_by_severity(warnings)
    summary = result.summary()

    return ReportSchema(
        version="1.0",
        summary=SummarySchema(
            total=len(warnings),
            critical=counts[PlanWarningSeverity.CRITICAL],
            warning=counts[PlanWarningSeverity.WARNING],
            info=counts[PlanWarningSeverity.INFO],
            statements=result.statement_count,
            nodes=result.node_count,
            warnings_added=result.warnings_added,
            escalations=result.escalations,
            rules_passed=summary["rules_passed"],
            rules_skipped=summary["rules_skipped"],
            rules_failed=summary["rules_failed"],
            duration_ms=summary["duration_ms"],
        ),
        warnings=[
            LocatedWarningSchema(
                batch=w.batch_index,
                statement=w.statement_index,
                path=str(w.path),
                node_id=w.node_id,
                physical_op=w.physical_op,
                warning_type=w.warning.warning_type,
                severity=w.severity.value,
                message=w.warning.message,
            )
            for w in warnings
        ],
        rule_runs=[
            RuleRunSchema(
                rule_id=run.rule_id,
                version=run.version,
                status=run.status.value,
                applications=run.applications,
                warnings_added=run.warnings_added,
                runtime_ms=run.runtime_ms,
                failures=run.failures,
                skip_reason=run.skip_reason,
            )
            for run in result.rule_runs
        ],
        errors=[str(e) for e in result.errors],
    )


# =============================================================================
# Text renderer (terminal)
# =============================================================================


def render_text(plan: "ParsedPlan", result: "AnalysisResult") -> str:
    """Render as plain terminal text."""
    warnings = collect_warnings(plan)
    counts = count_by_severity(warnings)
    summary = result.summary()

    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("PlanSense Analysis Report")
    lines.append("=" * 60)
    lines.append("")

    lines.append("Summary:")
    lines.append(f"  Statements: {result.statement_count}, Operators: {result.node_count}")
    lines.append(f"  Total Warnings: {len(warnings)}")
    if counts[PlanWarningSeverity.CRITICAL]:
        lines.append(f"  🔴 Critical: {counts[PlanWarningSeverity.CRITICAL]}")
    if counts[PlanWarningSeverity.WARNING]:
        lines.append(f"  🟡 Warnings: {counts[PlanWarningSeverity.WARNING]}")
    if counts[PlanWarningSeverity.INFO]:
        lines.append(f"  🔵 Info: {counts[PlanWarningSeverity.INFO]}")
    lines.append(
        f"Rules: {summary['rules_passed']} passed, "
        f"{summary['rules_skipped']} skipped, {summary['rules_failed']} failed"
    )
    lines.append("")

    if warnings:
        lines.append("-" * 60)
        lines.append("WARNINGS")
        lines.append("-" * 60)

        for i, located in enumerate(warnings, 1):
            lines.append("")
            lines.append(
                f"[{i}] {_severity_icon(located.severity)} {located.warning.warning_type}"
            )
            lines.append(f"    Location: {format_location(located)}")
            lines.append("")
            for line in message_lines(located):
                lines.append(f"    {line}" if line else "")
    else:
        lines.append("✓ No issues found")

    if result.errors:
        lines.append("")
        lines.append("Rule failures:")
        for error in result.errors:
            lines.append(f"  ✗ {error}")

    lines.append("")
    lines.append("=" * 60)

    return "\n".join(lines)


# =============================================================================
# JSON renderer (uses schema models)
# =============================================================================


def render_json(plan: "ParsedPlan", result: "AnalysisResult", indent: int = 2) -> str:
    """
    Render as stable JSON schema.

    Suitable for CI/CD integration and log aggregation.
    """
    return build_report(plan, result).model_dump_json(indent=indent)


# =============================================================================
# Markdown renderer
# =============================================================================


def render_markdown(plan: "ParsedPlan", result: "AnalysisResult") -> str:
    """
    Render as Markdown.

    Suitable for GitHub comments/issues and documentation.
    """
    warnings = collect_warnings(plan)
    counts = count_by_severity(warnings)

    lines: list[str] = []
    lines.append("# PlanSense Analysis Report")
    lines.append("")

    if counts[PlanWarningSeverity.CRITICAL]:
        lines.append("🔴 **Critical issues found**")
    elif counts[PlanWarningSeverity.WARNING]:
        lines.append("🟡 **Warnings found**")
    else:
        lines.append("✅ **No issues found**")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Statements | {result.statement_count} |")
    lines.append(f"| Operators | {result.node_count} |")
    lines.append(f"| Total Warnings | {len(warnings)} |")
    lines.append(f"| Critical | {counts[PlanWarningSeverity.CRITICAL]} |")
    lines.append(f"| Warnings | {counts[PlanWarningSeverity.WARNING]} |")
    lines.append(f"| Info | {counts[PlanWarningSeverity.INFO]} |")
    lines.append("")

    if warnings:
        lines.append("## Warnings")
        lines.append("")

        for i, located in enumerate(warnings, 1):
            lines.append(
                f"### {i}. {_severity_icon(located.severity)} {located.warning.warning_type}"
            )
            lines.append("")
            lines.append(f"**Location:** `{format_location(located)}`  ")
            lines.append(f"**Severity:** {located.severity.value}")
            lines.append("")
            message, _, suggested_index = located.warning.message.partition("\n\nSuggested index:\n")
            lines.append(message)
            lines.append("")
            if suggested_index:
                lines.append("**Suggested index:**")
                lines.append("")
                lines.append("```sql")
                lines.append(suggested_index)
                lines.append("```")
                lines.append("")

    if result.errors:
        lines.append("## Rule Failures")
        lines.append("")
        for error in result.errors:
            lines.append(f"- `{error}`")
        lines.append("")

    return "\n".join(lines)
