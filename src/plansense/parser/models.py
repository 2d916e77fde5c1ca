"""
Pydantic models for a parsed SQL Server execution plan.

These models represent the tree the diagnostic engine consumes. The structure is:
- ParsedPlan: Root, an ordered list of batches
- Batch: An ordered list of statements
- PlanStatement: One statement's plan (statement-level warnings, memory grant,
  and the root of its operator tree)
- PlanNode: Recursive structure representing each operator in the plan tree

The models are produced upstream (by a showplan parser, or by loading the JSON
form written by dump_plan) and are deliberately mutable: the analyzer appends
warnings to them in place.

Showplan uses PascalCase attribute names (PhysicalOp, EstimateRows, ...), which
we map to snake_case via Pydantic aliases for Pythonic access.

Reference: https://learn.microsoft.com/en-us/sql/relational-databases/showplan-logical-and-physical-operators-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field


class PlanWarningSeverity(str, Enum):
    """
    Severity of a plan warning.

    INFO is only produced upstream; the engine's rules emit WARNING or
    CRITICAL.
    """
    INFO = "Info"
    WARNING = "Warning"
    CRITICAL = "Critical"


class _PlanModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


class SpillDetail(_PlanModel):
    """Spill counters attached to a warning by the plan parser."""

    writes_to_temp_db: int = Field(
        default=0,
        ge=0,
        alias="WritesToTempDb",
        description="Pages written to tempdb by the spill",
    )

    reads_from_temp_db: int = Field(
        default=0,
        ge=0,
        alias="ReadsFromTempDb",
        description="Pages read back from tempdb",
    )

    spill_type: str | None = Field(
        default=None,
        alias="SpillType",
        description="Sort, Hash or Exchange",
    )

    granted_memory_kb: int = Field(default=0, ge=0, alias="GrantedMemoryKB")
    used_memory_kb: int = Field(default=0, ge=0, alias="UsedMemoryKB")


class PlanWarning(_PlanModel):
    """
    A single warning attached to a statement or operator.

    Warnings come from two places: the upstream parser (spills, implicit
    conversions, ...) and the engine's rule catalog. Only the parser sets
    spill_details.
    """

    warning_type: str = Field(
        ...,
        alias="WarningType",
        description="Category label (e.g., 'Serial Plan', 'Key Lookup')",
    )

    message: str = Field(
        ...,
        alias="Message",
        description="Rendered warning text",
    )

    severity: PlanWarningSeverity = Field(
        default=PlanWarningSeverity.WARNING,
        alias="Severity",
    )

    spill_details: SpillDetail | None = Field(
        default=None,
        alias="SpillDetails",
    )

    @property
    def is_spill(self) -> bool:
        return self.spill_details is not None


class ScalarUdf(_PlanModel):
    """A scalar user-defined function referenced by an operator."""

    function_name: str = Field(..., alias="FunctionName")
    is_clr_function: bool = Field(default=False, alias="IsClrFunction")


class ThreadStat(_PlanModel):
    """Per-thread runtime counters of a parallel operator (actual plans only)."""

    thread_id: int = Field(..., alias="ThreadId")
    actual_rows: int = Field(default=0, ge=0, alias="ActualRows")


class MemoryGrantInfo(_PlanModel):
    """
    Statement memory grant. Zero means "not reported", not "reported as zero".
    """

    granted_memory_kb: int = Field(default=0, ge=0, alias="GrantedMemoryKB")
    max_used_memory_kb: int = Field(default=0, ge=0, alias="MaxUsedMemoryKB")
    grant_wait_time_ms: int = Field(default=0, ge=0, alias="GrantWaitTimeMs")


class PlanNode(_PlanModel):
    """
    One operator in the execution plan tree.

    This is a recursive structure - each node owns its children in the
    `children` field, in the order the plan lists them.

    Fields are divided into:
    - Identity: operator names as emitted by the plan format
    - Estimates and runtime counters (runtime counters are zero/empty unless
      the plan is an actual plan)
    - Annotations: the warning list, which may already hold parser warnings
    """

    # =========================================================================
    # Identity
    # =========================================================================

    node_id: int = Field(default=0, alias="NodeId")

    physical_op: str = Field(
        default="",
        alias="PhysicalOp",
        description="Physical operator name (e.g., 'Clustered Index Scan')",
    )

    logical_op: str = Field(
        default="",
        alias="LogicalOp",
        description="Logical operator name (e.g., 'Eager Spool')",
    )

    object_name: str | None = Field(
        default=None,
        alias="ObjectName",
        description="Table/index the operator touches (display only)",
    )

    # =========================================================================
    # Predicates and advisory text
    # =========================================================================

    predicate: str | None = Field(
        default=None,
        alias="Predicate",
        description="Residual predicate evaluated on fetched rows",
    )

    suggested_index: str | None = Field(
        default=None,
        alias="SuggestedIndex",
        description="Advisory CREATE INDEX text carried from the plan",
    )

    lookup: bool = Field(
        default=False,
        alias="Lookup",
        description="True for key/RID lookup operators",
    )

    # =========================================================================
    # Estimates and runtime statistics
    # =========================================================================

    has_actual_stats: bool = Field(default=False, alias="HasActualStats")
    estimate_rows: float = Field(default=0.0, alias="EstimateRows")
    actual_rows: float = Field(default=0.0, alias="ActualRows")

    udf_cpu_time_us: int = Field(default=0, ge=0, alias="UdfCpuTimeUs")
    udf_elapsed_time_us: int = Field(default=0, ge=0, alias="UdfElapsedTimeUs")

    scalar_udfs: list[ScalarUdf] = Field(default_factory=list, alias="ScalarUdfs")

    per_thread_stats: list[ThreadStat] = Field(
        default_factory=list,
        alias="PerThreadStats",
        description="Populated only for parallel actual plans",
    )

    # =========================================================================
    # Tree structure and annotations
    # =========================================================================

    children: list[PlanNode] = Field(default_factory=list, alias="Children")

    warnings: list[PlanWarning] = Field(default_factory=list, alias="Warnings")

    def iter_nodes(self) -> Iterator[PlanNode]:
        """
        Iterate through this node and all descendants in pre-order.

        Uses an explicit stack, so arbitrarily deep trees are fine.
        """
        stack: list[PlanNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class PlanStatement(_PlanModel):
    """One SQL statement's plan."""

    statement_text: str = Field(default="", alias="StatementText")

    non_parallel_plan_reason: str | None = Field(
        default=None,
        alias="NonParallelPlanReason",
        description="Machine code explaining why the plan is serial",
    )

    memory_grant: MemoryGrantInfo | None = Field(default=None, alias="MemoryGrant")

    root_node: PlanNode | None = Field(
        default=None,
        alias="RootNode",
        description="Absent for statements without a compiled plan",
    )

    plan_warnings: list[PlanWarning] = Field(default_factory=list, alias="PlanWarnings")

    @property
    def all_nodes(self) -> list[PlanNode]:
        if self.root_node is None:
            return []
        return list(self.root_node.iter_nodes())


class Batch(_PlanModel):
    statements: list[PlanStatement] = Field(default_factory=list, alias="Statements")


class ParsedPlan(_PlanModel):
    """
    Root of a parsed plan document.

    Usage:
        plan = load_plan("plan.json")
        analyze(plan)

        for warning in plan.all_warnings():
            print(warning.severity.value, warning.message)
    """

    batches: list[Batch] = Field(default_factory=list, alias="Batches")

    @property
    def statements(self) -> list[PlanStatement]:
        """All statements across batches, in declaration order."""
        return [stmt for batch in self.batches for stmt in batch.statements]

    @property
    def all_nodes(self) -> list[PlanNode]:
        """Every operator of every statement, pre-order per statement."""
        return [node for stmt in self.statements for node in stmt.all_nodes]

    def all_warnings(self) -> list[PlanWarning]:
        """Statement warnings followed by node warnings, per statement."""
        warnings: list[PlanWarning] = []
        for stmt in self.statements:
            warnings.extend(stmt.plan_warnings)
            for node in stmt.all_nodes:
                warnings.extend(node.warnings)
        return warnings
