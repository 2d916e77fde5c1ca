"""
PlanSense - Diagnostic rules for SQL Server execution plans.

Walks a parsed plan and attaches warnings for well-known performance
anti-patterns: serial plans, oversized memory grants, late filters, eager
index spools, scalar UDFs, bad row estimates, tempdb spills, parallel skew,
key lookups and scans with residual predicates.

Example:
    from plansense import load_plan, analyze

    plan = load_plan("plan.json")
    analyze(plan)

    for warning in plan.all_warnings():
        print(f"[{warning.severity.value}] {warning.warning_type}: {warning.message}")
"""

__version__ = "0.1.0"

from plansense.analyzer import AnalysisResult, Analyzer, analyze
from plansense.exceptions import (
    AnalyzerError,
    ConfigurationError,
    ParseError,
    PlanSenseError,
    RuleError,
)
from plansense.parser import (
    Batch,
    MemoryGrantInfo,
    ParsedPlan,
    PlanNode,
    PlanStatement,
    PlanWarning,
    PlanWarningSeverity,
    ScalarUdf,
    SpillDetail,
    ThreadStat,
    dump_plan,
    load_plan,
)

__all__ = [
    "__version__",
    # Analysis
    "analyze",
    "Analyzer",
    "AnalysisResult",
    # Plan model
    "Batch",
    "MemoryGrantInfo",
    "ParsedPlan",
    "PlanNode",
    "PlanStatement",
    "PlanWarning",
    "PlanWarningSeverity",
    "ScalarUdf",
    "SpillDetail",
    "ThreadStat",
    # Loading
    "load_plan",
    "dump_plan",
    # Errors
    "PlanSenseError",
    "AnalyzerError",
    "ConfigurationError",
    "ParseError",
    "RuleError",
]
