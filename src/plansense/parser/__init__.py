"""Plan model and plan document loading."""

from plansense.exceptions import ParseError
from plansense.parser.config import DEFAULT_CONFIG, STRICT_CONFIG, LoaderConfig
from plansense.parser.models import (
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
)
from plansense.parser.parser import dump_plan, load_plan

__all__ = [
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
    "load_plan",
    "dump_plan",
    "ParseError",
    "LoaderConfig",
    "DEFAULT_CONFIG",
    "STRICT_CONFIG",
]
