"""Diagnostic rules - one module per anti-pattern."""

from plansense.analyzer.rules.base import (
    NodeRule,
    PredicateRuleConfig,
    Rule,
    RuleConfig,
    StatementRule,
    truncate,
)
from plansense.analyzer.rules.serial_plan import SerialPlan
from plansense.analyzer.rules.memory_grant import MemoryGrant
from plansense.analyzer.rules.filter_operator import FilterOperator
from plansense.analyzer.rules.eager_index_spool import EagerIndexSpool
from plansense.analyzer.rules.udf_execution import UdfExecution
from plansense.analyzer.rules.row_estimate_mismatch import RowEstimateMismatch
from plansense.analyzer.rules.scalar_udf import ScalarUdfReference
from plansense.analyzer.rules.spill_escalation import SpillEscalation
from plansense.analyzer.rules.parallel_skew import ParallelSkew
from plansense.analyzer.rules.key_lookup import KeyLookup
from plansense.analyzer.rules.scan_with_predicate import ScanWithPredicate

__all__ = [
    "Rule",
    "RuleConfig",
    "PredicateRuleConfig",
    "StatementRule",
    "NodeRule",
    "truncate",
    # Statement rules
    "SerialPlan",
    "MemoryGrant",
    # Node rules
    "FilterOperator",
    "EagerIndexSpool",
    "UdfExecution",
    "RowEstimateMismatch",
    "ScalarUdfReference",
    "SpillEscalation",
    "ParallelSkew",
    "KeyLookup",
    "ScanWithPredicate",
]
