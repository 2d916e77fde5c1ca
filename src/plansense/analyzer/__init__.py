"""
Execution plan analyzer module - rule engine.

Module responsibilities (one concept, one module):
- analyzer.py: Analyzer orchestrator and the analyze() entry point
- models.py: Run records (RuleRun, AnalysisResult) and RulePhase
- path.py: NodePath and the pre-order traversal
- registry.py: Rule registration and discovery
- rules/: One module per diagnostic rule
"""

from plansense.analyzer.analyzer import Analyzer, analyze
from plansense.analyzer.models import (
    AnalysisResult,
    RulePhase,
    RuleRun,
    RuleRunStatus,
)
from plansense.analyzer.path import NodePath, traverse_with_path
from plansense.analyzer.registry import RuleRegistry, get_registry, register_rule
from plansense.analyzer.rules.base import NodeRule, Rule, RuleConfig, StatementRule
from plansense.exceptions import AnalyzerError, ConfigurationError, RuleError

__all__ = [
    "Analyzer",
    "analyze",
    "AnalysisResult",
    "RulePhase",
    "RuleRun",
    "RuleRunStatus",
    "NodePath",
    "traverse_with_path",
    "RuleRegistry",
    "get_registry",
    "register_rule",
    "Rule",
    "RuleConfig",
    "StatementRule",
    "NodeRule",
    "AnalyzerError",
    "ConfigurationError",
    "RuleError",
]
