"""
Analyzer - rule engine for SQL Server execution plans.

Walks every statement of a parsed plan and annotates it in place:

- Statement rules run once per statement, in pipeline order
- Node rules run at every operator of the statement's tree, in pre-order,
  all of them at one node before moving to the next

Warnings a rule returns are appended to the statement or node straight
away, so later rules at the same place see them. The walk is an explicit
stack, so tree depth is bounded by the loader, not by Python's recursion
limit.

Running the analyzer twice over the same plan adds every rule-generated
warning twice. Load a fresh plan for each analysis.

Design Principles:
- Deterministic: Same plan in, same annotations out
- Observable failure: PASS/SKIP/FAIL status for every rule
- Config is not code: Thresholds from Config, not edited into rules
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

import plansense.analyzer.rules  # noqa: F401  (registers the built-in rules)
from plansense.analyzer.models import (
    AnalysisResult,
    RulePhase,
    RuleRun,
    RuleRunStatus,
)
from plansense.analyzer.path import NodePath, traverse_with_path
from plansense.analyzer.registry import get_registry
from plansense.config import Config, get_config
from plansense.exceptions import ConfigurationError, RuleError

if TYPE_CHECKING:
    from plansense.analyzer.rules.base import Rule
    from plansense.parser.models import ParsedPlan, PlanWarning


logger = logging.getLogger(__name__)


class _RuleTally:
    """Mutable per-rule counters, frozen into a RuleRun at the end of a run."""

    __slots__ = ("applications", "warnings_added", "runtime_ms", "failures")

    def __init__(self) -> None:
        self.applications = 0
        self.warnings_added = 0
        self.runtime_ms = 0.0
        self.failures = 0


class Analyzer:
    """
    Rule-based execution plan analyzer.

    Example:
        from plansense import load_plan, Analyzer

        plan = load_plan("plan.json")
        result = Analyzer().run(plan)

        for warning in plan.all_warnings():
            print(f"{warning.severity.value}: {warning.warning_type}")
    """

    def __init__(
        self,
        rules: Iterable[Rule] | None = None,
        include_rules: set[str] | None = None,
        exclude_rules: set[str] | None = None,
        fail_fast: bool = False,
        config: "Config | None" = None,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            rules: Rule instances to use (if None, instantiates the registry)
            include_rules: Only run these rule IDs
            exclude_rules: Skip these rule IDs
            fail_fast: Raise RuleError on the first rule failure
            config: Configuration instance (if None, uses get_config())

        Raises:
            ConfigurationError: If configured thresholds don't fit a rule's schema
        """
        if config is None:
            config = get_config()
        self.config = config
        self.fail_fast = fail_fast

        if rules is not None:
            candidates = sorted(
                (
                    r for r in rules
                    if (include_rules is None or r.rule_id in include_rules)
                    and (exclude_rules is None or r.rule_id not in exclude_rules)
                ),
                key=lambda r: (r.phase, r.position),
            )
        else:
            rule_classes = get_registry().filter(include=include_rules, exclude=exclude_rules)
            candidates = [self._instantiate(cls) for cls in rule_classes]

        self.rules: list[Rule] = []
        self.disabled_rules: list[Rule] = []
        for rule in candidates:
            if self.config.is_rule_enabled(rule.rule_id) and rule.config.enabled:
                self.rules.append(rule)
            else:
                self.disabled_rules.append(rule)

        self.statement_rules = [r for r in self.rules if r.phase == RulePhase.STATEMENT]
        self.node_rules = [r for r in self.rules if r.phase == RulePhase.NODE]

    def _instantiate(self, rule_cls: type[Rule]) -> Rule:
        thresholds = self.config.get_rule_thresholds(rule_cls.rule_id)
        try:
            return rule_cls(thresholds or None)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid thresholds for rule {rule_cls.rule_id}: {e}",
                config_key=rule_cls.rule_id,
            ) from e

    def run(self, plan: "ParsedPlan") -> AnalysisResult:
        """
        Annotate a parsed plan in place.

        Args:
            plan: Parsed plan; its statements and nodes gain warnings

        Returns:
            AnalysisResult describing what the run did

        Raises:
            RuleError: If fail_fast is set and a rule raises
        """
        start_time = time.perf_counter()

        tallies = {rule.rule_id: _RuleTally() for rule in self.rules}
        errors: list[RuleError] = []
        statement_count = 0
        node_count = 0
        warnings_added = 0
        escalations = 0

        for b, batch in enumerate(plan.batches):
            for s, statement in enumerate(batch.statements):
                statement_count += 1
                statement_path = NodePath.statement(b, s)

                for rule in self.statement_rules:
                    added, escalated = self._apply(
                        rule, statement, statement.plan_warnings,
                        statement_path, tallies, errors,
                    )
                    warnings_added += added
                    escalations += escalated

                if statement.root_node is None:
                    continue

                root_path = statement_path.root_node()
                for path, node in traverse_with_path(statement.root_node, root_path):
                    node_count += 1
                    for rule in self.node_rules:
                        added, escalated = self._apply(
                            rule, node, node.warnings,
                            path, tallies, errors,
                        )
                        warnings_added += added
                        escalations += escalated

        duration_ms = (time.perf_counter() - start_time) * 1000

        rule_runs = [self._build_rule_run(rule, tallies[rule.rule_id]) for rule in self.rules]
        rule_runs.extend(
            RuleRun(
                rule_id=rule.rule_id,
                version=rule.version,
                status=RuleRunStatus.SKIP,
                skip_reason="Disabled by configuration",
            )
            for rule in self.disabled_rules
        )

        logger.debug(
            "Analyzed %d statements, %d nodes: %d warnings added, %d escalated in %.2fms",
            statement_count, node_count, warnings_added, escalations, duration_ms,
        )

        return AnalysisResult(
            statement_count=statement_count,
            node_count=node_count,
            warnings_added=warnings_added,
            escalations=escalations,
            rule_runs=tuple(rule_runs),
            errors=tuple(errors),
            duration_ms=duration_ms,
        )

    def _apply(
        self,
        rule: Rule,
        target: Any,
        warnings: "list[PlanWarning]",
        path: NodePath,
        tallies: dict[str, _RuleTally],
        errors: list[RuleError],
    ) -> tuple[int, int]:
        """
        Apply one rule to one target. Returns (warnings added, escalations).

        Warnings appended before the rule fails stay on the target and are
        counted.
        """
        tally = tallies[rule.rule_id]
        tally.applications += 1
        rule_start = time.perf_counter()
        added = 0

        try:
            new_warnings = rule.apply(target)
            warnings.extend(new_warnings)
            added = len(new_warnings)
            escalated = rule.escalate(target)
        except Exception as e:
            tally.runtime_ms += (time.perf_counter() - rule_start) * 1000
            tally.warnings_added += added
            error = RuleError(rule.rule_id, rule.version, e, node_path=path)

            if self.fail_fast:
                raise error from e

            tally.failures += 1
            errors.append(error)
            logger.warning("Rule %s failed at %s: %s", rule.rule_id, path, e)
            return added, 0

        tally.runtime_ms += (time.perf_counter() - rule_start) * 1000
        tally.warnings_added += added
        return added, escalated

    @staticmethod
    def _build_rule_run(rule: Rule, tally: _RuleTally) -> RuleRun:
        return RuleRun(
            rule_id=rule.rule_id,
            version=rule.version,
            status=RuleRunStatus.FAIL if tally.failures else RuleRunStatus.PASS,
            applications=tally.applications,
            warnings_added=tally.warnings_added,
            runtime_ms=tally.runtime_ms,
            failures=tally.failures,
        )


def analyze(plan: "ParsedPlan") -> None:
    """
    Annotate a parsed plan in place with the default rule set.

    Always runs with the built-in thresholds: PLANSENSE_* environment
    variables and config files are not read. Use
    Analyzer(config=get_config()).run(plan) to apply them.
    """
    Analyzer(config=Config()).run(plan)
