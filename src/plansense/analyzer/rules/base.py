"""
Base classes for diagnostic rules.

All rules inherit from StatementRule or NodeRule and implement apply().
This ensures consistent behavior and enables contract testing.

A rule returns the warnings it wants to add; the analyzer appends them to
the statement's or node's warning list straight away, so a rule that runs
later at the same node sees warnings added by the rules before it. Rules
never remove warnings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from plansense.analyzer.models import RulePhase
from plansense.parser.models import PlanWarning, PlanWarningSeverity

if TYPE_CHECKING:
    from plansense.parser.models import PlanNode, PlanStatement


PREDICATE_DISPLAY_LENGTH = 200


class RuleConfig(BaseModel):
    """
    Base configuration for all rules.

    Rules define their thresholds by subclassing this. All configs support
    'enabled' to allow disabling rules.

    Example:
        class ParallelSkewConfig(RuleConfig):
            skew_ratio: float = 0.9
            min_threads: int = 4
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True


class PredicateRuleConfig(RuleConfig):
    """Shared config for rules that quote a residual predicate."""

    max_predicate_length: int = PREDICATE_DISPLAY_LENGTH


class Rule(ABC):
    """
    Abstract base class for diagnostic rules.

    Each rule detects one performance anti-pattern. Rules should be:
    - Deterministic: Same input always produces same output
    - Local: Read only the statement or node they are given
    - Fast: Constant work per node, plus its own UDF/thread lists

    Attributes:
        rule_id: Unique identifier, UPPER_SNAKE_CASE (e.g., "PARALLEL_SKEW")
        version: Semver string, bump when detection logic changes
        severity: Default severity of the warnings this rule emits
        warning_type: Category label written to PlanWarning.warning_type
        description: One-line description for documentation
        config_schema: Pydantic model for rule configuration
        phase: STATEMENT or NODE
        position: Order within the phase; lower runs first
    """

    rule_id: str
    version: str = "1.0.0"
    severity: PlanWarningSeverity = PlanWarningSeverity.WARNING
    warning_type: str = ""
    description: str = ""

    config_schema: type[RuleConfig] = RuleConfig

    phase: RulePhase
    position: int = 0

    def __init__(self, config: RuleConfig | dict[str, Any] | None = None) -> None:
        """
        Initialize the rule with configuration.

        Args:
            config: Configuration as RuleConfig instance, dict, or None for defaults.
                    If dict, it's validated against config_schema.
        """
        if config is None:
            self.config = self.config_schema()
        elif isinstance(config, dict):
            self.config = self.config_schema(**config)
        else:
            self.config = config

    @abstractmethod
    def apply(self, target: Any) -> list[PlanWarning]:
        """Inspect a statement or node and return warnings to append."""

    def escalate(self, target: Any) -> int:
        """
        Raise the severity of warnings already on the target.

        Called by the analyzer right after apply(). Returns the number of
        warnings whose severity changed. Most rules only add warnings and
        keep this default.
        """
        return 0

    def warning(
        self,
        message: str,
        severity: PlanWarningSeverity | None = None,
    ) -> PlanWarning:
        """Build a warning of this rule's type."""
        return PlanWarning(
            warning_type=self.warning_type,
            message=message,
            severity=severity or self.severity,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(rule_id={self.rule_id!r}, "
            f"version={self.version!r}, phase={self.phase.name})"
        )


class StatementRule(Rule):
    """A rule applied once per statement."""

    phase = RulePhase.STATEMENT

    @abstractmethod
    def apply(self, statement: "PlanStatement") -> list[PlanWarning]:
        ...


class NodeRule(Rule):
    """A rule applied at every operator of a statement's tree."""

    phase = RulePhase.NODE

    @abstractmethod
    def apply(self, node: "PlanNode") -> list[PlanWarning]:
        ...


def has_text(value: str | None) -> bool:
    """True for a non-empty string. None and "" both count as absent."""
    return bool(value)


def truncate(value: str, max_length: int = PREDICATE_DISPLAY_LENGTH) -> str:
    """
    Cut to max_length characters, marking the cut with '...'.

    Lengths are Python code points, so a predicate holding characters
    outside the Basic Multilingual Plane keeps more text than a UTF-16
    count would.
    """
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."
