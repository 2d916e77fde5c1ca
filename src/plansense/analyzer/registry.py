"""
Rule registry.

Rules register themselves with @register_rule when plansense.analyzer.rules
is imported. The registry hands them back in pipeline order: statement
rules before node rules, then by position. That order decides which
warnings a later rule sees at the same node, so two rules may not share a
(phase, position) slot.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from plansense.analyzer.models import RulePhase
    from plansense.analyzer.rules.base import Rule

T = TypeVar("T", bound="Rule")


class RuleRegistry:
    """
    Rule classes by ID, handed out in pipeline order.

    Example:
        registry = get_registry()
        rules = registry.filter(exclude={"PARALLEL_SKEW"})
    """

    def __init__(self) -> None:
        self._rules: dict[str, type[Rule]] = {}
        self._slots: dict[tuple[RulePhase, int], type[Rule]] = {}

    def register(self, rule_cls: type[T]) -> type[T]:
        """
        Register a rule class.

        Raises:
            ValueError: If the rule ID or its pipeline slot is already taken
        """
        rule_id = rule_cls.rule_id
        slot = (rule_cls.phase, rule_cls.position)

        if rule_id in self._rules:
            existing = self._rules[rule_id]
            raise ValueError(
                f"Rule '{rule_id}' already registered by {existing.__module__}.{existing.__name__}"
            )
        if slot in self._slots:
            existing = self._slots[slot]
            raise ValueError(
                f"Rule '{rule_id}' wants {slot[0].name.lower()} position {slot[1]}, "
                f"already held by '{existing.rule_id}'"
            )

        self._rules[rule_id] = rule_cls
        self._slots[slot] = rule_cls
        return rule_cls

    def all(self) -> list[type[Rule]]:
        """All registered rule classes, in pipeline order."""
        return [self._slots[slot] for slot in sorted(self._slots)]

    def all_ids(self) -> list[str]:
        return [rule_cls.rule_id for rule_cls in self.all()]

    def filter(
        self,
        include: set[str] | None = None,
        exclude: set[str] | None = None,
    ) -> list[type[Rule]]:
        """Rule classes in pipeline order, narrowed by rule ID."""
        return [
            rule_cls for rule_cls in self.all()
            if (include is None or rule_cls.rule_id in include)
            and (exclude is None or rule_cls.rule_id not in exclude)
        ]


_global_registry = RuleRegistry()


def get_registry() -> RuleRegistry:
    """Get the global rule registry."""
    return _global_registry


def register_rule(rule_cls: type[T]) -> type[T]:
    """
    Decorator to register a rule with the global registry.

    Example:
        @register_rule
        class ScanWithPredicate(NodeRule):
            rule_id = "SCAN_WITH_PREDICATE"
            ...
    """
    return _global_registry.register(rule_cls)
