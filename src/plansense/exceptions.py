"""
Package-level exception hierarchy for PlanSense.

All exceptions inherit from PlanSenseError, enabling:
- Catching all PlanSense errors with a single except clause
- Rich context fields for debugging (rule_id, node_path, config_key, etc.)
- Structured serialization via to_dict() for JSON error responses

Hierarchy:
    PlanSenseError
    ├── AnalyzerError          – Errors during analysis orchestration
    │   ├── RuleError          – A specific rule failed during execution
    │   └── ConfigurationError – Invalid analyzer configuration
    └── ParseError             – Failed to load a plan document
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plansense.analyzer.path import NodePath


class PlanSenseError(Exception):
    """
    Base exception for all PlanSense errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


# ── Analysis Errors ──────────────────────────────────────────────────────


class AnalyzerError(PlanSenseError):
    """Errors during analysis orchestration."""
    pass


class RuleError(AnalyzerError):
    """
    Error during rule execution.

    Captures which rule failed and, for node rules, which operator it was
    looking at when it failed.

    Attributes:
        rule_id: The ID of the rule that failed.
        rule_version: Version of the rule.
        node_path: Path to the node or statement being processed (if known).
        original_error: The underlying exception.
    """

    def __init__(
        self,
        rule_id: str,
        rule_version: str,
        original_error: Exception,
        node_path: "NodePath | None" = None,
    ) -> None:
        self.rule_id = rule_id
        self.rule_version = rule_version
        self.node_path = node_path
        self.original_error = original_error

        context = f"Rule '{rule_id}' v{rule_version}"
        if node_path:
            context += f" at {node_path}"

        message = (
            f"{context} failed: "
            f"{original_error.__class__.__name__}: {original_error}"
        )
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output / logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "rule_id": self.rule_id,
            "rule_version": self.rule_version,
            "node_path": list(self.node_path.segments) if self.node_path else None,
            "original_error_type": self.original_error.__class__.__name__,
            "original_error_message": str(self.original_error),
        }


class ConfigurationError(AnalyzerError):
    """
    Error in analyzer configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


# ── Parse Errors ─────────────────────────────────────────────────────────


class ParseError(PlanSenseError):
    """
    Failed to load a plan document.

    Raised when the input is not valid plan JSON, is too large, too deeply
    nested, or does not match the plan model.

    Attributes:
        detail: Technical details for debugging (optional).
        source: Stage that failed ("file_read", "json_decode", "structure",
            "validation", "resource_limit").
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        source: str = "unknown",
    ) -> None:
        self.detail = detail
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n\nDetails: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["detail"] = self.detail
        result["source"] = self.source
        return result
