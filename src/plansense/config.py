"""
Configuration system for PlanSense.

Rules ship with the thresholds SQL Server practitioners use by default.
Configuration only turns rules off or moves those thresholds:

- Environment variables as primary config source
- Optional JSON/YAML config file for local development
- Per-rule enable flag and thresholds

Usage:
    from plansense.config import get_config

    config = get_config()

    if config.is_rule_enabled("PARALLEL_SKEW"):
        ...

    thresholds = config.get_rule_thresholds("MEMORY_GRANT")
    # {"waste_ratio": 20.0}

Environment variable naming:
    PLANSENSE_CONFIG_FILE=/etc/plansense.yaml
    PLANSENSE_RULE_PARALLEL_SKEW_ENABLED=false
    PLANSENSE_RULE_MEMORY_GRANT_WASTE_RATIO=20
    PLANSENSE_RULE_ROW_ESTIMATE_MISMATCH_CRITICAL_FACTOR=1000

Config file shape:
    rules:
      MEMORY_GRANT:
        thresholds:
          waste_ratio: 20
      PARALLEL_SKEW:
        enabled: false
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plansense.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PLANSENSE_"
RULE_ENV_PREFIX = f"{ENV_PREFIX}RULE_"
CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG_FILE"


class RuleSettings(BaseModel):
    """Configuration for a single rule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Whether the rule is enabled")
    thresholds: dict[str, int | float] = Field(
        default_factory=dict,
        description="Overrides for the rule's threshold fields",
    )


class Config(BaseModel):
    """
    PlanSense configuration.

    Loaded from environment variables or a config file. Rules not mentioned
    run enabled with their default thresholds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rules: dict[str, RuleSettings] = Field(
        default_factory=dict,
        description="Per-rule configurations keyed by rule ID",
    )

    def is_rule_enabled(self, rule_id: str) -> bool:
        if rule_id in self.rules:
            return self.rules[rule_id].enabled
        return True

    def get_rule_thresholds(self, rule_id: str) -> dict[str, int | float]:
        if rule_id in self.rules:
            return dict(self.rules[rule_id].thresholds)
        return {}

    def get_rule_threshold(
        self,
        rule_id: str,
        threshold_name: str,
        default: int | float | None = None,
    ) -> int | float | None:
        return self.get_rule_thresholds(rule_id).get(threshold_name, default)


def _parse_env_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_env_number(value: str) -> int | float:
    """Parse a threshold; raises ValueError for non-numeric text."""
    return float(value) if "." in value else int(value)


def _known_rule_ids() -> list[str]:
    # Deferred: plansense.analyzer imports this module
    import plansense.analyzer.rules  # noqa: F401
    from plansense.analyzer.registry import get_registry

    return get_registry().all_ids()


def _split_rule_key(suffix: str, rule_ids: Iterable[str]) -> tuple[str, str] | None:
    """
    Split "MEMORY_GRANT_WASTE_RATIO" into ("MEMORY_GRANT", "waste_ratio").

    Both rule IDs and setting names contain underscores, so the split is
    made against the known rule IDs, longest first.
    """
    for rule_id in sorted(rule_ids, key=len, reverse=True):
        head = f"{rule_id}_"
        if suffix.startswith(head) and len(suffix) > len(head):
            return rule_id, suffix[len(head):].lower()
    return None


def load_config_from_env(rule_ids: Iterable[str] | None = None) -> Config:
    """
    Load configuration from environment variables.

    Args:
        rule_ids: Rule IDs to recognize in variable names. Defaults to every
            registered rule.

    Unparsable thresholds and variables naming an unknown rule are logged
    and ignored.
    """
    known = list(rule_ids) if rule_ids is not None else _known_rule_ids()

    enabled: dict[str, bool] = {}
    thresholds: dict[str, dict[str, int | float]] = {}

    for key, value in sorted(os.environ.items()):
        if not key.startswith(RULE_ENV_PREFIX):
            continue

        split = _split_rule_key(key[len(RULE_ENV_PREFIX):], known)
        if split is None:
            logger.warning("Ignoring %s: no rule with that ID", key)
            continue

        rule_id, setting = split
        if setting == "enabled":
            enabled[rule_id] = _parse_env_bool(value, True)
            continue

        try:
            thresholds.setdefault(rule_id, {})[setting] = _parse_env_number(value)
        except ValueError:
            logger.warning("Could not parse threshold %s=%s", key, value)

    rules = {
        rule_id: RuleSettings(
            enabled=enabled.get(rule_id, True),
            thresholds=thresholds.get(rule_id, {}),
        )
        for rule_id in sorted(set(enabled) | set(thresholds))
    }
    return Config(rules=rules)


def load_config_from_file(path: Path) -> Config:
    """
    Load configuration from a JSON or YAML file.

    A missing file falls back to environment variables. A file that exists
    but cannot be read or does not match the config shape raises
    ConfigurationError.
    """
    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read config file {path}: {e}",
            config_key=CONFIG_FILE_ENV,
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}",
            config_key=CONFIG_FILE_ENV,
        )

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file {path}: {e}",
            config_key=CONFIG_FILE_ENV,
        ) from e

    logger.debug("Loaded config from %s (%d rule entries)", path, len(config.rules))
    return config


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the global configuration instance.

    Loads from:
    1. PLANSENSE_CONFIG_FILE environment variable (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(CONFIG_FILE_ENV)

    if config_file:
        return load_config_from_file(Path(config_file))

    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()


def config_from_dict(data: dict[str, Any]) -> Config:
    """Build a Config from a plain mapping, raising ConfigurationError on bad input."""
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
