"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from plansense.config import (
    Config,
    RuleSettings,
    config_from_dict,
    get_config,
    load_config_from_env,
    load_config_from_file,
    reset_config,
)
from plansense.exceptions import ConfigurationError


class TestConfigModel:
    def test_rules_enabled_by_default(self):
        config = Config()

        assert config.is_rule_enabled("PARALLEL_SKEW")
        assert config.get_rule_thresholds("PARALLEL_SKEW") == {}

    def test_rule_settings(self):
        config = Config(rules={
            "MEMORY_GRANT": RuleSettings(thresholds={"waste_ratio": 20.0}),
            "SCALAR_UDF": RuleSettings(enabled=False),
        })

        assert not config.is_rule_enabled("SCALAR_UDF")
        assert config.get_rule_threshold("MEMORY_GRANT", "waste_ratio") == 20.0
        assert config.get_rule_threshold("MEMORY_GRANT", "min_granted_kb", 1024) == 1024

    def test_frozen(self):
        with pytest.raises(ValidationError):
            Config().rules = {}

    def test_config_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError):
            config_from_dict({"rulez": {}})


class TestLoadFromEnv:
    def test_enabled_flag(self, monkeypatch):
        monkeypatch.setenv("PLANSENSE_RULE_KEY_LOOKUP_ENABLED", "false")

        config = load_config_from_env()

        assert not config.is_rule_enabled("KEY_LOOKUP")
        assert config.is_rule_enabled("SCAN_WITH_PREDICATE")

    def test_threshold_with_underscores(self, monkeypatch):
        """Rule IDs and threshold names both contain underscores."""
        monkeypatch.setenv("PLANSENSE_RULE_MEMORY_GRANT_MIN_GRANTED_KB", "4096")
        monkeypatch.setenv("PLANSENSE_RULE_ROW_ESTIMATE_MISMATCH_CRITICAL_FACTOR", "1000.5")

        config = load_config_from_env()

        assert config.get_rule_thresholds("MEMORY_GRANT") == {"min_granted_kb": 4096}
        assert config.get_rule_thresholds("ROW_ESTIMATE_MISMATCH") == {"critical_factor": 1000.5}

    def test_unparsable_threshold_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("PLANSENSE_RULE_PARALLEL_SKEW_MIN_THREADS", "lots")

        config = load_config_from_env()

        assert config.get_rule_thresholds("PARALLEL_SKEW") == {}
        assert "Could not parse threshold" in caplog.text

    def test_unknown_rule_ignored(self, monkeypatch):
        monkeypatch.setenv("PLANSENSE_RULE_NOT_A_RULE_ENABLED", "false")

        config = load_config_from_env()

        assert config.rules == {}

    def test_explicit_rule_ids(self, monkeypatch):
        monkeypatch.setenv("PLANSENSE_RULE_CUSTOM_CHECK_LIMIT", "3")

        config = load_config_from_env(rule_ids=["CUSTOM_CHECK"])

        assert config.get_rule_thresholds("CUSTOM_CHECK") == {"limit": 3}


class TestLoadFromFile:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "plansense.yaml"
        path.write_text(
            "rules:\n"
            "  MEMORY_GRANT:\n"
            "    thresholds:\n"
            "      waste_ratio: 20\n"
            "  PARALLEL_SKEW:\n"
            "    enabled: false\n"
        )

        config = load_config_from_file(path)

        assert config.get_rule_threshold("MEMORY_GRANT", "waste_ratio") == 20
        assert not config.is_rule_enabled("PARALLEL_SKEW")

    def test_json_file(self, tmp_path):
        path = tmp_path / "plansense.json"
        path.write_text(json.dumps({"rules": {"SERIAL_PLAN": {"enabled": False}}}))

        assert not load_config_from_file(path).is_rule_enabled("SERIAL_PLAN")

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")

        assert load_config_from_file(path) == Config()

    def test_missing_file_falls_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PLANSENSE_RULE_KEY_LOOKUP_ENABLED", "0")

        config = load_config_from_file(tmp_path / "nope.yaml")

        assert not config.is_rule_enabled("KEY_LOOKUP")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_file(path)

        assert exc_info.value.config_key == "PLANSENSE_CONFIG_FILE"

    def test_wrong_shape_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- MEMORY_GRANT\n")

        with pytest.raises(ConfigurationError):
            load_config_from_file(path)

    def test_bad_field_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("rules:\n  MEMORY_GRANT:\n    enabled: maybe-later\n")

        with pytest.raises(ConfigurationError):
            load_config_from_file(path)


class TestGetConfig:
    def test_cached_until_reset(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("PLANSENSE_RULE_SCALAR_UDF_ENABLED", "false")

        assert get_config() is first

        reset_config()
        assert not get_config().is_rule_enabled("SCALAR_UDF")

    def test_config_file_env(self, tmp_path, monkeypatch):
        path = tmp_path / "plansense.yaml"
        path.write_text("rules:\n  FILTER_OPERATOR:\n    enabled: false\n")
        monkeypatch.setenv("PLANSENSE_CONFIG_FILE", str(path))

        assert not get_config().is_rule_enabled("FILTER_OPERATOR")
