"""
Unit tests for configuration loading and validation.

Tests defaults, partial overrides and strict rejection of bad configs.
"""

import os
import tempfile

import pytest
import yaml

from ai_project_planner.config.loader import (
    InputLimits,
    ModelConfig,
    PlannerConfig,
    QuotaConfig,
    load_planner_config
)


class TestDefaults:
    """Test built-in defaults."""

    def test_default_values(self):
        config = PlannerConfig.default()

        assert config.quota.weekly_limit == 10
        assert config.quota.window_days == 7
        assert config.input.min_description_length == 10
        assert config.input.max_description_length == 5000
        assert config.input.min_tasks == 1
        assert config.input.max_tasks == 20
        assert config.model.api_key_env == "OPENAI_API_KEY"

    def test_invalid_quota_rejected(self):
        with pytest.raises(ValueError, match="weekly_limit must be > 0"):
            QuotaConfig(weekly_limit=0)
        with pytest.raises(ValueError, match="window_days must be > 0"):
            QuotaConfig(window_days=-1)

    def test_inverted_input_limits_rejected(self):
        with pytest.raises(ValueError, match="max_tasks must be >= min_tasks"):
            InputLimits(min_tasks=5, max_tasks=2)

    def test_temperature_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="temperature"):
            ModelConfig(temperature=3.0)


class TestApiKeyResolution:
    """Test credential lookup from the environment."""

    def test_reads_configured_variable(self, monkeypatch):
        monkeypatch.setenv("PLANNER_TEST_KEY", "sk-test")
        assert ModelConfig(api_key_env="PLANNER_TEST_KEY").resolve_api_key() == "sk-test"

    def test_blank_variable_is_missing(self, monkeypatch):
        monkeypatch.setenv("PLANNER_TEST_KEY", "   ")
        assert ModelConfig(api_key_env="PLANNER_TEST_KEY").resolve_api_key() is None


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_full_config_loads_correctly(self):
        config_path = self._write_config({
            "quota": {"weekly_limit": 5, "window_days": 14},
            "input": {"max_tasks": 10},
            "model": {"name": "gpt-4o-mini", "temperature": 0.2, "timeout_seconds": 30},
            "storage": {"db_path": "/tmp/planner.db"}
        })

        config = load_planner_config(config_path)

        assert config.quota.weekly_limit == 5
        assert config.quota.window_days == 14
        assert config.input.max_tasks == 10
        assert config.input.min_tasks == 1
        assert config.model.name == "gpt-4o-mini"
        assert config.model.temperature == 0.2
        assert config.model.timeout_seconds == 30.0
        assert config.storage.db_path == "/tmp/planner.db"

    def test_missing_sections_use_defaults(self):
        config = load_planner_config(self._write_config({"quota": {"weekly_limit": 3}}))

        assert config.quota.weekly_limit == 3
        assert config.input == InputLimits()
        assert config.model == ModelConfig()

    def test_empty_file_gives_defaults(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()

        assert load_planner_config(config_path) == PlannerConfig.default()

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError, match="Planner config file not found"):
            load_planner_config(os.path.join(self.temp_dir, "missing.yaml"))

    def test_invalid_yaml_raises(self):
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("quota: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_planner_config(config_path)

    def test_unknown_top_level_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_planner_config(self._write_config({"budget": {"daily": 1}}))

    def test_unknown_section_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown keys in quota"):
            load_planner_config(self._write_config({"quota": {"weekly_limt": 3}}))

    def test_wrong_type_rejected(self):
        with pytest.raises(ValueError, match="'weekly_limit' in quota has invalid type"):
            load_planner_config(self._write_config({"quota": {"weekly_limit": "ten"}}))

    def test_boolean_is_not_a_number(self):
        with pytest.raises(ValueError, match="invalid type bool"):
            load_planner_config(self._write_config({"input": {"max_tasks": True}}))

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="'model' must be a dictionary"):
            load_planner_config(self._write_config({"model": ["gpt-4"]}))

    def test_out_of_range_value_rejected(self):
        with pytest.raises(ValueError, match="weekly_limit must be > 0"):
            load_planner_config(self._write_config({"quota": {"weekly_limit": 0}}))
