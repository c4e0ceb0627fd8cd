"""
Configuration management and loading.

Handles quota, input-limit, model and storage settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml


@dataclass(frozen=True)
class QuotaConfig:
    """Rolling-window generation quota."""
    weekly_limit: int = 10
    window_days: int = 7

    def __post_init__(self):
        """Validate quota values are positive."""
        if self.weekly_limit <= 0:
            raise ValueError("weekly_limit must be > 0")
        if self.window_days <= 0:
            raise ValueError("window_days must be > 0")


@dataclass(frozen=True)
class InputLimits:
    """Bounds enforced on generation input before any network call."""
    min_description_length: int = 10
    max_description_length: int = 5000
    min_tasks: int = 1
    max_tasks: int = 20

    def __post_init__(self):
        """Validate that every range is well formed."""
        if self.min_description_length < 1:
            raise ValueError("min_description_length must be >= 1")
        if self.max_description_length < self.min_description_length:
            raise ValueError("max_description_length must be >= min_description_length")
        if self.min_tasks < 1:
            raise ValueError("min_tasks must be >= 1")
        if self.max_tasks < self.min_tasks:
            raise ValueError("max_tasks must be >= min_tasks")


@dataclass(frozen=True)
class ModelConfig:
    """Settings for the generative model endpoint."""
    name: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout_seconds: float = 60.0
    api_key_env: str = "OPENAI_API_KEY"
    base_url: Optional[str] = None

    def __post_init__(self):
        """Validate model settings."""
        if not self.name or not self.name.strip():
            raise ValueError("model name cannot be empty")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    def resolve_api_key(self) -> Optional[str]:
        """Read the credential from the configured environment variable."""
        value = os.environ.get(self.api_key_env, "").strip()
        return value or None


@dataclass(frozen=True)
class StorageConfig:
    """Location of the quota event log."""
    db_path: str = "ai_project_planner.db"


@dataclass(frozen=True)
class PlannerConfig:
    """Complete planner configuration."""
    quota: QuotaConfig = field(default_factory=QuotaConfig)
    input: InputLimits = field(default_factory=InputLimits)
    model: ModelConfig = field(default_factory=ModelConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def default(cls) -> "PlannerConfig":
        """Configuration with every built-in default."""
        return cls()


_SECTIONS = {
    'quota': (QuotaConfig, {'weekly_limit': int, 'window_days': int}),
    'input': (InputLimits, {
        'min_description_length': int,
        'max_description_length': int,
        'min_tasks': int,
        'max_tasks': int,
    }),
    'model': (ModelConfig, {
        'name': str,
        'temperature': (int, float),
        'max_tokens': int,
        'timeout_seconds': (int, float),
        'api_key_env': str,
        'base_url': str,
    }),
    'storage': (StorageConfig, {'db_path': str}),
}


def load_planner_config(path: str) -> PlannerConfig:
    """Load and validate planner configuration from a YAML file.

    Every section is optional; omitted sections and keys keep their
    defaults. Unknown keys are rejected so typos never silently fall
    back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated PlannerConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Planner config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return PlannerConfig.default()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    unknown_keys = set(raw_config.keys()) - set(_SECTIONS)
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    sections = {}
    for name, (section_cls, schema) in _SECTIONS.items():
        if name in raw_config:
            sections[name] = _parse_section(raw_config[name], name, section_cls, schema)

    return PlannerConfig(**sections)


def _parse_section(data, path: str, section_cls, schema: Dict):
    """Parse and validate one configuration section.

    Args:
        data: Raw section data
        path: Section name for error messages
        section_cls: Dataclass the section is built into
        schema: Allowed keys mapped to their accepted types

    Returns:
        Validated section dataclass

    Raises:
        ValueError: If the section is invalid
    """
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")

    unknown_keys = set(data.keys()) - set(schema)
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {}
    for key, value in data.items():
        expected = schema[key]
        # bool is an int subclass; never accept it for numeric settings
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ValueError(f"'{key}' in {path} has invalid type {type(value).__name__}")
        values[key] = float(value) if expected == (int, float) else value

    return section_cls(**values)
