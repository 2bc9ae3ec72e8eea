"""Configuration file loader.

A single YAML file (reflow_config.yaml) carries the scheduler tunables and
blackouts that apply to every resource:

    scheduler:
      horizon_days: 180
    global_exclusions:
      - start: 2024-12-25T00:00:00Z
        end: 2024-12-26T00:00:00Z
        reason: Christmas
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .models import ExclusionWindow
from .scheduler import SchedulingConfig

CONFIG_FILE_NAME = "reflow_config.yaml"


class UnifiedConfig(BaseModel):
    """Everything a configuration file can set."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)
    global_exclusions: list[ExclusionWindow] = Field(default_factory=list[ExclusionWindow])


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Validated UnifiedConfig; an empty file yields the defaults

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file is not valid YAML or fails validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open() as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return UnifiedConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping, got {type(data).__name__}")

    try:
        return UnifiedConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e


def discover_config(
    input_path: Path | None = None, config_path: Path | None = None
) -> UnifiedConfig:
    """Find and load the configuration that applies to an input file.

    Search order:
    1. Explicit config_path argument (must exist)
    2. reflow_config.yaml next to the input file
    3. reflow_config.yaml in the current directory

    Falls back to defaults when no file is found.
    """
    if config_path is not None:
        return load_unified_config(config_path)

    candidates: list[Path] = []
    if input_path is not None:
        candidates.append(Path(input_path).parent / CONFIG_FILE_NAME)
    candidates.append(Path(CONFIG_FILE_NAME))

    for candidate in candidates:
        if candidate.exists():
            return load_unified_config(candidate)

    return UnifiedConfig()
