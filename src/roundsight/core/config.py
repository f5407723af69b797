"""
Configuration Management for Roundsight

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (ROUNDSIGHT_*)
2. Configuration file
3. Default values

Defaults reproduce the reference calibration exactly; changing them changes
every downstream number.
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from roundsight.core.constants import (
    HALF_LENGTH,
    LOADOUT_BASE,
    OVERTIME_HALF_LENGTH,
    PISTOL_ROUNDS,
    RATING_SCALE,
    SAVE_WINDOW_SECONDS,
    SUBSCORE_RATIO_CAP,
    TRADE_KILL_BONUS,
    TRADE_WINDOW_SECONDS,
    TRAGEDY_EQUIPMENT_THRESHOLD,
    TRAGEDY_PENALTY_DIVISOR,
    UNTRADED_DEATH_PENALTY,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class EngineConfig:
    """Aggregation and scoring settings."""

    save_window_seconds: float = SAVE_WINDOW_SECONDS
    rating_scale: float = RATING_SCALE
    pistol_rounds: tuple[int, ...] = PISTOL_ROUNDS
    # Cap on observed/target before weighting each ability sub-score
    subscore_ratio_cap: float = SUBSCORE_RATIO_CAP


@dataclass
class RatingConfig:
    """Round rating and economy replay settings."""

    trade_window_seconds: float = TRADE_WINDOW_SECONDS
    trade_kill_bonus: float = TRADE_KILL_BONUS
    untraded_death_penalty: float = UNTRADED_DEATH_PENALTY
    loadout_base: int = LOADOUT_BASE
    tragedy_equipment_threshold: int = TRAGEDY_EQUIPMENT_THRESHOLD
    tragedy_penalty_divisor: int = TRAGEDY_PENALTY_DIVISOR
    half_length: int = HALF_LENGTH
    overtime_half_length: int = OVERTIME_HALF_LENGTH


@dataclass
class ExportConfig:
    """Configuration for data export."""

    json_indent: int = 2
    float_precision: int = 3


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class RoundsightConfig:
    """Main configuration container."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    rating: RatingConfig = field(default_factory=RatingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "roundsight.yaml")
    paths.append(Path.cwd() / "roundsight.toml")
    paths.append(Path.cwd() / "roundsight.json")

    # XDG config directory
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "roundsight" / "config.yaml")
    paths.append(Path(xdg_config) / "roundsight" / "config.toml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def _convert_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "ROUNDSIGHT_LOG_LEVEL": ("logging", "level"),
        "ROUNDSIGHT_SAVE_WINDOW": ("engine", "save_window_seconds"),
        "ROUNDSIGHT_RATING_SCALE": ("engine", "rating_scale"),
        "ROUNDSIGHT_SUBSCORE_CAP": ("engine", "subscore_ratio_cap"),
        "ROUNDSIGHT_TRADE_WINDOW": ("rating", "trade_window_seconds"),
        "ROUNDSIGHT_JSON_INDENT": ("export", "json_indent"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            config.setdefault(section, {})[key] = _convert_env_value(value)

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> RoundsightConfig:
    """Convert a dictionary to RoundsightConfig. Unknown keys are ignored."""
    config = RoundsightConfig()

    for section_name in ("engine", "rating", "export", "logging"):
        section = getattr(config, section_name)
        for key, value in (data.get(section_name) or {}).items():
            if hasattr(section, key):
                if key == "pistol_rounds":
                    value = tuple(int(v) for v in value)
                setattr(section, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> RoundsightConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged RoundsightConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: RoundsightConfig) -> dict[str, Any]:
    """Convert RoundsightConfig to a plain dictionary."""
    data = asdict(config)
    data["engine"]["pistol_rounds"] = list(data["engine"]["pistol_rounds"])
    return data


def save_config(config: RoundsightConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (.yaml, .yml or .json)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")
