"""Configuration loading for procsim."""

import copy
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default.yaml"

FAILURE_REPORT_MODES = ("log", "raise", "ignore")
DISCIPLINES = ("fifo", "priority")


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def merge_configs(base_config: dict, override_config: dict) -> dict:
    """Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()
    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_default_config() -> dict:
    """Load the bundled default configuration."""
    return load_config(str(DEFAULT_CONFIG_PATH))


def resolve_config(config: Optional[dict] = None) -> dict:
    """Merge a partial configuration onto the defaults and validate it.

    Args:
        config: Partial configuration, or None for pure defaults

    Returns:
        Complete configuration dictionary

    Raises:
        ValueError: If an option has an unsupported value
    """
    resolved = merge_configs(load_default_config(), copy.deepcopy(config or {}))

    sim = resolved['simulation']
    if sim['failure_report'] not in FAILURE_REPORT_MODES:
        raise ValueError(
            f"failure_report must be one of {FAILURE_REPORT_MODES}, "
            f"got {sim['failure_report']!r}"
        )
    if sim['initial_time'] < 0:
        raise ValueError("initial_time cannot be negative")

    discipline = resolved['resources']['discipline']
    if discipline not in DISCIPLINES:
        raise ValueError(
            f"discipline must be one of {DISCIPLINES}, got {discipline!r}"
        )

    return resolved


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "merge_configs",
    "load_default_config",
    "resolve_config",
]
