"""Utility functions for upstrap."""

import os
from copy import deepcopy
from typing import Any, Dict

import yaml


def load_yaml(stream: Any) -> Any:
    """Load YAML content from a stream.

    Args:
        stream: Stream to read YAML from  # (file-like object or string)
    Returns:
        Parsed YAML content  # (mapping for config files, scalar for overrides)
    """
    return yaml.safe_load(stream)


def dump_yaml(data: Any) -> str:
    """Dump data as block-style YAML, preserving key order."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with update taking precedence.

    Args:
        base: Base dictionary  # (base configuration)
        update: Update dictionary (takes precedence)  # (overrides and additions)

    Returns:
        Merged dictionary  # (combined configuration with deep merging)
    """
    result = deepcopy(base)

    # Merge each key from update into result
    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            result[key] = deep_merge(result[key], value)
        else:
            # Replace or add the value
            result[key] = deepcopy(value)
    return result


def set_nested_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set nested value using dot notation.

    Args:
        config: Configuration dictionary (modified in-place)
        key_path: Dot-separated key path  # (e.g., "link.from_dir")
        value: Value to set
    """
    keys = key_path.split(".")
    current = config

    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value


def home_directory() -> str:
    """Return the current user's home directory."""
    return os.path.expanduser("~")
