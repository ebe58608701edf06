"""upstrap configuration object module."""

from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .exceptions import ConfigLoadError, ConfigOverrideError, ConfigValidationError
from .interpolation import expand_with_env, resolve_env
from .sync import LinkConfig
from .utils import deep_merge, load_yaml, set_nested_value
from .validation import ConfigValidator

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "up"
CONFIG_FILE_NAME = "up.yaml"


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the default config file location.

    Uses `$XDG_CONFIG_HOME/up/up.yaml`, falling back to `~/.config/up/up.yaml`.
    """
    environ = os.environ if environ is None else environ
    config_home = environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return Path(config_home) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def is_config_file(arg: str) -> bool:
    """Whether a source argument names a YAML file rather than a `key=value` override."""
    return arg.endswith((".yaml", ".yml")) or "=" not in arg


class UpConfig:
    """Loaded configuration: inherited env names, raw env and the link section."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """Initialize configuration object.

        Args:
            data: Configuration data dictionary  # (validated before being stored)

        Raises:
            ConfigValidationError: If the data does not match the config layout
        """
        data = {} if data is None else data
        errors = ConfigValidator().validate(data)
        if errors:
            raise ConfigValidationError(errors)
        self.data = deepcopy(data)

    @classmethod
    def from_sources(cls, sources: List[str]) -> "UpConfig":
        """Build configuration from YAML files and `key.path=value` overrides, applied in order.

        Args:
            sources: Config file paths or overrides  # (override values are parsed as YAML)

        Returns:
            Validated configuration
        """
        config: Dict[str, Any] = {}
        for source in sources:
            if is_config_file(source):
                config = deep_merge(config, load_config_file(Path(source)))
            else:
                key, value_str = source.split("=", 1)
                try:
                    value = load_yaml(value_str)
                except yaml.YAMLError as e:
                    raise ConfigOverrideError(source, str(e)) from e
                set_nested_value(config, key, value)
        return cls(config)

    @property
    def inherit_env(self) -> List[str]:
        return list(self.data.get("inherit_env") or [])

    @property
    def env(self) -> Dict[str, str]:
        return dict(self.data.get("env") or {})

    def resolve_env(
        self, environ: Optional[Mapping[str, str]] = None, home_dir: Optional[str] = None
    ) -> Dict[str, str]:
        """Resolve the config env on top of the inherited process variables."""
        return resolve_env(self.inherit_env, self.env, environ=environ, home_dir=home_dir)

    def link_config(self, env: Mapping[str, str], home_dir: Optional[str] = None) -> LinkConfig:
        """Build the link task config with its directories expanded against `env`.

        Args:
            env: Fully resolved env  # (output of resolve_env)
            home_dir: Home directory used for `~`

        Returns:
            LinkConfig ready to run
        """
        # Empty sections and list fields load as None and fall back to the defaults.
        link_section = self.data.get("link") or {}
        link = LinkConfig(**{key: deepcopy(value) for key, value in link_section.items() if value is not None})
        link.resolve_env(lambda value: expand_with_env(value, env, home_dir))
        logger.debug("Resolved link config: %s", link)
        return link

    def to_dict(self) -> Dict[str, Any]:
        return deepcopy(self.data)

    def __repr__(self) -> str:
        return f"UpConfig({self.data!r})"


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load one YAML config file.

    Raises:
        ConfigLoadError: If the file cannot be read, is not valid YAML, or is not a mapping
    """
    logger.debug("Loading config file %s", path)
    try:
        with open(path, "r") as f:
            file_config = load_yaml(f)
    except OSError as e:
        raise ConfigLoadError(path, e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(path, str(e)) from e

    # An empty file is an empty config.
    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigLoadError(path, "must contain a YAML mapping at the top level")
    return file_config
