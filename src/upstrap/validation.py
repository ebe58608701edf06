"""Configuration validation module."""

from typing import Any, Dict, List

from .exceptions import MatchingError, TypeValidationError

# Section name -> expected type description. "str list" means a list of strings,
# "str mapping" a mapping of string to string, and a dict a nested section.
CONFIG_SCHEMA: Dict[str, Any] = {
    "inherit_env": "str list",
    "env": "str mapping",
    "link": {
        "from_dir": "str",
        "to_dir": "str",
        "backup_dir": "str",
        "exclude": "str list",
    },
}


class ConfigValidator:
    """Structural validator for loaded configuration data."""

    def __init__(self, schema: Dict[str, Any] = CONFIG_SCHEMA):
        """Initialize validator.

        Args:
            schema: Expected layout  # (see CONFIG_SCHEMA)
        """
        self.schema = schema

    def validate(self, config: Any) -> List[TypeValidationError | MatchingError]:
        """Validate a whole configuration and collect every problem found.

        Args:
            config: Loaded configuration  # (should be a mapping)

        Returns:
            List of validation errors  # (empty when the config is valid)
        """
        if not isinstance(config, dict):
            return [TypeValidationError("<root>", "mapping", config)]
        return self.validate_section(config, self.schema, "")

    def validate_section(
        self, config: Dict[str, Any], schema: Dict[str, Any], path: str
    ) -> List[TypeValidationError | MatchingError]:
        errors: List[TypeValidationError | MatchingError] = []

        unexpected = [key for key in config if key not in schema]
        if unexpected:
            errors.append(MatchingError("Unexpected parameters", unexpected, path or "<root>"))

        for key, expected in schema.items():
            if key not in config:
                continue
            value = config[key]
            # An empty section (`env:` with nothing below) loads as None, same as leaving it out.
            if value is None and expected != "str":
                continue
            nested_path = f"{path}.{key}" if path else key
            if isinstance(expected, dict):
                if isinstance(value, dict):
                    errors.extend(self.validate_section(value, expected, nested_path))
                else:
                    errors.append(TypeValidationError(nested_path, "mapping", value))
            else:
                errors.extend(self._validate_value(value, expected, nested_path))
        return errors

    def _validate_value(self, value: Any, expected: str, path: str) -> List[TypeValidationError]:
        if expected == "str":
            return [] if isinstance(value, str) else [TypeValidationError(path, "str", value)]

        if expected == "str list":
            if not isinstance(value, list):
                return [TypeValidationError(path, "list[str]", value)]
            return [
                TypeValidationError(f"{path}[{idx}]", "str", item)
                for idx, item in enumerate(value)
                if not isinstance(item, str)
            ]

        if expected == "str mapping":
            if not isinstance(value, dict):
                return [TypeValidationError(path, "dict[str, str]", value)]
            # Unquoted YAML numbers and booleans end up here, quote them in the config.
            return [
                TypeValidationError(f"{path}.{key}", "str", item)
                for key, item in value.items()
                if not isinstance(key, str) or not isinstance(item, str)
            ]

        raise ValueError(f"Unknown schema type '{expected}' for '{path}'")
