"""Custom exceptions for upstrap."""

from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent
from typing import Any, Iterable, Optional


class UpstrapError(Exception):
    """Base exception for upstrap errors."""

    pass


class EnvLookupError(UpstrapError):
    """Raised when a referenced variable is neither inherited nor defined in the config env."""

    def __init__(self, var: str):
        self.var = var
        super().__init__(f"Env lookup error, please define '{var}' in your config env or inherit it.")


class UnresolvedCycleError(UpstrapError):
    """Raised when a resolution pass makes no progress on the remaining keys."""

    def __init__(self, keys: Iterable[str]):
        self.keys = list(keys)
        super().__init__(f"Errors resolving env, do you have cycles? Unresolved env: {', '.join(self.keys)}")


class LinkError(UpstrapError):
    """Base exception for failures while linking a directory tree.

    The underlying ``OSError`` (if any) is kept as ``source`` and is also chained
    as ``__cause__`` by the raising code.
    """

    def __init__(self, message: str, source: Optional[BaseException] = None):
        self.source = source
        if source is not None:
            message = f"{message}: {source}"
        super().__init__(message)


class MissingDirectoryError(LinkError):
    """Raised when a required directory is absent or not a directory."""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path
        super().__init__(f"{name} directory '{path}' should exist and be a directory.")


class CanonicalizeError(LinkError):
    def __init__(self, path: Path, source: Optional[BaseException] = None):
        self.path = path
        super().__init__(f"Error canonicalizing '{path}'", source)


class CreateDirError(LinkError):
    def __init__(self, path: Path, source: Optional[BaseException] = None):
        self.path = path
        super().__init__(f"Failed to create directory '{path}'", source)


class DeleteError(LinkError):
    def __init__(self, path: Path, source: Optional[BaseException] = None):
        self.path = path
        super().__init__(f"Failed to delete '{path}'", source)


class LinkIOError(LinkError):
    def __init__(self, path: Path, source: Optional[BaseException] = None):
        self.path = path
        super().__init__(f"Failure for path '{path}'", source)


class RenameError(LinkError):
    def __init__(self, from_path: Path, to_path: Path, source: Optional[BaseException] = None):
        self.from_path = from_path
        self.to_path = to_path
        super().__init__(f"Failed to rename from '{from_path}' to '{to_path}'", source)


class SymlinkError(LinkError):
    def __init__(self, from_path: Path, to_path: Path, source: Optional[BaseException] = None):
        self.from_path = from_path
        self.to_path = to_path
        super().__init__(f"Failed to symlink from '{from_path}' to '{to_path}'", source)


class ParentConflictError(LinkError):
    """Raised when parent directory creation fails and no file or link is in the way."""

    def __init__(self, path: Path, source: Optional[BaseException] = None):
        self.path = path
        super().__init__(
            "Failed to create the parent directory for the symlink, but no file or link "
            f"was found to move out of the way (nearest existing ancestor: '{path}')",
            source,
        )


class ConfigLoadError(UpstrapError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config file '{path}': {reason}")


class ConfigOverrideError(UpstrapError):
    """Raised when a `key.path=value` override cannot be parsed."""

    def __init__(self, override: str, reason: str):
        self.override = override
        self.reason = reason
        super().__init__(f"Invalid config override '{override}': {reason}")


@dataclass
class TypeValidationError:
    """Represents a config value of the wrong type."""

    parameter: str
    expected: str
    actual_value: Any

    def format_error_message(self) -> str:
        """Format error message for type mismatch.

        Returns:
            Formatted error message string
        """
        actual_type = type(self.actual_value).__name__
        return dedent(f"""\
            ❌ Type mismatch
            Parameter: {self.parameter}
            Expected: {self.expected}
            Actual: {self.actual_value!r} ({actual_type})\
            """).strip()


@dataclass
class MatchingError:
    """Represents missing or unexpected config keys."""

    error_type: str  # "Missing parameters" or "Unexpected parameters"
    parameters: list[str]
    section: str

    def format_error_message(self) -> str:
        param_list = ", ".join(self.parameters)
        return f"❌ {self.error_type}\nParameters: {param_list}\nSection: {self.section}"


class ConfigValidationError(UpstrapError):
    """Raised when config validation fails."""

    def __init__(self, errors: list[TypeValidationError | MatchingError]):
        """Initialize config validation error.

        Args:
            errors: List of validation errors
        """
        self.errors = errors
        error_messages = []

        for error in errors:
            error_messages.append(error.format_error_message())

        super().__init__("\n\n".join(error_messages))
