"""upstrap - bootstrap a user environment.

Resolves interdependent env values from a configuration and reconciles a
dotfiles directory into a tree of symlinks, backing up anything in the way.
"""
# ruff: noqa: F401

from .config import UpConfig
from .exceptions import (
    ConfigValidationError,
    EnvLookupError,
    LinkError,
    UnresolvedCycleError,
    UpstrapError,
)
from .interpolation import EnvResolver, expand_variables, resolve_env
from .parser import UpParser
from .sync import LinkConfig, SyncReport, synchronize

__version__ = "0.1.0"
