"""Variable expansion and fixed-point env resolution for upstrap configurations."""

import logging
import os
import re
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .exceptions import EnvLookupError, UnresolvedCycleError
from .utils import home_directory

logger = logging.getLogger(__name__)

# $NAME or ${NAME}. A lone `$` or an unterminated `${` is left as literal text.
VARIABLE_PATTERN = re.compile(r"\$(?:\{(?P<braced>[^}]+)\}|(?P<name>[A-Za-z0-9_]+))")

Lookup = Callable[[str], Optional[str]]


def _has_tilde(value: str) -> bool:
    return value == "~" or value.startswith("~/")


def expand_tilde(value: str, home_dir: Optional[str] = None) -> str:
    """Replace a leading `~` with the home directory, leaving variables alone."""
    if not _has_tilde(value):
        return value
    return (home_dir if home_dir is not None else home_directory()) + value[1:]


def expand_variables(value: str, lookup: Lookup, home_dir: Optional[str] = None) -> str:
    """Expand `~` and variable references in a single string.

    Args:
        value: Raw string  # (may contain `$NAME`, `${NAME}` and a leading `~`)
        lookup: Called with each referenced name. Returns the replacement, or None to
            leave the reference untouched  # (may raise EnvLookupError)
        home_dir: Replacement for a leading `~`  # (defaults to the user's home)

    Returns:
        Expanded string  # (substituted text is never re-scanned)
    """
    prefix = ""
    if _has_tilde(value):
        prefix = home_dir if home_dir is not None else home_directory()
        value = value[1:]

    def replace_var(m: "re.Match[str]") -> str:
        name = m.group("braced") or m.group("name")
        replacement = lookup(name)
        if replacement is None:
            return m.group(0)
        return replacement

    return prefix + VARIABLE_PATTERN.sub(replace_var, value)


def expand_with_env(value: str, env: Mapping[str, str], home_dir: Optional[str] = None) -> str:
    """Expand a string against a fully resolved env, failing on unknown names."""

    def lookup(name: str) -> str:
        if name not in env:
            raise EnvLookupError(name)
        return env[name]

    return expand_variables(value, lookup, home_dir)


class EnvResolver:
    """Resolve a mapping of interdependent env values to a fixed point."""

    def __init__(
        self,
        inherit_env: Optional[Iterable[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        home_dir: Optional[str] = None,
    ):
        """Initialize env resolver.

        Args:
            inherit_env: Names of process environment variables to inherit
            environ: Process environment to inherit from  # (defaults to os.environ)
            home_dir: Home directory used for `~`  # (defaults to the user's home)
        """
        self.inherit_env = list(inherit_env or [])
        self.environ = os.environ if environ is None else environ
        self.home_dir = home_dir

    def inherited(self) -> Dict[str, str]:
        """Collect the inherited variables that are actually set, skipping absent ones."""
        env = {}
        for name in self.inherit_env:
            if name in self.environ:
                env[name] = self.environ[name]
        return env

    def resolve(self, config_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Resolve every value of the config env.

        Args:
            config_env: Raw config env  # (name -> string that may reference other names)

        Returns:
            Inherited variables plus every resolved config value  # (config wins on clashes)

        Raises:
            EnvLookupError: If a referenced name is neither inherited nor a config key
            UnresolvedCycleError: If a pass resolves no key
        """
        inherited = self.inherited()
        config_env = dict(config_env or {})
        logger.debug("Provided env: %s", config_env)

        # First pass: only inherited values are available, every config key is pending.
        resolved, unresolved = self._run_pass(config_env, list(config_env), inherited, {}, set(config_env))
        logger.debug("Unresolved env: %s", unresolved)

        while unresolved:
            logger.debug("Env so far: %s", resolved)
            logger.debug("Still unresolved env: %s", unresolved)
            newly_resolved, unresolved_after = self._run_pass(
                config_env, unresolved, inherited, dict(resolved), set(unresolved)
            )
            if not newly_resolved:
                raise UnresolvedCycleError(unresolved)
            resolved.update(newly_resolved)
            unresolved = unresolved_after

        env = dict(inherited)
        env.update(resolved)
        logger.debug("Expanded config env: %s", env)
        return env

    def _run_pass(
        self,
        config_env: Mapping[str, str],
        keys: List[str],
        inherited: Mapping[str, str],
        resolved: Mapping[str, str],
        pending: Set[str],
    ) -> Tuple[Dict[str, str], List[str]]:
        """Attempt every key once against a fixed snapshot.

        Returns:
            (values resolved this pass, keys still unresolved in queue order)
        """
        newly_resolved = {}  # Dict[str, str]
        still_unresolved = []  # List[str]
        for key in keys:
            value, deferred = self._expand_value(config_env[key], inherited, resolved, pending)
            if deferred:
                still_unresolved.append(key)
            else:
                newly_resolved[key] = value
        return newly_resolved, still_unresolved

    def _expand_value(
        self,
        raw_value: str,
        inherited: Mapping[str, str],
        resolved: Mapping[str, str],
        pending: Set[str],
    ) -> Tuple[str, Set[str]]:
        """Expand one raw value, collecting the names that had to be deferred.

        Inherited names take precedence, matching what the first pass substitutes.
        """
        deferred: Set[str] = set()

        def lookup(name: str) -> Optional[str]:
            if name in inherited:
                return inherited[name]
            if name in pending:
                deferred.add(name)
                return None
            if name in resolved:
                return resolved[name]
            raise EnvLookupError(name)

        value = expand_variables(raw_value, lookup, self.home_dir)
        return value, deferred


def resolve_env(
    inherit_env: Optional[Iterable[str]],
    config_env: Optional[Mapping[str, str]],
    environ: Optional[Mapping[str, str]] = None,
    home_dir: Optional[str] = None,
) -> Dict[str, str]:
    """Resolve the config env on top of the inherited process variables.

    Args:
        inherit_env: Names of process environment variables to inherit
        config_env: Raw config env  # (name -> string)
        environ: Process environment  # (defaults to os.environ)
        home_dir: Home directory for `~`

    Returns:
        Fully resolved env
    """
    return EnvResolver(inherit_env, environ=environ, home_dir=home_dir).resolve(config_env)
