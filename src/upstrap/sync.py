"""Reconcile a source directory tree into a target tree of symlinks.

Put your dotfiles in a source directory (default ``~/code/dotfiles``) in the
same structure they should have relative to the target (default ``~``). Every
non-directory entry in the source gets a symlink at the same relative path in
the target, so editing ``~/.bashrc`` edits the file in the source checkout.
Anything that would be overwritten is moved into the backup directory (default
``~/backup``) instead of being deleted.
"""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .backup import displace
from .exceptions import (
    CanonicalizeError,
    CreateDirError,
    DeleteError,
    MissingDirectoryError,
    ParentConflictError,
)
from .linker import LinkAction, ensure_link
from .walk import iter_source_entries

logger = logging.getLogger(__name__)

DEFAULT_FROM_DIR = "~/code/dotfiles"
DEFAULT_TO_DIR = "~"
DEFAULT_BACKUP_DIR = "~/backup"


@dataclass
class LinkConfig:
    """Directories for one link run, as strings that may still contain variables."""

    from_dir: str = DEFAULT_FROM_DIR
    to_dir: str = DEFAULT_TO_DIR
    backup_dir: str = DEFAULT_BACKUP_DIR
    exclude: List[str] = field(default_factory=list)

    def resolve_env(self, env_fn: Callable[[str], str]) -> None:
        """Expand variables and `~` in the three directory strings in-place."""
        self.from_dir = env_fn(self.from_dir)
        self.to_dir = env_fn(self.to_dir)
        self.backup_dir = env_fn(self.backup_dir)


@dataclass
class SyncReport:
    """Relative paths touched by a synchronize run, grouped by what happened."""

    created: List[Path] = field(default_factory=list)
    already_linked: List[Path] = field(default_factory=list)
    relinked: List[Path] = field(default_factory=list)
    removed_links: List[Path] = field(default_factory=list)
    backups: List[Path] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.relinked or self.removed_links or self.backups)

    def record(self, relative_path: Path, action: LinkAction) -> None:
        if action is LinkAction.ALREADY_LINKED:
            self.already_linked.append(relative_path)
            return
        if action is LinkAction.RELINKED:
            self.relinked.append(relative_path)
        elif action is LinkAction.REMOVED_BROKEN:
            self.removed_links.append(relative_path)
        elif action is LinkAction.BACKED_UP:
            self.backups.append(relative_path)
        self.created.append(relative_path)


def resolve_directory(dir_path: Path, name: str) -> Path:
    """Ensure dir exists, and resolve symlinks to find its canonical path."""
    if not dir_path.is_dir():
        raise MissingDirectoryError(name, dir_path)
    try:
        return dir_path.resolve(strict=True)
    except OSError as e:
        raise CanonicalizeError(dir_path, e) from e


def _ancestors(relative_path: Path) -> List[Path]:
    """Ancestors of a relative path, from the immediate parent up to the top-level component."""
    return [p for p in relative_path.parents if p != Path(".")]


def create_parent_dir(
    to_dir: Path, relative_path: Path, backup_dir: Path, report: Optional[SyncReport] = None
) -> None:
    """Create the parent directory the symlink for `relative_path` will live in.

    If creation fails, a file or link is sitting where a directory is needed.
    Every ancestor from the immediate parent upwards is checked: files are moved
    into the backup tree, links that do not lead to a directory are removed, and
    directories are left alone. Creation is then retried once.

    Raises:
        ParentConflictError: If creation failed because something is in the way but
            nothing could be moved out of the way
        CreateDirError: If creation still fails on the retry
    """
    to_path = to_dir / relative_path
    parent = to_path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
        return
    except OSError as e:
        first_error = e

    logger.info(
        "Failed to create parent dir %s, walking up the tree to see if there's a file that needs to become a directory.",
        parent,
    )
    nearest_dir = None
    cleared = False
    for ancestor in _ancestors(relative_path):
        abs_path = to_dir / ancestor
        logger.debug("Checking path %s", abs_path)
        if not os.path.lexists(abs_path):
            continue
        if abs_path.is_dir():
            # Real directories and links to directories can both hold the new parent.
            if nearest_dir is None:
                nearest_dir = abs_path
            continue

        logger.warning("File will be overwritten by parent directory of link.\n  File: %s\n  Link: %s", abs_path, to_path)
        if abs_path.is_symlink():
            logger.info("Removing symlink: %s", abs_path)
            try:
                os.remove(abs_path)
            except OSError as e:
                raise DeleteError(abs_path, e) from e
            if report is not None:
                report.removed_links.append(ancestor)
        else:
            displace(abs_path, ancestor, backup_dir)
            if report is not None:
                report.backups.append(ancestor)
        cleared = True

    if not cleared and first_error.errno in (errno.EEXIST, errno.ENOTDIR):
        raise ParentConflictError(nearest_dir or parent, first_error) from first_error

    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CreateDirError(parent, e) from e


def _dir_contents(path: Path) -> List[str]:
    return sorted(p.name for p in path.iterdir())


def synchronize(
    from_dir: Path, to_dir: Path, backup_dir: Path, exclude: Optional[Sequence[str]] = None
) -> SyncReport:
    """Symlink every non-directory entry of `from_dir` into `to_dir`.

    Args:
        from_dir: Source tree  # (must exist)
        to_dir: Target tree  # (must exist)
        backup_dir: Where displaced content goes  # (created on demand, removed again if unused)
        exclude: Glob patterns of source relative paths to skip

    Returns:
        SyncReport describing what changed

    Raises:
        LinkError: On the first failure; nothing done before it is rolled back
    """
    logger.debug("UTC time is: %s", datetime.now(timezone.utc))

    from_dir = resolve_directory(Path(from_dir), "From")
    to_dir = resolve_directory(Path(to_dir), "To")

    backup_dir = Path(backup_dir)
    if not backup_dir.exists():
        logger.debug("Backup dir '%s' doesn't exist, creating it.", backup_dir)
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CreateDirError(backup_dir, e) from e
    backup_dir = resolve_directory(backup_dir, "Backup")

    logger.info("Linking from %s to %s (backup dir %s).", from_dir, to_dir, backup_dir)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("to_dir contents: %s", _dir_contents(to_dir))

    report = SyncReport()
    for entry in iter_source_entries(from_dir, exclude):
        create_parent_dir(to_dir, entry.relative_path, backup_dir, report)
        action = ensure_link(entry.path, to_dir, entry.relative_path, backup_dir)
        report.record(entry.relative_path, action)

    try:
        backup_dir.rmdir()
    except OSError as e:
        logger.info("Backup dir non-empty, check contents: %s", e)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("to_dir final contents: %s", _dir_contents(to_dir))
        if backup_dir.exists():
            logger.debug("backup_dir final contents: %s", _dir_contents(backup_dir))

    return report


def run(config: LinkConfig) -> SyncReport:
    """Run a link task from an already resolved LinkConfig."""
    return synchronize(Path(config.from_dir), Path(config.to_dir), Path(config.backup_dir), config.exclude)
