"""Enumerate the non-directory entries of a source tree."""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kinds of source entries that get linked."""

    FILE = "file"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True)
class SourceEntry:
    """A non-directory object under the source directory."""

    path: Path
    relative_path: Path
    kind: EntryKind


def exclude_predicate(patterns: Optional[Sequence[str]]) -> Callable[[Path], bool]:
    """Build a predicate that is True for relative paths matching any glob pattern.

    A pattern matches when it matches the whole relative path (posix form) or any
    single component of it, so `.git` excludes everything below a `.git` directory.
    """
    patterns = list(patterns or [])

    def is_excluded(relative_path: Path) -> bool:
        candidates = [relative_path.as_posix(), *relative_path.parts]
        return any(fnmatch.fnmatchcase(c, p) for p in patterns for c in candidates)

    return is_excluded


def _entry_kind(entry: os.DirEntry) -> EntryKind:
    if entry.is_symlink():
        return EntryKind.SYMLINK
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return EntryKind.OTHER


def iter_source_entries(from_dir: Path, exclude: Optional[Sequence[str]] = None) -> Iterator[SourceEntry]:
    """Lazily walk `from_dir` depth-first, yielding every non-directory entry.

    Symlinks are yielded as entries and never followed, including links to
    directories. Entries within a directory are visited in name order, so the
    sequence is restartable and deterministic for an unchanged tree.

    Args:
        from_dir: Root of the source tree
        exclude: Glob patterns of relative paths to skip

    Yields:
        SourceEntry for each file, symlink or other non-directory object
    """
    is_excluded = exclude_predicate(exclude)
    stack = [from_dir]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning("Skipping unreadable directory %s: %s", current, e)
            continue

        subdirs = []
        for entry in entries:
            path = Path(entry.path)
            relative_path = path.relative_to(from_dir)
            if is_excluded(relative_path):
                logger.debug("Excluded %s", relative_path)
                continue
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(path)
            else:
                yield SourceEntry(path=path, relative_path=relative_path, kind=_entry_kind(entry))

        # Reversed so the first subdirectory is popped first.
        stack.extend(reversed(subdirs))
