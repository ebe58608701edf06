"""Create or repair the symlink for a single source entry."""

import logging
import os
import stat
from enum import Enum
from pathlib import Path

from .backup import displace
from .exceptions import DeleteError, LinkIOError, SymlinkError

logger = logging.getLogger(__name__)


class LinkAction(str, Enum):
    """What ensure_link had to do for an entry."""

    ALREADY_LINKED = "already_linked"
    CREATED = "created"
    RELINKED = "relinked"
    REMOVED_BROKEN = "removed_broken"
    BACKED_UP = "backed_up"


def _remove_link(path: Path) -> None:
    try:
        os.remove(path)
    except OSError as e:
        raise DeleteError(path, e) from e


def ensure_link(source_path: Path, to_dir: Path, relative_path: Path, backup_dir: Path) -> LinkAction:
    """Make `to_dir / relative_path` a symlink to `source_path`.

    Anything else found at the target is moved into `backup_dir` at the same
    relative path, except links, which are replaced since they hold no content.
    Calling this again once the link is correct changes nothing.

    Args:
        source_path: Absolute path of the source entry
        to_dir: Canonical target directory
        relative_path: Path of the entry relative to the source directory
        backup_dir: Canonical backup directory

    Returns:
        The action taken
    """
    to_path = to_dir / relative_path
    try:
        to_stat = os.lstat(to_path)
    except FileNotFoundError:
        to_stat = None
    except OSError as e:
        raise LinkIOError(to_path, e) from e

    action = LinkAction.CREATED
    if to_stat is None:
        pass
    elif stat.S_ISLNK(to_stat.st_mode):
        try:
            existing_link = os.readlink(to_path)
        except OSError as e:
            raise LinkIOError(to_path, e) from e

        if existing_link == str(source_path):
            logger.debug("Link at %s already points to %s, skipping.", to_path, existing_link)
            return LinkAction.ALREADY_LINKED

        if os.path.exists(to_path):
            logger.warning("Link at %s points to %s, changing to %s.", to_path, existing_link, source_path)
            action = LinkAction.RELINKED
        else:
            logger.warning("Removing existing broken link.\n  Path: %s\n  Dest: %s", to_path, existing_link)
            action = LinkAction.REMOVED_BROKEN
        _remove_link(to_path)
    elif stat.S_ISDIR(to_stat.st_mode):
        logger.warning("Expected file or link at %s, found directory, moving to %s", to_path, backup_dir)
        displace(to_path, relative_path, backup_dir)
        action = LinkAction.BACKED_UP
    else:
        logger.warning("Existing file at %s, moving to %s", to_path, backup_dir)
        displace(to_path, relative_path, backup_dir)
        action = LinkAction.BACKED_UP

    logger.info("Linking:\n  From: %s\n  To: %s", source_path, to_path)
    try:
        os.symlink(source_path, to_path)
    except OSError as e:
        raise SymlinkError(source_path, to_path, e) from e
    return action
