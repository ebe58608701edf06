"""Move content that is in the way of a link into the backup tree."""

import errno
import logging
import os
from pathlib import Path

from .exceptions import CreateDirError, RenameError

logger = logging.getLogger(__name__)


def displace(existing_path: Path, relative_path: Path, backup_dir: Path) -> Path:
    """Move `existing_path` to `backup_dir / relative_path`, creating parents as needed.

    The move is a rename, so content and metadata are preserved. An existing backup
    at the destination is never overwritten.

    Args:
        existing_path: File, directory or link to move out of the way
        relative_path: Its path relative to the target directory
        backup_dir: Root of the backup tree

    Returns:
        Path the content was moved to

    Raises:
        CreateDirError: If the backup parent directory cannot be created
        RenameError: If the move fails or the destination already exists
    """
    backup_path = backup_dir / relative_path
    backup_parent = backup_path.parent
    try:
        backup_parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CreateDirError(backup_parent, e) from e

    if os.path.lexists(backup_path):
        e = FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(backup_path))
        raise RenameError(existing_path, backup_path, e) from e

    logger.info("Moving to backup: %s -> %s", existing_path, backup_path)
    try:
        os.rename(existing_path, backup_path)
    except OSError as e:
        raise RenameError(existing_path, backup_path, e) from e
    return backup_path
