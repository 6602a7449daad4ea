"""
Directory scanning for rotated backups
"""

import logging
import os
from typing import List, Optional, Union

from .naming import COMPRESS_SUFFIX, TimeFormat, as_time_format, prefix_and_ext, time_from_name
from .retention import BackupFile, sort_newest_first

logger = logging.getLogger(__name__)


def backup_directory(filename: str, backup_dir: Optional[str] = None) -> str:
    """Directory rotated copies of ``filename`` are written to"""
    return backup_dir or os.path.dirname(filename) or os.curdir


def scan_backups(
    filename: str,
    time_format: Union[str, TimeFormat, None] = None,
    local_time: bool = False,
    backup_dir: Optional[str] = None,
) -> List[BackupFile]:
    """
    List the backups of ``filename``, newest first

    Only regular files named ``<prefix>-<timestamp><ext>`` (optionally followed
    by the compressed suffix) whose timestamp parses are returned. Directories
    and near-miss names are ignored. A missing backup directory yields an
    empty list.
    """
    fmt = as_time_format(time_format)
    directory = backup_directory(filename, backup_dir)
    prefix, ext = prefix_and_ext(filename)
    active = os.path.abspath(filename)

    try:
        with os.scandir(directory) as listing:
            entries = list(listing)
    except FileNotFoundError:
        return []

    backups = []
    for entry in entries:
        if not entry.is_file():
            continue
        if os.path.abspath(entry.path) == active:
            continue

        try:
            timestamp = time_from_name(entry.name, prefix, ext, fmt, local_time)
            backups.append(BackupFile(entry.path, timestamp))
            continue
        except ValueError:
            pass

        if entry.name.endswith(COMPRESS_SUFFIX):
            stripped = entry.name[: -len(COMPRESS_SUFFIX)]
            try:
                timestamp = time_from_name(stripped, prefix, ext, fmt, local_time)
            except ValueError:
                continue
            backups.append(BackupFile(entry.path, timestamp, compressed=True))

    logger.debug("Found %d backups of %s in %s", len(backups), filename, directory)
    return sort_newest_first(backups)
