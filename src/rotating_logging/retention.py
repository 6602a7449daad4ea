"""
Retention decisions for rotated backups

Pure functions over an in-memory list of :class:`BackupFile` records; nothing
here touches the filesystem.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List

from .naming import COMPRESS_SUFFIX, as_aware


@dataclass(frozen=True)
class BackupFile:
    """A rotated log file found on disk"""

    path: str
    timestamp: datetime
    compressed: bool = False

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def logical_name(self) -> str:
        """Name shared by a plain backup and its compressed sibling"""
        if self.compressed and self.name.endswith(COMPRESS_SUFFIX):
            return self.name[: -len(COMPRESS_SUFFIX)]
        return self.name


@dataclass
class RetentionPlan:
    """Files a retention cycle should remove and compress"""

    remove: List[BackupFile] = field(default_factory=list)
    compress: List[BackupFile] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.remove or self.compress)


def should_compress_file(keep_last_decompressed: int, index: int, filename: str) -> bool:
    """
    Decide whether the backup at ``index`` (0 is the newest) gets compressed

    Already compressed files never are; otherwise the newest
    ``keep_last_decompressed`` backups stay as plain files.
    """
    if filename.endswith(COMPRESS_SUFFIX):
        return False
    return index >= keep_last_decompressed


def sort_newest_first(backups: Iterable[BackupFile]) -> List[BackupFile]:
    return sorted(backups, key=lambda backup: backup.timestamp, reverse=True)


def plan_retention(
    backups: Iterable[BackupFile],
    now: datetime,
    max_age: int = 0,
    max_backups: int = 0,
    compress: bool = False,
    keep_last_decompressed: int = 0,
) -> RetentionPlan:
    """
    Work out which backups to delete and which to compress

    Args:
        backups: Backup records, in any order
        now: Reference time for the age rule
        max_age: Days to keep backups for; 0 keeps them regardless of age
        max_backups: Logical backups to keep; 0 keeps all of them
        compress: Whether surviving backups should be compressed
        keep_last_decompressed: Newest logical backups left uncompressed

    Returns:
        A plan whose ``remove`` and ``compress`` lists never overlap
    """
    now = as_aware(now)
    plan = RetentionPlan()
    remaining = sort_newest_first(backups)

    if max_backups > 0:
        preserved = set()
        kept = []
        for backup in remaining:
            # a backup caught mid-compression has two files but counts once
            preserved.add(backup.logical_name)
            if len(preserved) > max_backups:
                plan.remove.append(backup)
            else:
                kept.append(backup)
        remaining = kept

    if max_age > 0:
        cutoff = now - timedelta(days=max_age)
        kept = []
        for backup in remaining:
            if backup.timestamp < cutoff:
                plan.remove.append(backup)
            else:
                kept.append(backup)
        remaining = kept

    if compress:
        positions = {}
        for backup in remaining:
            index = positions.setdefault(backup.logical_name, len(positions))
            if should_compress_file(keep_last_decompressed, index, backup.name):
                plan.compress.append(backup)

    return plan
