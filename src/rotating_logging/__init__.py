"""
Rotating Logging

A size- and age-bounded rotating log writer: an append-only byte sink that
rotates its file when it grows too large, names backups with an embedded
timestamp, compresses them in the background and prunes old ones.
"""

__version__ = "0.1.0"

from .cleanup import CleanupScheduler, compress_file
from .config import (
    DEFAULT_MAX_SIZE,
    MEGABYTE,
    RotatorConfig,
    default_filename,
    get_default_config,
    set_default_config,
)
from .errors import OversizedWriteError, RetentionError, RotatingLogError
from .handlers import RotatingFileHandler, create_file_logger
from .naming import (
    COMPRESS_SUFFIX,
    DEFAULT_TIME_FORMAT,
    TimeFormat,
    backup_name,
    prefix_and_ext,
    time_from_name,
)
from .retention import BackupFile, RetentionPlan, plan_retention, should_compress_file
from .rotator import RotatingWriter
from .scanner import scan_backups

__all__ = [
    # Writer
    "RotatingWriter",
    "RotatorConfig",
    "get_default_config",
    "set_default_config",
    "default_filename",
    "DEFAULT_MAX_SIZE",
    "MEGABYTE",
    # Naming
    "TimeFormat",
    "DEFAULT_TIME_FORMAT",
    "COMPRESS_SUFFIX",
    "backup_name",
    "time_from_name",
    "prefix_and_ext",
    # Retention
    "BackupFile",
    "RetentionPlan",
    "plan_retention",
    "should_compress_file",
    "scan_backups",
    "CleanupScheduler",
    "compress_file",
    # Errors
    "RotatingLogError",
    "OversizedWriteError",
    "RetentionError",
    # logging integration
    "RotatingFileHandler",
    "create_file_logger",
]
