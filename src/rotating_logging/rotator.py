"""
Size-bounded rotating log writer
"""

import errno
import logging
import os
import shutil
import stat
import threading
from datetime import datetime, timezone
from typing import Any, BinaryIO, Callable, List, Optional

from .cleanup import CleanupScheduler, ErrorCallback
from .config import MEGABYTE, RotatorConfig
from .errors import OversizedWriteError
from .naming import TimeFormat, as_aware, backup_name
from .retention import BackupFile
from .scanner import backup_directory, scan_backups

logger = logging.getLogger(__name__)

# permissions for a log file that has no predecessor to copy them from
NEW_FILE_MODE = 0o600


def _private_opener(path: str, flags: int) -> int:
    return os.open(path, flags, NEW_FILE_MODE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RotatingWriter:
    """
    Append-only byte sink that rotates its file when it grows too large

    The file is opened lazily on the first write. A write that would push the
    file past ``max_size`` first moves the current file aside to a timestamped
    backup and starts a fresh one. After every rotation a retention cycle runs
    in the background to prune and compress old backups; :meth:`close` waits
    for those cycles.

    Writes and rotations are serialized by one lock, so the writer may be
    shared between threads.
    """

    def __init__(
        self,
        config: Optional[RotatorConfig] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        size_unit: int = MEGABYTE,
        error_callback: Optional[ErrorCallback] = None,
        **overrides: Any,
    ):
        config = config or RotatorConfig()
        if overrides:
            config = config.with_overrides(**overrides)

        self.config = config
        self.filename = config.resolved_filename
        self.clock = clock or utc_now
        self.size_unit = size_unit
        self.time_format = TimeFormat(config.time_format)

        self._lock = threading.Lock()
        self._file: Optional[BinaryIO] = None
        self._size = 0
        self._cleanup = CleanupScheduler(
            self.filename, config, self.clock, error_callback=error_callback
        )

    @property
    def max_bytes(self) -> int:
        return self.config.max_bytes(self.size_unit)

    @property
    def size(self) -> int:
        """Bytes in the active file as tracked by this writer"""
        return self._size

    @property
    def closed(self) -> bool:
        return self._file is None

    @property
    def backup_dir(self) -> str:
        return backup_directory(self.filename, self.config.backup_dir or None)

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        """
        Append ``data`` to the active file, rotating first if it would not fit

        Raises:
            OversizedWriteError: ``data`` alone is larger than ``max_size``;
                nothing is written and no file is created
            OSError: opening, moving or writing files failed
        """
        length = len(data)
        with self._lock:
            if length > self.max_bytes:
                raise OversizedWriteError(length, self.max_bytes)

            if self._file is None:
                self._open_existing_or_new()

            if self._size + length > self.max_bytes:
                self._rotate()

            written = self._file.write(data)
            self._file.flush()
            self._size += written
            return written

    def rotate(self) -> None:
        """Close the active file, move it to a backup and start a new one"""
        with self._lock:
            self._rotate()

    def flush(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Close the active file and wait for background retention cycles"""
        with self._lock:
            self._close_file()
        self._cleanup.shutdown()

    def backups(self) -> List[BackupFile]:
        """Backups of this log currently on disk, newest first"""
        return scan_backups(
            self.filename,
            self.time_format,
            self.config.local_time,
            self.config.backup_dir or None,
        )

    def run_retention(self):
        """Queue a retention cycle without rotating"""
        return self._cleanup.schedule()

    def wait_for_retention(self) -> None:
        """Block until queued retention cycles are done"""
        self._cleanup.wait()

    def __enter__(self) -> "RotatingWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<RotatingWriter {self.filename!r} size={self._size}>"

    def _close_file(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        finally:
            self._file.close()
            self._file = None

    def _open_existing_or_new(self) -> None:
        # leftovers from a previous run are pruned/compressed on first open
        self._cleanup.schedule()

        try:
            info = os.stat(self.filename)
        except FileNotFoundError:
            self._open_new()
            return

        self._file = open(self.filename, "ab")
        self._size = info.st_size

    def _open_new(self, mode: Optional[int] = None) -> None:
        try:
            f = open(self.filename, "wb", opener=_private_opener)
        except FileNotFoundError:
            directory = os.path.dirname(self.filename)
            if not directory:
                raise
            os.makedirs(directory, exist_ok=True)
            f = open(self.filename, "wb", opener=_private_opener)

        if mode is not None:
            try:
                os.chmod(self.filename, mode)
            except OSError:
                f.close()
                raise

        self._file = f
        self._size = 0

    def _rotate(self) -> None:
        self._close_file()

        mode = None
        try:
            mode = stat.S_IMODE(os.stat(self.filename).st_mode)
        except FileNotFoundError:
            pass

        if mode is not None:
            destination = backup_name(
                self.filename,
                as_aware(self.clock()),
                self.time_format,
                self.config.local_time,
                self.config.backup_dir or None,
            )
            os.makedirs(os.path.dirname(destination) or os.curdir, exist_ok=True)
            self._move(self.filename, destination)
            logger.debug("Rotated %s to %s", self.filename, destination)

        self._open_new(mode)
        self._cleanup.schedule()

    @staticmethod
    def _move(src: str, dst: str) -> None:
        try:
            os.replace(src, dst)
            return
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise

        # different filesystems: copy, then empty and drop the source
        with open(src, "rb") as f_in, open(dst, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
        shutil.copymode(src, dst)
        os.truncate(src, 0)
        os.remove(src)
