"""
Background retention cycles: pruning and compressing backups
"""

import gzip
import logging
import os
import shutil
import stat
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextlib import suppress
from datetime import datetime
from typing import Callable, Optional, Set

from .config import DEFAULT_COMPRESSION_LEVEL, RotatorConfig
from .errors import RetentionError
from .naming import COMPRESS_SUFFIX, as_aware
from .retention import RetentionPlan, plan_retention
from .scanner import scan_backups

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[RetentionError], None]


def compress_file(
    src: str,
    dst: Optional[str] = None,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> str:
    """
    Gzip ``src`` into ``dst`` and remove ``src``

    The compressed data goes to a temporary file that is synced and renamed
    over ``dst`` before ``src`` is removed, so an interrupted run leaves the
    original in place. Any existing ``dst`` is replaced.
    """
    dst = dst or src + COMPRESS_SUFFIX
    tmp = dst + ".tmp"
    mode = stat.S_IMODE(os.stat(src).st_mode)

    try:
        with open(src, "rb") as f_in, open(tmp, "wb") as raw:
            with gzip.GzipFile(
                filename=os.path.basename(src),
                mode="wb",
                fileobj=raw,
                compresslevel=compression_level,
            ) as f_out:
                shutil.copyfileobj(f_in, f_out)
            raw.flush()
            os.fsync(raw.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, dst)
    except OSError:
        with suppress(FileNotFoundError):
            os.remove(tmp)
        raise

    os.remove(src)
    return dst


class CleanupScheduler:
    """
    Runs retention cycles for one log file on a background thread

    Cycles never run under the writer's lock. A cycle requested while another
    is still queued is folded into the queued one, which re-scans the
    directory when it starts anyway.
    """

    def __init__(
        self,
        filename: str,
        config: RotatorConfig,
        clock: Callable[[], datetime],
        error_callback: Optional[ErrorCallback] = None,
    ):
        self.filename = filename
        self.config = config
        self.clock = clock
        self.error_callback = error_callback

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Set[Future] = set()
        self._queued: Optional[Future] = None

    @property
    def enabled(self) -> bool:
        return bool(self.config.max_age or self.config.max_backups or self.config.compress)

    def schedule(self) -> Optional[Future]:
        """Queue a retention cycle; returns its future, or None when disabled"""
        if not self.enabled:
            return None

        with self._lock:
            if self._queued is not None:
                return self._queued

            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="log_cleanup"
                )
            future = self._executor.submit(self._run)
            self._queued = future
            self._pending.add(future)

        future.add_done_callback(self._finished)
        return future

    def _run(self) -> RetentionPlan:
        with self._lock:
            self._queued = None
        return self.run_once()

    def _finished(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error(
                "Retention cycle for %s failed", self.filename, exc_info=future.exception()
            )

    def run_once(self) -> RetentionPlan:
        """Scan the backup directory and apply one round of retention decisions"""
        backups = scan_backups(
            self.filename,
            self.config.time_format,
            self.config.local_time,
            self.config.backup_dir or None,
        )
        plan = plan_retention(
            backups,
            as_aware(self.clock()),
            max_age=self.config.max_age,
            max_backups=self.config.max_backups,
            compress=self.config.compress,
            keep_last_decompressed=self.config.keep_last_decompressed,
        )

        for backup in plan.remove:
            try:
                os.remove(backup.path)
                logger.debug("Removed backup %s", backup.path)
            except FileNotFoundError:
                pass
            except OSError as e:
                self._report(RetentionError("remove", backup.path, e))

        for backup in plan.compress:
            try:
                compress_file(backup.path, compression_level=self.config.compression_level)
                logger.debug("Compressed backup %s", backup.path)
            except OSError as e:
                self._report(RetentionError("compress", backup.path, e))

        return plan

    def _report(self, error: RetentionError) -> None:
        if self.error_callback is None:
            logger.warning("%s", error)
            return
        try:
            self.error_callback(error)
        except Exception:
            logger.exception("Retention error callback raised for %s", error.path)

    def wait(self) -> None:
        """Block until every cycle scheduled so far has finished"""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending)

    def shutdown(self) -> None:
        """Wait for outstanding cycles and release the worker thread"""
        self.wait()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
