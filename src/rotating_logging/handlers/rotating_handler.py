"""
logging.Handler that writes through a RotatingWriter
"""

import logging
from typing import Any, Optional

from ..config import RotatorConfig
from ..rotator import RotatingWriter

# records emitted by the writer itself; writing them back through the writer
# would re-enter its lock
INTERNAL_LOGGER_PREFIX = "rotating_logging"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def is_internal_record(record: logging.LogRecord) -> bool:
    name = record.name
    return name == INTERNAL_LOGGER_PREFIX or name.startswith(INTERNAL_LOGGER_PREFIX + ".")


class RotatingFileHandler(logging.Handler):
    """
    Handler writing formatted records to a size-rotated file

    Rotation, retention and compression are delegated to
    :class:`~rotating_logging.rotator.RotatingWriter`, which does its own
    locking. Records from ``rotating_logging`` loggers are dropped so the
    background retention thread never waits on this handler.
    """

    terminator = "\n"

    def __init__(
        self,
        config: Optional[RotatorConfig] = None,
        encoding: str = "utf-8",
        writer: Optional[RotatingWriter] = None,
    ):
        super().__init__()
        self.writer = writer or RotatingWriter(config)
        self.config = self.writer.config
        self.encoding = encoding
        self.addFilter(lambda record: not is_internal_record(record))

    @property
    def base_filename(self) -> str:
        return self.writer.filename

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record"""
        try:
            msg = self.format(record) + self.terminator
            self.writer.write(msg.encode(self.encoding))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def doRollover(self) -> None:
        """Force a rotation outside the size threshold"""
        self.writer.rotate()

    def flush(self) -> None:
        self.writer.flush()

    def close(self) -> None:
        """Close the writer and wait for its background work"""
        # no handler lock here: draining waits on a thread that may log
        self.writer.close()
        super().close()


def create_file_logger(
    name: str,
    config: RotatorConfig,
    formatter: Optional[logging.Formatter] = None,
    level: int = logging.DEBUG,
    **writer_options: Any,
) -> logging.Logger:
    """
    Attach a RotatingFileHandler to the logger called ``name``

    Rotating handlers already on that logger are closed and replaced; other
    handlers are left alone. ``writer_options`` go to :class:`RotatingWriter`
    (``clock``, ``size_unit``, ``error_callback``).
    """
    logger = logging.getLogger(name)

    for existing in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
        logger.removeHandler(existing)
        existing.close()

    handler = RotatingFileHandler(writer=RotatingWriter(config, **writer_options))
    handler.setFormatter(formatter or logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
