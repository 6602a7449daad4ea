#!/usr/bin/env python3
"""
Example demonstrating size-based rotation, retention and compression
"""

import logging
import os
import signal
import tempfile

from rotating_logging import RotatingWriter, RotatorConfig, create_file_logger


def report_retention_error(error):
    print(f"retention problem: {error}")


def rotate_by_size(log_dir: str):
    """Write enough data to rotate a few times and show what is left on disk"""
    config = RotatorConfig(
        filename=os.path.join(log_dir, "service.log"),
        max_size=1,  # megabytes
        max_backups=3,
        compress=True,
        keep_last_decompressed=1,
    )

    line = b"x" * 1023 + b"\n"
    with RotatingWriter(config, error_callback=report_retention_error) as writer:
        for _ in range(5 * 1024):
            writer.write(line)

        for backup in writer.backups():
            state = "compressed" if backup.compressed else "plain"
            print(f"{backup.timestamp.isoformat()}  {state:<10}  {backup.path}")


def rotate_on_signal(log_dir: str):
    """Rotate on SIGHUP, the way external log rotation tools expect"""
    config = RotatorConfig(filename=os.path.join(log_dir, "app.log"), max_backups=2)
    logger = create_file_logger("example_app", config)
    handler = logger.handlers[0]

    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, lambda signum, frame: handler.doRollover())

    logger.info("Application started")
    handler.doRollover()
    logger.info("Logging to a fresh file")
    handler.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    with tempfile.TemporaryDirectory() as tmp:
        rotate_by_size(tmp)
        rotate_on_signal(tmp)
        print(sorted(os.listdir(tmp)))
