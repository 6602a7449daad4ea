"""
logging framework handlers backed by a rotating writer
"""

from .rotating_handler import RotatingFileHandler, create_file_logger

__all__ = [
    "RotatingFileHandler",
    "create_file_logger",
]
