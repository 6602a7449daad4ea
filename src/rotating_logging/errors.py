"""
Exceptions raised by the rotating log writer
"""


class RotatingLogError(Exception):
    """Base class for rotating log errors"""


class OversizedWriteError(RotatingLogError, ValueError):
    """A single write is larger than the rotation threshold"""

    def __init__(self, length: int, max_size: int):
        self.length = length
        self.max_size = max_size
        super().__init__(
            f"write length {length} exceeds maximum file size {max_size}"
        )


class RetentionError(RotatingLogError):
    """Removing or compressing a backup failed during a retention cycle"""

    def __init__(self, action: str, path: str, cause: BaseException):
        self.action = action
        self.path = path
        self.cause = cause
        super().__init__(f"failed to {action} backup {path}: {cause}")
