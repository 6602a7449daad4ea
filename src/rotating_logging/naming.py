"""
Backup filename encoding and decoding

A backup of ``/var/log/app.log`` rotated at 2014-05-04 14:44:33.555 UTC is
named ``/var/log/app-2014-05-04T14-44-33.555.log``. The timestamp segment is
rendered and parsed with the same :class:`TimeFormat`, so any name this module
produces can be turned back into the instant it was rotated at.
"""

import os
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

DEFAULT_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S.%L"
COMPRESS_SUFFIX = ".gz"

# directive -> (datetime field, width)
_DIRECTIVES = {
    "Y": ("year", 4),
    "m": ("month", 2),
    "d": ("day", 2),
    "H": ("hour", 2),
    "M": ("minute", 2),
    "S": ("second", 2),
    "L": ("millisecond", 3),
    "f": ("microsecond", 6),
}

# coarsest to finest
_RESOLUTION_ORDER = ["year", "month", "day", "hour", "minute", "second", "millisecond", "microsecond"]


class TimeFormat:
    """
    Fixed-width timestamp pattern used in backup filenames

    Supported directives are ``%Y %m %d %H %M %S``, ``%L`` (milliseconds),
    ``%f`` (microseconds) and ``%%``. Every directive has a fixed width, which
    keeps parsing unambiguous even without separators.
    """

    def __init__(self, pattern: str = DEFAULT_TIME_FORMAT):
        self.pattern = pattern
        self._parts: List[Tuple[str, str]] = []  # ("lit", text) or ("field", name)
        self._fields: List[str] = []
        self._compile()
        self._regex = re.compile(self._build_regex())

    def _compile(self) -> None:
        literal = []
        i = 0
        while i < len(self.pattern):
            char = self.pattern[i]
            if char != "%":
                literal.append(char)
                i += 1
                continue

            if i + 1 >= len(self.pattern):
                raise ValueError(f"dangling '%' in time format {self.pattern!r}")

            directive = self.pattern[i + 1]
            i += 2
            if directive == "%":
                literal.append("%")
                continue
            if directive not in _DIRECTIVES:
                raise ValueError(
                    f"unsupported directive '%{directive}' in time format {self.pattern!r}"
                )

            field_name = _DIRECTIVES[directive][0]
            if field_name in self._fields:
                raise ValueError(
                    f"directive '%{directive}' repeated in time format {self.pattern!r}"
                )
            if literal:
                self._parts.append(("lit", "".join(literal)))
                literal = []
            self._parts.append(("field", directive))
            self._fields.append(field_name)

        if literal:
            self._parts.append(("lit", "".join(literal)))
        if not self._fields:
            raise ValueError(f"time format {self.pattern!r} has no time directives")

    def _build_regex(self) -> str:
        pieces = []
        for kind, value in self._parts:
            if kind == "lit":
                pieces.append(re.escape(value))
            else:
                field_name, width = _DIRECTIVES[value]
                pieces.append(f"(?P<{field_name}>[0-9]{{{width}}})")
        return "".join(pieces)

    def format(self, when: datetime) -> str:
        """Render ``when`` (already in the wanted timezone)"""
        out = []
        for kind, value in self._parts:
            if kind == "lit":
                out.append(value)
                continue
            field_name, width = _DIRECTIVES[value]
            if field_name == "millisecond":
                number = when.microsecond // 1000
            else:
                number = getattr(when, field_name)
            out.append(str(number).zfill(width))
        return "".join(out)

    def parse(self, text: str, tz: Optional[timezone] = None) -> datetime:
        """
        Parse ``text`` back into a datetime

        The whole string must match; trailing or leading bytes are an error.
        With ``tz`` left as None the result is interpreted as local time.
        """
        match = self._regex.fullmatch(text)
        if match is None:
            raise ValueError(f"{text!r} does not match time format {self.pattern!r}")

        values = {name: int(number) for name, number in match.groupdict().items()}
        microsecond = values.get("microsecond", values.get("millisecond", 0) * 1000)
        parsed = datetime(
            values.get("year", 1900),
            values.get("month", 1),
            values.get("day", 1),
            values.get("hour", 0),
            values.get("minute", 0),
            values.get("second", 0),
            microsecond,
        )
        if tz is None:
            return parsed.astimezone()
        return parsed.replace(tzinfo=tz)

    def truncate(self, when: datetime) -> datetime:
        """Drop precision the format cannot represent"""
        finest = max(_RESOLUTION_ORDER.index(name) for name in self._fields)
        finest_name = _RESOLUTION_ORDER[finest]
        if finest_name == "microsecond":
            return when
        if finest_name == "millisecond":
            return when.replace(microsecond=when.microsecond // 1000 * 1000)
        when = when.replace(microsecond=0)
        for name in _RESOLUTION_ORDER[finest + 1:6]:
            when = when.replace(**{name: 1 if name in ("month", "day") else 0})
        return when

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TimeFormat) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return f"TimeFormat({self.pattern!r})"


def as_time_format(value: Union[str, TimeFormat, None]) -> TimeFormat:
    if isinstance(value, TimeFormat):
        return value
    return TimeFormat(value or DEFAULT_TIME_FORMAT)


def prefix_and_ext(filename: str) -> Tuple[str, str]:
    """Split ``/var/log/app.log`` into ``("app", ".log")``"""
    base = os.path.basename(filename)
    prefix, ext = os.path.splitext(base)
    return prefix, ext


def as_aware(when: datetime) -> datetime:
    """Attach the local zone to a naive datetime; aware ones pass through"""
    if when.tzinfo is None:
        return when.astimezone()
    return when


def to_file_time(when: datetime, local_time: bool) -> datetime:
    """Convert ``when`` to UTC, or to the local zone when ``local_time`` is set"""
    if local_time:
        return when.astimezone()
    return when.astimezone(timezone.utc)


def backup_name(
    filename: str,
    when: datetime,
    time_format: Union[str, TimeFormat, None] = None,
    local_time: bool = False,
    backup_dir: Optional[str] = None,
) -> str:
    """Full path of the backup created when ``filename`` is rotated at ``when``"""
    fmt = as_time_format(time_format)
    directory = backup_dir or os.path.dirname(filename)
    prefix, ext = prefix_and_ext(filename)
    stamp = fmt.format(to_file_time(when, local_time))
    return os.path.join(directory, f"{prefix}-{stamp}{ext}")


def time_from_name(
    name: str,
    prefix: str,
    ext: str,
    time_format: Union[str, TimeFormat, None] = None,
    local_time: bool = False,
) -> datetime:
    """
    Extract the rotation time embedded in a backup filename

    Raises ValueError when ``name`` is not ``<prefix>-<timestamp><ext>``.
    A compressed name must have :data:`COMPRESS_SUFFIX` stripped by the caller.
    """
    fmt = as_time_format(time_format)
    head = prefix + "-"
    if not name.startswith(head):
        raise ValueError(f"mismatched prefix in {name!r}")
    if not name.endswith(ext) or len(name) < len(head) + len(ext):
        raise ValueError(f"mismatched extension in {name!r}")

    stamp = name[len(head):len(name) - len(ext)]
    return fmt.parse(stamp, None if local_time else timezone.utc)
