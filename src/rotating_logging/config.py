"""
Configuration for rotating log writers
"""

import json
import os
import sys
import tempfile
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

import yaml

from .naming import DEFAULT_TIME_FORMAT, TimeFormat

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

DEFAULT_MAX_SIZE = 100  # megabytes
MEGABYTE = 1024 * 1024
DEFAULT_COMPRESSION_LEVEL = 6

# Lowercased config keys, with and without underscores, mapped to fields
_KEY_ALIASES = {
    "filename": "filename",
    "maxsize": "max_size",
    "maxage": "max_age",
    "maxbackups": "max_backups",
    "localtime": "local_time",
    "compress": "compress",
    "keeplastdecompressed": "keep_last_decompressed",
    "timeformat": "time_format",
    "backupdir": "backup_dir",
    "compressionlevel": "compression_level",
}


def default_filename() -> str:
    """``<tempdir>/<program>-rotating.log``"""
    program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "python"
    return os.path.join(tempfile.gettempdir(), f"{program}-rotating.log")


@dataclass
class RotatorConfig:
    """Configuration for a rotating log writer"""

    # Active file; empty means default_filename()
    filename: str = ""

    # Rotation threshold in megabytes; 0 means DEFAULT_MAX_SIZE
    max_size: int = 0

    # Retention: 0 disables the corresponding rule
    max_age: int = 0  # days
    max_backups: int = 0

    # Backup naming
    local_time: bool = False
    time_format: str = DEFAULT_TIME_FORMAT
    backup_dir: str = ""

    # Compression settings
    compress: bool = False
    keep_last_decompressed: int = 0
    compression_level: int = DEFAULT_COMPRESSION_LEVEL

    def __post_init__(self):
        """Validate configuration values"""
        for name in ("max_size", "max_age", "max_backups", "keep_last_decompressed"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if not 0 <= self.compression_level <= 9:
            raise ValueError("compression_level must be between 0 and 9")
        if not self.time_format:
            self.time_format = DEFAULT_TIME_FORMAT
        # raises ValueError for unsupported patterns
        TimeFormat(self.time_format)

    @property
    def resolved_filename(self) -> str:
        return self.filename or default_filename()

    def max_bytes(self, size_unit: int = MEGABYTE) -> int:
        return (self.max_size or DEFAULT_MAX_SIZE) * size_unit

    def with_overrides(self, **changes: Any) -> "RotatorConfig":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RotatorConfig":
        """
        Build a config from decoded structured data

        Keys are matched case-insensitively and may use underscores, so
        ``MaxBackups``, ``maxbackups`` and ``max_backups`` are equivalent.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            normalized = str(key).lower().replace("_", "").replace("-", "")
            name = _KEY_ALIASES.get(normalized)
            if name is None or name not in known:
                raise ValueError(f"unknown rotating log config key: {key!r}")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> "RotatorConfig":
        return cls.from_dict(json.loads(text))

    @classmethod
    def from_yaml(cls, text: str) -> "RotatorConfig":
        return cls.from_dict(yaml.safe_load(text) or {})

    @classmethod
    def from_toml(cls, text: str) -> "RotatorConfig":
        return cls.from_dict(tomllib.loads(text))

    @classmethod
    def from_file(cls, path: str) -> "RotatorConfig":
        """Load a ``.json``, ``.yaml``/``.yml`` or ``.toml`` config file"""
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()

        ext = os.path.splitext(path)[1].lower()
        if ext == ".json":
            return cls.from_json(text)
        elif ext in (".yaml", ".yml"):
            return cls.from_yaml(text)
        elif ext == ".toml":
            return cls.from_toml(text)
        raise ValueError(f"unsupported config file type: {path}")

    @classmethod
    def _parse_bool_env(cls, key: str, default: str = "false") -> bool:
        """Parse boolean from environment variable"""
        return os.getenv(key, default).lower() == "true"

    @classmethod
    def from_env(cls) -> "RotatorConfig":
        """Create configuration from environment variables"""
        return cls(
            filename=os.getenv("ROTATING_LOG_FILENAME", ""),
            max_size=int(os.getenv("ROTATING_LOG_MAX_SIZE", "0")),
            max_age=int(os.getenv("ROTATING_LOG_MAX_AGE", "0")),
            max_backups=int(os.getenv("ROTATING_LOG_MAX_BACKUPS", "0")),
            local_time=cls._parse_bool_env("ROTATING_LOG_LOCAL_TIME"),
            time_format=os.getenv("ROTATING_LOG_TIME_FORMAT", DEFAULT_TIME_FORMAT),
            backup_dir=os.getenv("ROTATING_LOG_BACKUP_DIR", ""),
            compress=cls._parse_bool_env("ROTATING_LOG_COMPRESS"),
            keep_last_decompressed=int(
                os.getenv("ROTATING_LOG_KEEP_LAST_DECOMPRESSED", "0")
            ),
            compression_level=int(
                os.getenv("ROTATING_LOG_COMPRESSION_LEVEL", str(DEFAULT_COMPRESSION_LEVEL))
            ),
        )


_default_config: Optional[RotatorConfig] = None


def get_default_config() -> RotatorConfig:
    """Get the default configuration instance"""
    global _default_config
    if _default_config is None:
        _default_config = RotatorConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RotatorConfig]) -> None:
    """Set the default configuration instance"""
    global _default_config
    _default_config = config
