"""Config loading, defaults, validation and clamping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from logtee.sizes import DEFAULT_SIZE, parse_size
from logtee.utils import deep_merge, load_yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".logtee.yaml"
MAX_FILE_COUNT = 1000

DEFAULT_CONFIG: dict = {
    "prefix": "temp",
    "suffix": "log",
    "file_size": "10m",
    "file_count": 10,
    "file": None,
    "continue_read": False,
    "daemon": False,
    "ident": None,
    "flush_interval": 1.0,
    "overflow_size": 4096,
    "read_size": 128,
}


def get_config_path(start_dir: Path | None = None) -> Path | None:
    """Find .logtee.yaml by walking up from start_dir."""
    search = start_dir or Path.cwd()
    for d in [search, *search.parents]:
        candidate = d / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None, start_dir: Path | None = None) -> dict:
    """Load settings from a YAML file, merged with defaults.

    With no explicit path, the nearest ``.logtee.yaml`` above ``start_dir``
    is used if there is one.
    """
    path = config_path or get_config_path(start_dir)
    if path is None:
        return DEFAULT_CONFIG.copy()
    if not path.exists():
        logger.warning("Config file not found: %s. Using defaults.", path)
        return DEFAULT_CONFIG.copy()
    user_config = load_yaml(path)
    if not user_config:
        logger.warning(
            "Config file exists but could not be loaded (empty or corrupt?): %s "
            "Using defaults.", path
        )
    unknown = sorted(set(user_config) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    known = {k: v for k, v in user_config.items() if k in DEFAULT_CONFIG}
    return deep_merge(DEFAULT_CONFIG, known)


def validate_config(config: dict) -> list[str]:
    """Validate config, returning list of error messages (empty if valid)."""
    errors = []
    if not isinstance(config.get("prefix"), str) or not config["prefix"]:
        errors.append("'prefix' must be a non-empty string")
    if not isinstance(config.get("suffix"), str):
        errors.append("'suffix' must be a string")
    file_count = config.get("file_count")
    if isinstance(file_count, bool) or not isinstance(file_count, int):
        errors.append(f"'file_count' must be an integer, got {file_count!r}")
    for key in ("flush_interval", "overflow_size", "read_size"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            errors.append(f"'{key}' must be a positive number, got {value!r}")
    if config.get("daemon") and not config.get("ident"):
        errors.append("'ident' is required when running as a daemon")
    return errors


def clamp_file_count(count: int) -> int:
    """Clamp a retention count into [0, MAX_FILE_COUNT]."""
    clamped = min(max(count, 0), MAX_FILE_COUNT)
    if clamped != count:
        logger.warning("file_count %d out of range, using %d", count, clamped)
    return clamped


@dataclass(frozen=True)
class TeeConfig:
    prefix: str = "temp"
    suffix: str = "log"
    file_size: int = DEFAULT_SIZE
    file_count: int = 10
    file: Path | None = None
    continue_read: bool = False
    daemon: bool = False
    ident: str | None = None
    flush_interval: float = 1.0
    overflow_size: int = 4096
    read_size: int = 128

    @classmethod
    def from_dict(cls, config: dict) -> TeeConfig:
        """Build from a validated config dict, parsing sizes and clamping counts."""
        merged = deep_merge(DEFAULT_CONFIG, config)
        file = merged["file"]
        return cls(
            prefix=merged["prefix"],
            suffix=merged["suffix"],
            file_size=parse_size(str(merged["file_size"])),
            file_count=clamp_file_count(merged["file_count"]),
            file=Path(file) if file else None,
            continue_read=bool(merged["continue_read"]),
            daemon=bool(merged["daemon"]),
            ident=merged["ident"] or None,
            flush_interval=float(merged["flush_interval"]),
            overflow_size=int(merged["overflow_size"]),
            read_size=int(merged["read_size"]),
        )
