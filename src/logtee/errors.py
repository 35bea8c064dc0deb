"""Exception types for unrecoverable logtee failures."""

from __future__ import annotations


class LogteeError(Exception):
    """Base class for errors that stop the tool."""


class OutputFileError(LogteeError):
    """An output log file could not be created."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Create file failed: {path} ({reason})")


class ConfigError(LogteeError):
    """Configuration is invalid or incomplete."""
