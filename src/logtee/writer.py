"""Size-bounded rotating output file."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import BinaryIO, Callable

from logtee.errors import OutputFileError
from logtee.naming import evict_expired, log_file_name

logger = logging.getLogger(__name__)

DEFAULT_FILE_SIZE = 10 * 1024 * 1024


class RotatingWriter:
    """Own one open log file and rotate to the next index when it fills up.

    Writes are best-effort: an ``OSError`` while writing or flushing is
    logged and the pipeline keeps going. Failing to *create* a file is
    fatal and raises :class:`OutputFileError`.
    """

    def __init__(
        self,
        prefix: str = "temp",
        suffix: str = "log",
        file_size: int = DEFAULT_FILE_SIZE,
        file_count: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.prefix = prefix
        self.suffix = suffix
        self.file_size = file_size
        self.file_count = file_count
        self.index = 0
        self.written = 0
        self._clock = clock
        self.last_flush = clock()
        self._file: BinaryIO | None = None
        self.path: Path | None = None

    @property
    def closed(self) -> bool:
        return self._file is None

    def start(self) -> Path:
        """Open the first file of the sequence (index 0)."""
        return self.open(Path(log_file_name(self.prefix, self.suffix, self.index)))

    def open(self, path: Path) -> Path:
        """Create (truncate) ``path`` and make it the current file."""
        try:
            handle = open(path, "wb")
        except OSError as exc:
            raise OutputFileError(str(path), exc.strerror or str(exc)) from exc
        self._file = handle
        self.path = path
        self.written = 0
        logger.info("new file: %s", path)
        return path

    def append(self, data: bytes) -> None:
        """Write ``data`` to the current file and flush it."""
        if not data:
            return
        if self._file is None:
            logger.warning("Dropped %d bytes: no log file is open", len(data))
            return
        try:
            self._file.write(data)
        except OSError as exc:
            logger.warning("Write to %s failed: %s", self.path, exc)
        self.written += len(data)
        self._flush()
        self.last_flush = self._clock()

    def idle_time(self) -> float:
        """Seconds since data was last written to the current sequence."""
        return self._clock() - self.last_flush

    def should_rotate(self) -> bool:
        return self.written >= self.file_size

    def rotate(self) -> Path:
        """Close the current file, evict the expired one, open the next index."""
        self._close()
        self.index += 1
        # 0 would name the file about to be created; keep the current one only.
        evict_expired(self.prefix, self.suffix, max(self.file_count, 1), self.index)
        return self.open(Path(log_file_name(self.prefix, self.suffix, self.index)))

    def finalize(self, remainder: bytes = b"") -> None:
        """Write what is left, then flush and close. Called once at end of stream."""
        self.append(remainder)
        self._close()

    def _flush(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        except OSError as exc:
            logger.warning("Flush of %s failed: %s", self.path, exc)

    def _close(self) -> None:
        if self._file is None:
            return
        self._flush()
        try:
            self._file.close()
        except OSError as exc:
            logger.warning("Close of %s failed: %s", self.path, exc)
        self._file = None
