"""Input sources and the ingestion loop that feeds the pipeline."""

from __future__ import annotations

import logging
import os
import queue
import stat
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Union

logger = logging.getLogger(__name__)

READ_SIZE = 128
END_OF_STREAM = b""
READ_RETRY_DELAY = 0.1


@dataclass(frozen=True)
class StandardInput:
    """Read from the process's standard input. Never reopened."""

    reopenable = False

    def open(self) -> BinaryIO:
        return sys.stdin.buffer

    def __str__(self) -> str:
        return "<stdin>"


@dataclass(frozen=True)
class ReopenableFile:
    """Read from a file path that can be opened again at end of file."""

    path: Path

    reopenable = True

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def __str__(self) -> str:
        return str(self.path)


InputSource = Union[StandardInput, ReopenableFile]


def read_chunk(stream: BinaryIO, size: int) -> bytes:
    """Return up to ``size`` bytes, without waiting to fill the whole chunk."""
    read1 = getattr(stream, "read1", None)
    if read1 is not None:
        return read1(size)
    return stream.read(size)


class Ingestor:
    """Producer side of the pipeline.

    Reads fixed-size chunks from ``source`` and puts them on ``channel`` in
    read order. At end of input the source is reopened when
    ``continue_read`` is set and the source supports it; otherwise the
    end-of-stream sentinel is sent exactly once.

    Reopening a regular file resumes at the previous offset if it is still
    the same file and has not shrunk. A replaced or truncated file (one
    rotated by another program) is read from the start.
    """

    def __init__(
        self,
        source: InputSource,
        channel: queue.Queue[bytes],
        continue_read: bool = False,
        read_size: int = READ_SIZE,
        reopen_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self.channel = channel
        self.continue_read = continue_read and source.reopenable
        self.read_size = read_size
        self.reopen_delay = reopen_delay
        self._sleep = sleep

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread and return the thread."""
        thread = threading.Thread(target=self.run, name="logtee-ingest", daemon=True)
        thread.start()
        return thread

    def run(self) -> None:
        stream = self._open_initial()
        while stream is not None:
            try:
                chunk = read_chunk(stream, self.read_size)
            except OSError as exc:
                logger.warning("Read from %s failed: %s", self.source, exc)
                self._sleep(READ_RETRY_DELAY)
                continue
            if chunk:
                self.channel.put(bytes(chunk))
                continue
            stream = self._reopen(stream)
        self.channel.put(END_OF_STREAM)

    def _open_initial(self) -> BinaryIO | None:
        try:
            return self.source.open()
        except OSError as exc:
            if not self.continue_read:
                logger.error("Cannot open %s: %s", self.source, exc)
                return None
            logger.warning("Cannot open %s: %s", self.source, exc)
        return self._open_retrying()

    def _open_retrying(self) -> BinaryIO:
        while True:
            self._sleep(self.reopen_delay)
            try:
                return self.source.open()
            except OSError as exc:
                logger.warning("Cannot reopen %s: %s", self.source, exc)

    def _reopen(self, stream: BinaryIO) -> BinaryIO | None:
        """Handle end of input: return the next stream, or None to stop."""
        if not self.continue_read:
            if self.source.reopenable:
                stream.close()
            return None

        identity, offset = _position(stream)
        stream.close()
        stream = self._open_retrying()

        if identity is None:
            return stream
        new_identity, _ = _position(stream)
        if new_identity != identity:
            logger.info("Source %s was replaced, reading from the start", self.source)
            return stream
        try:
            size = os.fstat(stream.fileno()).st_size
            if size < offset:
                logger.info("Source %s was truncated, reading from the start", self.source)
            else:
                stream.seek(offset)
        except OSError as exc:
            logger.warning("Could not resume %s at offset %d: %s", self.source, offset, exc)
        return stream


def _position(stream: BinaryIO) -> tuple[tuple[int, int] | None, int]:
    """Return ((device, inode), offset) for a regular file, else (None, 0)."""
    try:
        st = os.fstat(stream.fileno())
        if not stat.S_ISREG(st.st_mode):
            return None, 0
        return (st.st_dev, st.st_ino), stream.tell()
    except OSError:
        return None, 0
