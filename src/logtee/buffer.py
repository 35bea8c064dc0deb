"""Line-aware accumulation of incoming chunks."""

from __future__ import annotations

OVERFLOW_SIZE = 4096
NEWLINE = b"\n"


class LineBuffer:
    """Hold received bytes until they can be written on a line boundary.

    ``feed`` returns the bytes that are safe to write now. When the buffer
    holds a newline, everything through the last newline is released and
    the partial line after it is kept. When it reaches ``overflow_size``
    without any newline the whole buffer is released, so a single line
    longer than the threshold may be split across writes.
    """

    def __init__(self, overflow_size: int = OVERFLOW_SIZE) -> None:
        self.overflow_size = overflow_size
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    def feed(self, chunk: bytes) -> bytes:
        self._data.extend(chunk)
        if len(self._data) < self.overflow_size and NEWLINE not in chunk:
            return b""

        last = self._data.rfind(NEWLINE)
        if last < 0:
            return self.drain()
        emitted = bytes(self._data[: last + 1])
        del self._data[: last + 1]
        return emitted

    def drain(self) -> bytes:
        """Release everything held, regardless of line boundaries."""
        emitted = bytes(self._data)
        self._data.clear()
        return emitted
