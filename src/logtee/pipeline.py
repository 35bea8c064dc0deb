"""Consumer side: buffer chunks, write them out, rotate files."""

from __future__ import annotations

import logging
import queue
from enum import Enum

from logtee.buffer import LineBuffer
from logtee.config import TeeConfig
from logtee.source import END_OF_STREAM, Ingestor, InputSource, ReopenableFile, StandardInput
from logtee.writer import RotatingWriter

logger = logging.getLogger(__name__)

FLUSH_INTERVAL = 1.0


class PipelineState(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    DRAINING = "draining"
    TERMINATED = "terminated"


class Pipeline:
    """Single consumer that owns the line buffer and the rotating writer.

    Waits up to ``flush_interval`` seconds for each chunk. The wait doubles
    as the flush clock: if nothing arrives and the buffer has sat unflushed
    for ``flush_interval``, the partial line is written out anyway.
    """

    def __init__(
        self,
        channel: queue.Queue[bytes],
        writer: RotatingWriter,
        buffer: LineBuffer | None = None,
        flush_interval: float = FLUSH_INTERVAL,
    ) -> None:
        self.channel = channel
        self.writer = writer
        self.buffer = buffer if buffer is not None else LineBuffer()
        self.flush_interval = flush_interval
        self.state = PipelineState.AWAITING_INPUT

    def run(self) -> None:
        """Consume chunks until the end-of-stream sentinel has been handled."""
        if self.writer.closed:
            self.writer.start()
        while self.state is not PipelineState.TERMINATED:
            self.step()

    def step(self) -> None:
        """Wait for one chunk (or a timeout) and process it."""
        try:
            chunk = self.channel.get(timeout=self.flush_interval)
        except queue.Empty:
            self.on_timeout()
            return
        if chunk == END_OF_STREAM:
            self.on_end_of_stream()
        else:
            self.on_chunk(chunk)

    def on_chunk(self, chunk: bytes) -> None:
        self.state = PipelineState.DRAINING
        self._write(self.buffer.feed(chunk))
        self.state = PipelineState.AWAITING_INPUT

    def on_timeout(self) -> None:
        if not self.buffer:
            return
        if self.writer.idle_time() < self.flush_interval:
            return
        self.state = PipelineState.DRAINING
        logger.debug("Idle for %.1fs, flushing %d buffered bytes", self.flush_interval, len(self.buffer))
        self._write(self.buffer.drain())
        self.state = PipelineState.AWAITING_INPUT

    def on_end_of_stream(self) -> None:
        self.writer.finalize(self.buffer.drain())
        self.state = PipelineState.TERMINATED
        logger.debug("End of stream, %d file(s) written", self.writer.index + 1)

    def _write(self, data: bytes) -> None:
        if not data:
            return
        self.writer.append(data)
        if self.writer.should_rotate():
            self.writer.rotate()


def open_writer(config: TeeConfig) -> RotatingWriter:
    """Create the writer for ``config`` and its first output file.

    Raises :class:`OutputFileError` when the destination is not writable.
    """
    writer = RotatingWriter(config.prefix, config.suffix, config.file_size, config.file_count)
    writer.start()
    return writer


def run_pipeline(
    config: TeeConfig,
    source: InputSource | None = None,
    writer: RotatingWriter | None = None,
) -> Pipeline:
    """Wire producer and consumer for ``config`` and run until end of stream.

    The first output file is created before any input is read, so an
    unwritable destination fails fast. Pass an already opened ``writer``
    to create it earlier still, e.g. before detaching as a daemon.
    """
    channel: queue.Queue[bytes] = queue.Queue()
    if writer is None:
        writer = open_writer(config)

    if source is None:
        source = ReopenableFile(config.file) if config.file else StandardInput()
    Ingestor(source, channel, config.continue_read, config.read_size).start()

    pipeline = Pipeline(channel, writer, LineBuffer(config.overflow_size), config.flush_interval)
    pipeline.run()
    return pipeline
