"""Tests for the consuming pipeline: flush, rotation and retention behavior."""

import queue
import shutil
from pathlib import Path

import pytest

from logtee.buffer import LineBuffer
from logtee.config import TeeConfig
from logtee.errors import OutputFileError
from logtee.pipeline import Pipeline, PipelineState, run_pipeline
from logtee.source import END_OF_STREAM, ReopenableFile
from logtee.writer import RotatingWriter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RecordingWriter(RotatingWriter):
    """RotatingWriter that remembers every append."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.writes: list[bytes] = []

    def append(self, data: bytes) -> None:
        if data:
            self.writes.append(data)
        super().append(data)


def _run(chunks: list[bytes], writer: RotatingWriter, **kwargs) -> Pipeline:
    channel: queue.Queue[bytes] = queue.Queue()
    for chunk in chunks:
        channel.put(chunk)
    channel.put(END_OF_STREAM)
    pipeline = Pipeline(channel, writer, **kwargs)
    pipeline.run()
    return pipeline


def _sequence_bytes(prefix: str) -> bytes:
    parent = Path(prefix).parent
    files = sorted(parent.glob(f"{Path(prefix).name}_*"))
    return b"".join(f.read_bytes() for f in files)


class TestLineFlushing:
    def test_partial_last_line_written_at_end(self, tmp_path: Path) -> None:
        writer = RecordingWriter(prefix=str(tmp_path / "temp"))
        _run([b"AAAA\nBBBB\nCCCC"], writer)
        assert writer.writes == [b"AAAA\nBBBB\n", b"CCCC"]
        assert (tmp_path / "temp_000.log").read_bytes() == b"AAAA\nBBBB\nCCCC"

    def test_split_chunks_reassembled(self, tmp_path: Path) -> None:
        writer = RecordingWriter(prefix=str(tmp_path / "temp"))
        _run([b"AA", b"AA\nBB", b"BB\n"], writer)
        assert writer.writes == [b"AAAA\n", b"BBBB\n"]

    def test_terminated_is_final_state(self, tmp_path: Path) -> None:
        writer = RotatingWriter(prefix=str(tmp_path / "temp"))
        pipeline = _run([b"x\n"], writer)
        assert pipeline.state is PipelineState.TERMINATED
        assert writer.closed


class TestOverflowFlushing:
    def test_long_run_without_newlines(self, tmp_path: Path) -> None:
        writer = RecordingWriter(prefix=str(tmp_path / "temp"))
        total = 5 * 1024 * 1024
        chunks = [b"x" * 128] * (total // 128)
        _run(chunks, writer)
        assert all(len(w) == 4096 for w in writer.writes)
        assert len(writer.writes) == total // 4096
        assert writer.index == 0
        assert (tmp_path / "temp_000.log").stat().st_size == total


class TestTimeoutFlush:
    def test_idle_partial_line_is_flushed(self, tmp_path: Path) -> None:
        clock = FakeClock()
        writer = RecordingWriter(prefix=str(tmp_path / "temp"), clock=clock)
        writer.start()
        pipeline = Pipeline(queue.Queue(), writer)
        pipeline.on_chunk(b"partial")
        assert writer.writes == []

        clock.now = 1.5
        pipeline.on_timeout()
        assert writer.writes == [b"partial"]
        assert len(pipeline.buffer) == 0
        writer.finalize()

    def test_recent_flush_defers_timeout_flush(self, tmp_path: Path) -> None:
        clock = FakeClock()
        writer = RecordingWriter(prefix=str(tmp_path / "temp"), clock=clock)
        writer.start()
        pipeline = Pipeline(queue.Queue(), writer)
        clock.now = 10.0
        pipeline.on_chunk(b"done\npart")
        clock.now = 10.5
        pipeline.on_timeout()
        assert writer.writes == [b"done\n"]
        writer.finalize()

    def test_empty_buffer_timeout_is_noop(self, tmp_path: Path) -> None:
        clock = FakeClock()
        writer = RecordingWriter(prefix=str(tmp_path / "temp"), clock=clock)
        writer.start()
        pipeline = Pipeline(queue.Queue(), writer)
        clock.now = 50.0
        pipeline.on_timeout()
        assert writer.writes == []
        assert pipeline.state is PipelineState.AWAITING_INPUT
        writer.finalize()

    def test_step_times_out_on_empty_channel(self, tmp_path: Path) -> None:
        clock = FakeClock()
        writer = RecordingWriter(prefix=str(tmp_path / "temp"), clock=clock)
        writer.start()
        pipeline = Pipeline(queue.Queue(), writer, flush_interval=0.01)
        pipeline.on_chunk(b"slow")
        clock.now = 1.0
        pipeline.step()
        assert writer.writes == [b"slow"]
        writer.finalize()


class TestRotationAndRetention:
    def test_no_bytes_lost_across_files(self, tmp_path: Path) -> None:
        prefix = str(tmp_path / "temp")
        writer = RotatingWriter(prefix=prefix, file_size=100, file_count=1000)
        data = b"".join(f"line {i:04d}\n".encode() for i in range(500))
        chunks = [data[i : i + 128] for i in range(0, len(data), 128)]
        _run(chunks, writer)
        assert writer.index > 0
        assert _sequence_bytes(prefix) == data

    def test_files_end_on_line_boundaries(self, tmp_path: Path) -> None:
        prefix = str(tmp_path / "temp")
        writer = RotatingWriter(prefix=prefix, file_size=100, file_count=1000)
        data = b"".join(f"entry {i}\n".encode() for i in range(300))
        _run([data[i : i + 128] for i in range(0, len(data), 128)], writer)
        for path in sorted(tmp_path.glob("temp_*")):
            content = path.read_bytes()
            if content:
                assert content.endswith(b"\n")

    def test_size_overshoot_bounded_by_one_write(self, tmp_path: Path) -> None:
        prefix = str(tmp_path / "temp")
        writer = RotatingWriter(prefix=prefix, file_size=1000, file_count=1000)
        data = b"y" * 20_000
        _run([data[i : i + 128] for i in range(0, len(data), 128)], writer, buffer=LineBuffer(256))
        for path in tmp_path.glob("temp_*"):
            assert path.stat().st_size < 1000 + 256 + 128

    def test_retained_file_count_bounded(self, tmp_path: Path) -> None:
        prefix = str(tmp_path / "temp")
        writer = RotatingWriter(prefix=prefix, file_size=50, file_count=3)
        data = b"".join(f"{i:08d}\n".encode() for i in range(1000))
        _run([data[i : i + 128] for i in range(0, len(data), 128)], writer)
        names = sorted(p.name for p in tmp_path.glob("temp_*"))
        assert len(names) <= 4
        assert names[-1] == f"temp_{writer.index:03d}.log"


    def test_rotated_file_failure_stops_pipeline(self, tmp_path: Path) -> None:
        out = tmp_path / "out"
        out.mkdir()
        writer = RotatingWriter(prefix=str(out / "temp"), file_size=4)
        writer.start()
        shutil.rmtree(out)
        channel: queue.Queue[bytes] = queue.Queue()
        channel.put(b"abcd\n")
        channel.put(END_OF_STREAM)
        with pytest.raises(OutputFileError):
            Pipeline(channel, writer).run()
        assert writer.index == 1


class TestRunPipeline:
    def test_file_source_end_to_end(self, tmp_path: Path) -> None:
        source = tmp_path / "input.txt"
        data = b"".join(f"row {i}\n".encode() for i in range(2000))
        source.write_bytes(data)
        prefix = str(tmp_path / "out" / "cap")
        (tmp_path / "out").mkdir()
        config = TeeConfig(prefix=prefix, file_size=4096, file_count=1000, file=source)
        pipeline = run_pipeline(config)
        assert pipeline.state is PipelineState.TERMINATED
        assert _sequence_bytes(prefix) == data

    def test_explicit_source(self, tmp_path: Path) -> None:
        source = tmp_path / "input.txt"
        source.write_bytes(b"one\ntwo")
        config = TeeConfig(prefix=str(tmp_path / "cap"))
        run_pipeline(config, source=ReopenableFile(source))
        assert (tmp_path / "cap_000.log").read_bytes() == b"one\ntwo"
