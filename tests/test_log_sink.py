from __future__ import annotations

import asyncio
import errno
from datetime import datetime, timezone
from pathlib import Path

import pytest

from gopher.storage import LogSink, resume_delimiter


def test_truncate_mode_replaces_previous_content(tmp_path: Path) -> None:
    log = tmp_path / "logs" / "type.log"
    log.parent.mkdir()
    log.write_bytes(b"stale output\n")

    async def scenario() -> None:
        async with LogSink(log, append=False) as sink:
            sink.write(b"fresh ")
            sink.write(b"output\n")

    asyncio.run(scenario())

    assert log.read_bytes() == b"fresh output\n"


def test_append_mode_extends_previous_content(tmp_path: Path) -> None:
    log = tmp_path / "build.log"
    log.write_bytes(b"first run\n")

    async def scenario() -> None:
        async with LogSink(log, append=True) as sink:
            sink.write(b"second run\n")

    asyncio.run(scenario())

    assert log.read_bytes() == b"first run\nsecond run\n"


def test_concurrent_producers_are_serialized_in_arrival_order(tmp_path: Path) -> None:
    log = tmp_path / "lint.log"

    async def producer(sink: LogSink, tag: bytes) -> None:
        for index in range(5):
            sink.write(tag + str(index).encode() + b"\n")
            await asyncio.sleep(0)

    async def scenario() -> int:
        async with LogSink(log, append=False) as sink:
            await asyncio.gather(producer(sink, b"out"), producer(sink, b"err"))
        return sink.bytes_written

    written = asyncio.run(scenario())
    lines = log.read_bytes().splitlines()

    assert written == len(log.read_bytes())
    assert sorted(lines) == sorted([b"out%d" % i for i in range(5)] + [b"err%d" % i for i in range(5)])
    assert [line for line in lines if line.startswith(b"out")] == [b"out%d" % i for i in range(5)]


def test_file_is_closed_when_body_raises(tmp_path: Path) -> None:
    log = tmp_path / "test.log"
    captured: list[LogSink] = []

    async def scenario() -> None:
        async with LogSink(log, append=False) as sink:
            captured.append(sink)
            sink.write(b"partial\n")
            raise RuntimeError("stream broke")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())

    assert captured[0]._handle is None
    assert log.read_bytes() == b"partial\n"


def test_resume_delimiter_is_timestamped() -> None:
    when = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    banner = resume_delimiter(when).decode("utf-8")

    assert banner.startswith("\n\n" + "=" * 80 + "\n")
    assert "RESUMING WORKFLOW AT 2025-01-02T03:04:05+00:00" in banner
    assert banner.endswith("=" * 80 + "\n\n")


class FullDiskHandle:
    def __init__(self) -> None:
        self.attempts = 0
        self.closed = False

    def write(self, chunk: bytes) -> int:
        self.attempts += 1
        raise OSError(errno.ENOSPC, "No space left on device")

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


def test_write_failure_is_recorded_and_later_chunks_dropped(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    handle = FullDiskHandle()
    monkeypatch.setattr(Path, "open", lambda self, mode="r": handle)

    async def scenario() -> tuple[LogSink, int]:
        async with LogSink(tmp_path / "type.log", append=False) as sink:
            sink.write(b"first\n")
            await asyncio.sleep(0.01)
            sink.write(b"dropped\n")
            queued = sink._queue.qsize()
        return sink, queued

    sink, queued = asyncio.run(scenario())

    assert isinstance(sink.error, OSError)
    assert sink.error.errno == errno.ENOSPC
    assert queued == 0
    assert handle.attempts == 1
    assert handle.closed
    assert sink.bytes_written == 0
