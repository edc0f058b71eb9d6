"""Single-writer sink that captures a session's combined output."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

RESUME_RULE = "=" * 80


def resume_delimiter(now: datetime | None = None) -> bytes:
    """Banner written before the output of a resumed session."""

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return f"\n\n{RESUME_RULE}\nRESUMING WORKFLOW AT {timestamp}\n{RESUME_RULE}\n\n".encode("utf-8")


class LogSink:
    """Append or truncate a log file and serialize writes from several producers.

    Producers call :meth:`write` from any task; a single writer task owns the file
    handle and writes chunks in the order they were queued. If the file stops
    accepting writes, the failure is kept in :attr:`error` and later chunks are
    dropped.
    """

    def __init__(self, path: Path, *, append: bool) -> None:
        self._path = Path(path)
        self._append = append
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._handle: BinaryIO | None = None
        self._writer: asyncio.Task[None] | None = None
        self.bytes_written = 0
        self.error: OSError | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def __aenter__(self) -> "LogSink":
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("ab" if self._append else "wb")
        self._writer = asyncio.create_task(self._drain(self._handle))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._writer is not None and not self._writer.done():
                self._queue.put_nowait(None)
                await self._writer
        finally:
            if self._handle is not None:
                handle, self._handle = self._handle, None
                try:
                    handle.close()
                except OSError as close_exc:
                    self._record_failure(close_exc)

    def write(self, chunk: bytes) -> None:
        if chunk and self.error is None:
            self._queue.put_nowait(chunk)

    async def _drain(self, handle: BinaryIO) -> None:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                break
            try:
                handle.write(chunk)
                handle.flush()
            except OSError as exc:
                self._record_failure(exc)
                break
            self.bytes_written += len(chunk)
        if self.error is not None:
            while not self._queue.empty():
                self._queue.get_nowait()

    def _record_failure(self, exc: OSError) -> None:
        if self.error is None:
            self.error = exc
            logger.error("Log file write failed", extra={"path": str(self._path), "error": str(exc)})


__all__ = ["LogSink", "RESUME_RULE", "resume_delimiter"]
