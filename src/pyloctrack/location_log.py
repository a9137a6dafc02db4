"""Append-only text log of delivered location samples."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from pyloctrack.exceptions import StorageUnavailableError
from pyloctrack.models.location import LocationSample, location_text

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def format_log_line(sample: LocationSample | None, now: datetime) -> str:
    """``<timestamp> (<lat>, <lon>)`` or ``<timestamp> Unknown location``.

    The sample's own timestamp is used when there is one; *now* otherwise.
    """
    timestamp = sample.timestamp if sample is not None else now
    return f"{timestamp.isoformat()} {location_text(sample)}"


class LocationLog:
    """One line per sample, appended to a text file.

    :meth:`append` writes inline.  :meth:`submit` hands the write to a
    single writer thread so the event loop never waits on the disk; lines
    keep their submission order.
    """

    def __init__(self, path: Path, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._path = Path(path)
        self._clock = clock
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[asyncio.Future[None]] = set()

    @property
    def path(self) -> Path:
        return self._path

    def _write_line(self, line: str) -> None:
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError as exc:
                raise StorageUnavailableError(
                    f"Could not append to location log: {exc}",
                    path=str(self._path),
                ) from exc
        _logger.debug("Logged %s", line)

    def append(self, sample: LocationSample | None) -> None:
        """Append *sample* to the log.

        Raises
        ------
        StorageUnavailableError
            If the file cannot be opened or written.
        """
        self._write_line(format_log_line(sample, self._clock()))

    def submit(self, sample: LocationSample | None) -> asyncio.Future[None]:
        """Queue *sample* on the writer thread; must be called from the event loop.

        Write failures are logged when the write completes.
        """
        line = format_log_line(sample, self._clock())
        loop = asyncio.get_running_loop()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyloctrack-log")
        future = loop.run_in_executor(self._executor, self._write_line, line)
        self._pending.add(future)
        future.add_done_callback(self._on_written)
        return future

    def _on_written(self, future: asyncio.Future[None]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _logger.warning("Location log write failed: %s", exc)

    async def flush(self) -> None:
        """Wait for every submitted write to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        executor = self._executor
        self._executor = None
        if executor is not None:
            executor.shutdown(wait=True)

    def read_lines(self) -> list[str]:
        """Lines written so far (empty when the log does not exist yet)."""
        with self._lock:
            try:
                return self._path.read_text(encoding="utf-8").splitlines()
            except FileNotFoundError:
                return []
