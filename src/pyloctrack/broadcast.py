"""Fan-out of location samples to in-process consumers.

Three consumers are always wired: the UI-facing :class:`LocationObservable`,
the durable :class:`~pyloctrack.location_log.LocationLog` and the presence
manager's notification refresh hook.  Each runs in isolation; a failing
consumer is logged and skipped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from pyloctrack.location_log import LocationLog
from pyloctrack.models.location import LocationSample

_logger = logging.getLogger(__name__)

SampleCallback = Callable[[LocationSample | None], None]


class LocationObservable:
    """Latest-value holder with observer registration.

    Observers registered after a value was set receive it immediately,
    so a UI attaching late still shows the last known location.
    """

    def __init__(self) -> None:
        self._value: LocationSample | None = None
        self._has_value = False
        self._observers: list[SampleCallback] = []

    @property
    def value(self) -> LocationSample | None:
        return self._value

    @property
    def has_value(self) -> bool:
        return self._has_value

    def set(self, sample: LocationSample | None) -> None:
        self._value = sample
        self._has_value = True
        for observer in list(self._observers):
            try:
                observer(sample)
            except Exception:
                _logger.warning("Location observer %r failed", observer, exc_info=True)

    def observe(self, callback: SampleCallback, *, replay: bool = True) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._observers.append(callback)
        if replay and self._has_value:
            try:
                callback(self._value)
            except Exception:
                _logger.warning("Location observer %r failed on replay", callback, exc_info=True)

        def _remove() -> None:
            try:
                self._observers.remove(callback)
            except ValueError:
                pass

        return _remove

    async def stream(self) -> AsyncIterator[LocationSample | None]:
        """Yield every value set from now on (and the current one, if any)."""
        queue: asyncio.Queue[LocationSample | None] = asyncio.Queue()
        remove = self.observe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            remove()


class EventBroadcaster:
    """Deliver each sample to the UI, the durable log and the presence hook."""

    def __init__(
        self,
        *,
        observable: LocationObservable,
        log: LocationLog | None = None,
        on_refresh: SampleCallback | None = None,
    ) -> None:
        self._observable = observable
        self._log = log
        self._on_refresh = on_refresh
        self._extra: list[tuple[str, SampleCallback]] = []

    @property
    def observable(self) -> LocationObservable:
        return self._observable

    def set_refresh_hook(self, hook: SampleCallback | None) -> None:
        self._on_refresh = hook

    def add_consumer(self, name: str, callback: SampleCallback) -> Callable[[], None]:
        """Register an additional consumer, delivered after the built-in ones."""
        entry = (name, callback)
        self._extra.append(entry)

        def _remove() -> None:
            if entry in self._extra:
                self._extra.remove(entry)

        return _remove

    def _write_log(self, sample: LocationSample | None) -> None:
        assert self._log is not None  # noqa: S101
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (synchronous embedding): write inline.
            self._log.append(sample)
            return
        self._log.submit(sample)

    def _consumers(self) -> list[tuple[str, SampleCallback]]:
        consumers: list[tuple[str, SampleCallback]] = [("observable", self._observable.set)]
        if self._log is not None:
            consumers.append(("log", self._write_log))
        if self._on_refresh is not None:
            consumers.append(("presence", self._on_refresh))
        consumers.extend(self._extra)
        return consumers

    def publish(self, sample: LocationSample | None) -> list[str]:
        """Deliver *sample* to every consumer.

        Returns the names of consumers that failed; an empty list means
        full delivery.
        """
        failed: list[str] = []
        for name, consumer in self._consumers():
            try:
                consumer(sample)
            except Exception:
                _logger.warning("Consumer %s failed to handle location sample", name, exc_info=True)
                failed.append(name)
        return failed
