from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pyloctrack.exceptions import StorageUnavailableError
from pyloctrack.models.location import LocationSample
from pyloctrack.models.notification import NotificationPayload
from pyloctrack.models.polling import PollingConfig
from pyloctrack.sources._base import LocationCallback


class FakeSource:
    """In-memory location source recording start/stop requests."""

    def __init__(
        self,
        *,
        start_error: Exception | None = None,
        stop_error: Exception | None = None,
    ) -> None:
        self.start_error = start_error
        self.stop_error = stop_error
        self.start_calls = 0
        self.stop_calls = 0
        self.config: PollingConfig | None = None
        self.callback: LocationCallback | None = None

    @property
    def active(self) -> bool:
        return self.callback is not None

    async def start_updates(self, config: PollingConfig, callback: LocationCallback) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self.config = config
        self.callback = callback

    async def stop_updates(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        self.callback = None

    def emit(self, sample: LocationSample | None) -> None:
        assert self.callback is not None
        self.callback(sample)


class RecordingNotifier:
    def __init__(self) -> None:
        self.shown: list[NotificationPayload] = []
        self.cleared = 0

    @property
    def current(self) -> NotificationPayload | None:
        return self.shown[-1] if self.shown else None

    def show_persistent(self, payload: NotificationPayload) -> None:
        self.shown.append(payload)

    def clear(self) -> None:
        self.cleared += 1


class BrokenPreferences:
    """Reads fine, every write fails."""

    def __init__(self, value: bool = False) -> None:
        self.value = value

    def get(self) -> bool:
        return self.value

    def set(self, enabled: bool) -> None:
        raise StorageUnavailableError("disk full", path="/nowhere")


def sample_at(lat: float, lon: float, minute: int = 0) -> LocationSample:
    return LocationSample(latitude=lat, longitude=lon, timestamp=datetime(2026, 1, 1, 0, minute, tzinfo=UTC))


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
