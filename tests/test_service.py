from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from pyloctrack.config import TrackerConfig
from pyloctrack.exceptions import LocationUnauthorizedError, LocTrackConfigError
from pyloctrack.models.state import CommandStatus, PresenceMode, TrackingState
from pyloctrack.preferences import JsonPreferenceStore
from pyloctrack.service import LocationTrackerService

from .conftest import FakeSource, RecordingNotifier, sample_at


def _config(tmp_path: Path) -> TrackerConfig:
    return TrackerConfig(data_dir=tmp_path, app_name="Tracker")


@pytest.mark.asyncio
async def test_sample_then_detach_shows_notification_and_logs(
    tmp_path: Path,
    fake_source: FakeSource,
    notifier: RecordingNotifier,
) -> None:
    config = _config(tmp_path)
    async with LocationTrackerService(config, source=fake_source, notifier=notifier) as service:
        service.attach()
        result = await service.start()
        assert result.status is CommandStatus.OK

        sample = sample_at(45.0, -93.0)
        fake_source.emit(sample)
        service.detach()

        assert service.mode is PresenceMode.FOREGROUND
        assert notifier.current is not None
        assert notifier.current.body == "(45.0, -93.0)"
        assert notifier.current.title == "Tracker"
        assert service.location.value == sample

    lines = config.log_path.read_text(encoding="utf-8").splitlines()
    assert lines == [f"{sample.timestamp.isoformat()} (45.0, -93.0)"]


@pytest.mark.asyncio
async def test_denied_start_reports_unauthorized_and_never_promotes(
    tmp_path: Path,
    notifier: RecordingNotifier,
) -> None:
    config = _config(tmp_path)
    source = FakeSource(start_error=LocationUnauthorizedError("no permission"))
    async with LocationTrackerService(config, source=source, notifier=notifier) as service:
        result = await service.start()
        service.detach()

        assert result.status is CommandStatus.UNAUTHORIZED
        assert service.state is TrackingState.STOPPED
        assert service.mode is PresenceMode.BACKGROUND
        assert notifier.shown == []

    assert not config.log_path.exists()


@pytest.mark.asyncio
async def test_configuration_change_then_detach_does_not_promote(
    tmp_path: Path,
    fake_source: FakeSource,
    notifier: RecordingNotifier,
) -> None:
    async with LocationTrackerService(_config(tmp_path), source=fake_source, notifier=notifier) as service:
        await service.start()
        service.configuration_changed()
        service.detach()

        assert service.mode is PresenceMode.BACKGROUND
        assert notifier.shown == []


@pytest.mark.asyncio
async def test_samples_logged_without_ui_attached(
    tmp_path: Path,
    fake_source: FakeSource,
    notifier: RecordingNotifier,
) -> None:
    config = _config(tmp_path)
    async with LocationTrackerService(config, source=fake_source, notifier=notifier) as service:
        await service.start()
        service.detach()
        fake_source.emit(sample_at(1.0, 2.0))
        fake_source.emit(None)
        service.attach()
        fake_source.emit(sample_at(3.0, 4.0, minute=1))

        assert [p.body for p in notifier.shown] == ["No Location", "(1.0, 2.0)", "No Location"]
        assert notifier.cleared == 1

    lines = config.log_path.read_text(encoding="utf-8").splitlines()
    assert [line.split(" ", 1)[1] for line in lines] == ["(1.0, 2.0)", "Unknown location", "(3.0, 4.0)"]


@pytest.mark.asyncio
async def test_notification_stop_action_stops_and_closes(
    tmp_path: Path,
    fake_source: FakeSource,
    notifier: RecordingNotifier,
) -> None:
    config = _config(tmp_path)
    async with LocationTrackerService(config, source=fake_source, notifier=notifier) as service:
        await service.start()
        service.detach()
        assert notifier.current is not None

        result = await notifier.current.dismiss_action()
        await asyncio.wait_for(service.wait_closed(), 1.0)

        assert result.status is CommandStatus.OK
        assert service.state is TrackingState.STOPPED
        assert service.mode is PresenceMode.BACKGROUND
        assert notifier.cleared == 1

    assert JsonPreferenceStore(config.preferences_path).get() is False


@pytest.mark.asyncio
async def test_restart_resumes_tracking(tmp_path: Path, notifier: RecordingNotifier) -> None:
    config = _config(tmp_path)
    first = FakeSource()
    async with LocationTrackerService(config, source=first, notifier=notifier) as service:
        await service.start()
    # Leaving the context releases the source but keeps the preference.
    assert first.stop_calls == 1

    second = FakeSource()
    async with LocationTrackerService(config, source=second, notifier=notifier) as service:
        assert service.state is TrackingState.SUBSCRIBED
        assert second.start_calls == 1
        await service.stop()

    assert JsonPreferenceStore(config.preferences_path).get() is False


@pytest.mark.asyncio
async def test_missing_source_configuration(tmp_path: Path) -> None:
    with pytest.raises(LocTrackConfigError):
        async with LocationTrackerService(_config(tmp_path)):
            pass
