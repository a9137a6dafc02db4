"""High-level async service wiring the tracking components together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import aiohttp

from pyloctrack.broadcast import EventBroadcaster, LocationObservable
from pyloctrack.config import TrackerConfig
from pyloctrack.controller import SubscriptionController
from pyloctrack.exceptions import LocTrackConfigError, LocTrackError
from pyloctrack.location_log import LocationLog
from pyloctrack.models.location import LocationSample
from pyloctrack.models.state import CommandResult, PresenceMode, TrackingState
from pyloctrack.notify import LoggingNotifier, Notifier
from pyloctrack.preferences import JsonPreferenceStore, PreferenceStore
from pyloctrack.presence import ForegroundPresenceManager
from pyloctrack.sources import HttpPollingSource, LocationSource, MqttLocationSource

_logger = logging.getLogger(__name__)


class LocationTrackerService:
    """Background location tracking service.

    Usage::

        async with LocationTrackerService(config) as service:
            await service.start()
            async for sample in service.location.stream():
                ...

    Collaborators default to the ones described by *config*; pass them
    explicitly to embed the service elsewhere or to test it.
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        source: LocationSource | None = None,
        preferences: PreferenceStore | None = None,
        notifier: Notifier | None = None,
        log: LocationLog | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._external_session = http_session is not None
        self._http_session = http_session
        self._preferences = preferences or JsonPreferenceStore(config.preferences_path)
        self._notifier = notifier or LoggingNotifier()
        self._log = log if log is not None else LocationLog(config.log_path)
        self._observable = LocationObservable()
        self._broadcaster = EventBroadcaster(observable=self._observable, log=self._log)
        self._closed: asyncio.Event | None = None
        self._controller: SubscriptionController | None = None
        self._presence: ForegroundPresenceManager | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LocationTrackerService:
        self._closed = asyncio.Event()
        if self._source is None:
            self._source = self._build_source()
        controller = SubscriptionController(
            source=self._source,
            preferences=self._preferences,
            broadcaster=self._broadcaster,
            polling=self._config.polling,
            on_stopped=self._on_tracking_stopped,
            on_idle=self._on_idle,
            on_shutdown=self._on_shutdown,
        )
        presence = ForegroundPresenceManager(
            notifier=self._notifier,
            tracking_state=lambda: controller.state,
            stop_action=self.notification_stop,
            title=self._config.app_name,
        )
        self._broadcaster.set_refresh_hook(presence.refresh_notification)
        self._controller = controller
        self._presence = presence

        result = await controller.resume()
        if not result.ok:
            _logger.warning("Could not resume tracking: %s", result.detail)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        controller = self._controller
        if controller is not None and controller.source_active:
            # Keep the preference so the next run resumes; just release the source.
            await controller.release_source()
        if self._presence is not None:
            self._presence.release()
        await self._log.flush()
        self._log.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _build_source(self) -> LocationSource:
        if self._config.http_url:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            return HttpPollingSource(
                self._config.http_url,
                session=self._http_session,
                token=self._config.http_token,
            )
        if self._config.mqtt is not None:
            return MqttLocationSource(self._config.mqtt)
        raise LocTrackConfigError("No location source configured (set http_url or mqtt)")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_controller(self) -> SubscriptionController:
        if self._controller is None:
            raise LocTrackError("Service not started. Use 'async with LocationTrackerService(...) as service:'")
        return self._controller

    def _require_presence(self) -> ForegroundPresenceManager:
        if self._presence is None:
            raise LocTrackError("Service not started. Use 'async with LocationTrackerService(...) as service:'")
        return self._presence

    def _on_tracking_stopped(self) -> None:
        if self._presence is not None:
            self._presence.release()

    def _on_idle(self) -> None:
        _logger.debug("Tracking stopped, service may terminate")

    def _on_shutdown(self) -> None:
        if self._closed is not None:
            self._closed.set()

    # ------------------------------------------------------------------
    # UI commands
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackingState:
        return self._require_controller().state

    @property
    def mode(self) -> PresenceMode:
        return self._require_presence().mode

    @property
    def location(self) -> LocationObservable:
        return self._observable

    @property
    def broadcaster(self) -> EventBroadcaster:
        return self._broadcaster

    async def start(self) -> CommandResult:
        return await self._require_controller().subscribe()

    async def stop(self) -> CommandResult:
        return await self._require_controller().unsubscribe()

    async def notification_stop(self) -> CommandResult:
        """Handler for the notification's stop action."""
        return await self._require_controller().on_external_stop_request()

    def observe(self, callback: Callable[[LocationSample | None], None]) -> Callable[[], None]:
        return self._observable.observe(callback)

    async def samples(self) -> AsyncIterator[LocationSample | None]:
        async for sample in self._observable.stream():
            yield sample

    # ------------------------------------------------------------------
    # UI lifecycle events
    # ------------------------------------------------------------------

    def attach(self) -> None:
        self._require_presence().on_attach()

    def detach(self) -> None:
        self._require_presence().on_detach()

    def configuration_changed(self) -> None:
        self._require_presence().on_configuration_change()

    async def wait_closed(self) -> None:
        """Wait until a stop from the notification asked the service to shut down."""
        if self._closed is None:
            raise LocTrackError("Service not started")
        await self._closed.wait()
