"""Subscription lifecycle controller.

The controller is the single source of truth for whether location updates
are being received.  Every transition goes through :meth:`subscribe` or
:meth:`unsubscribe`; both are serialized so a stop issued while a start is
in flight runs after it and wins.

Collaborator failures never escape: they are turned into
:class:`~pyloctrack.models.state.CommandResult` values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pyloctrack.broadcast import EventBroadcaster
from pyloctrack.exceptions import LocationUnauthorizedError, StorageUnavailableError
from pyloctrack.models.location import LocationSample
from pyloctrack.models.polling import PollingConfig
from pyloctrack.models.state import CommandResult, CommandStatus, TrackingState
from pyloctrack.preferences import PreferenceStore
from pyloctrack.sources._base import LocationSource

_logger = logging.getLogger(__name__)


class SubscriptionController:
    """Turns start/stop commands into location source requests.

    ``state`` is the persisted intent.  After a restart, or after a
    transient failure while resuming, it can be ``SUBSCRIBED`` while the
    source is not running yet (``source_active`` is ``False``); the next
    :meth:`subscribe` or :meth:`resume` retries the start request.
    """

    def __init__(
        self,
        *,
        source: LocationSource,
        preferences: PreferenceStore,
        broadcaster: EventBroadcaster,
        polling: PollingConfig | None = None,
        on_stopped: Callable[[], None] | None = None,
        on_idle: Callable[[], None] | None = None,
        on_shutdown: Callable[[], None] | None = None,
    ) -> None:
        self._source = source
        self._preferences = preferences
        self._broadcaster = broadcaster
        self._polling = polling or PollingConfig()
        self._on_stopped = on_stopped
        self._on_idle = on_idle
        self._on_shutdown = on_shutdown
        self._lock = asyncio.Lock()
        self._source_active = False
        self._state = TrackingState.SUBSCRIBED if self._read_preference() else TrackingState.STOPPED

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def polling(self) -> PollingConfig:
        return self._polling

    @property
    def source_active(self) -> bool:
        return self._source_active

    # ------------------------------------------------------------------
    # Preference helpers
    # ------------------------------------------------------------------

    def _read_preference(self) -> bool:
        try:
            return self._preferences.get()
        except StorageUnavailableError:
            _logger.warning("Tracking preference unreadable, assuming stopped", exc_info=True)
            return False

    async def _persist(self, enabled: bool) -> str | None:
        """Write the tracking flag off the event loop; returns a warning instead of raising."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._preferences.set, enabled)
        except StorageUnavailableError as exc:
            _logger.warning("Could not persist tracking preference=%s: %s", enabled, exc)
            return f"preference not saved: {exc}"
        return None

    @staticmethod
    def _join(*parts: str | None) -> str | None:
        text = "; ".join(part for part in parts if part)
        return text or None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _start_source(self, *, keep_on_failure: bool) -> CommandResult:
        """Request updates; caller holds the lock and the flag is already ``True``.

        Denied authorization always rolls tracking back to ``STOPPED``.
        Other failures do too, unless *keep_on_failure* is set: then the
        persisted intent stays ``SUBSCRIBED`` for a later retry.
        """
        self._source_active = True
        try:
            await self._source.start_updates(self._polling, self.on_sample)
        except LocationUnauthorizedError as exc:
            self._source_active = False
            self._state = TrackingState.STOPPED
            warning = await self._persist(False)
            _logger.warning("Location updates denied: %s", exc)
            return CommandResult(
                status=CommandStatus.UNAUTHORIZED,
                state=self._state,
                detail=self._join(str(exc), warning),
            )
        except Exception as exc:
            self._source_active = False
            _logger.warning("Location updates could not be started: %r", exc, exc_info=True)
            storage_warning: str | None = None
            if keep_on_failure:
                self._state = TrackingState.SUBSCRIBED
            else:
                self._state = TrackingState.STOPPED
                storage_warning = await self._persist(False)
            return CommandResult(
                status=CommandStatus.TRANSIENT_FAILURE,
                state=self._state,
                detail=self._join(str(exc) or type(exc).__name__, storage_warning),
            )
        self._state = TrackingState.SUBSCRIBED
        _logger.debug("Subscribed to location updates interval=%s", self._polling.interval)
        return CommandResult(status=CommandStatus.OK, state=self._state)

    async def subscribe(self) -> CommandResult:
        """Start receiving location updates (no-op when already receiving them)."""
        async with self._lock:
            if self._source_active:
                return CommandResult(status=CommandStatus.NOOP, state=self._state)
            if self._state == TrackingState.SUBSCRIBED:
                # Tracking is enabled but the source never came up; retry.
                return await self._start_source(keep_on_failure=True)
            warning = await self._persist(True)
            result = await self._start_source(keep_on_failure=False)
            if warning and result.status == CommandStatus.OK:
                return result.model_copy(update={"detail": warning})
            return result

    async def resume(self) -> CommandResult:
        """Re-request updates after a restart when tracking was left enabled.

        Only denied authorization disables tracking; a transient failure
        keeps the persisted flag so the next start retries.
        """
        async with self._lock:
            if self._state != TrackingState.SUBSCRIBED or self._source_active:
                return CommandResult(status=CommandStatus.NOOP, state=self._state)
            _logger.debug("Resuming location updates after restart")
            return await self._start_source(keep_on_failure=True)

    async def unsubscribe(self) -> CommandResult:
        """Stop receiving location updates (no-op when already stopped)."""
        async with self._lock:
            if self._state == TrackingState.STOPPED:
                return CommandResult(status=CommandStatus.NOOP, state=self._state)
            if self._source_active:
                try:
                    await self._source.stop_updates()
                except Exception as exc:
                    # Keep tracking rather than lose the ability to stop it later.
                    _logger.warning("Location updates could not be stopped: %r", exc, exc_info=True)
                    return CommandResult(
                        status=CommandStatus.TRANSIENT_FAILURE,
                        state=self._state,
                        detail=str(exc) or type(exc).__name__,
                    )
            self._source_active = False
            self._state = TrackingState.STOPPED
            warning = await self._persist(False)
            _logger.debug("Unsubscribed from location updates")
        self._notify(self._on_stopped)
        self._notify(self._on_idle)
        return CommandResult(status=CommandStatus.OK, state=TrackingState.STOPPED, detail=warning)

    async def release_source(self) -> bool:
        """Stop the source for process shutdown, keeping the persisted flag.

        The next process resumes tracking through :meth:`resume`.  Returns
        ``False`` when the source could not be stopped.
        """
        async with self._lock:
            if not self._source_active:
                return True
            try:
                await self._source.stop_updates()
            except Exception:
                _logger.warning("Location source release failed", exc_info=True)
                return False
            self._source_active = False
            return True

    async def on_external_stop_request(self) -> CommandResult:
        """Stop action from the notification: unsubscribe, then shut the host down."""
        result = await self.unsubscribe()
        if result.state == TrackingState.STOPPED:
            self._notify(self._on_shutdown)
        return result

    def on_sample(self, sample: LocationSample | None) -> None:
        """Source callback: republish *sample* to every consumer."""
        if not self._source_active:
            _logger.debug("Dropping location sample received while not subscribed")
            return
        self._broadcaster.publish(sample)

    @staticmethod
    def _notify(callback: Callable[[], None] | None) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception:
            _logger.warning("Lifecycle callback %r failed", callback, exc_info=True)
