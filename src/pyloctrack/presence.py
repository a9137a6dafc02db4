"""Foreground/background presence decisions.

While a UI is attached it shows tracking itself.  When the UI goes away and
tracking is still on, the service must disclose it through a persistent
notification.  A detach caused by a configuration change (the UI is about
to re-attach) must not trigger that promotion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyloctrack.models.location import LocationSample
from pyloctrack.models.notification import NotificationPayload
from pyloctrack.models.state import PresenceMode, TrackingState
from pyloctrack.notify import Notifier

_logger = logging.getLogger(__name__)

NO_LOCATION_TEXT = "No Location"


class ForegroundPresenceManager:
    """State machine over attach/detach, configuration changes and tracking state."""

    def __init__(
        self,
        *,
        notifier: Notifier,
        tracking_state: Callable[[], TrackingState],
        stop_action: Callable[[], Any],
        title: str = "pyloctrack",
    ) -> None:
        self._notifier = notifier
        self._tracking_state = tracking_state
        self._stop_action = stop_action
        self._title = title
        self._mode = PresenceMode.BACKGROUND
        self._configuration_change = False
        self._last_sample: LocationSample | None = None

    @property
    def mode(self) -> PresenceMode:
        return self._mode

    @property
    def last_sample(self) -> LocationSample | None:
        return self._last_sample

    def build_payload(self, sample: LocationSample | None) -> NotificationPayload:
        body = sample.to_text() if sample is not None else NO_LOCATION_TEXT
        return NotificationPayload(title=self._title, body=body, dismiss_action=self._stop_action)

    def on_attach(self) -> None:
        """UI bound (or re-bound): the UI shows state, drop the notification."""
        self._configuration_change = False
        self.release()

    def on_detach(self) -> None:
        """UI unbound: promote when tracking is on, unless a configuration change caused this."""
        suppressed = self._configuration_change
        self._configuration_change = False
        if suppressed:
            _logger.debug("Detach after configuration change, staying %s", self._mode)
            return
        if self._tracking_state() != TrackingState.SUBSCRIBED:
            return
        self._notifier.show_persistent(self.build_payload(self._last_sample))
        self._mode = PresenceMode.FOREGROUND
        _logger.debug("Promoted to foreground")

    def on_configuration_change(self) -> None:
        self._configuration_change = True

    def refresh_notification(self, sample: LocationSample | None) -> None:
        """Remember *sample* and re-deliver the notification when in the foreground."""
        self._last_sample = sample
        if self._mode != PresenceMode.FOREGROUND:
            return
        if self._tracking_state() != TrackingState.SUBSCRIBED:
            self.release()
            return
        self._notifier.show_persistent(self.build_payload(sample))

    def release(self) -> None:
        """Demote to background, clearing the notification if one is shown."""
        if self._mode == PresenceMode.FOREGROUND:
            self._notifier.clear()
            _logger.debug("Demoted to background")
        self._mode = PresenceMode.BACKGROUND
