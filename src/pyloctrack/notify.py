"""Notification boundary."""

from __future__ import annotations

import logging
from typing import Protocol

from pyloctrack.models.notification import NotificationPayload

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Shows or clears the persistent tracking notification."""

    def show_persistent(self, payload: NotificationPayload) -> None:
        ...

    def clear(self) -> None:
        ...


class LoggingNotifier:
    """Notifier that reports through the library logger.

    Used by headless deployments where the log is the only user-visible
    surface.  The last payload stays available as :attr:`current`.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger
        self.current: NotificationPayload | None = None

    def show_persistent(self, payload: NotificationPayload) -> None:
        self.current = payload
        self._logger.info("[%s] %s", payload.title, payload.body)

    def clear(self) -> None:
        if self.current is not None:
            self._logger.info("[%s] notification cleared", self.current.title)
        self.current = None
