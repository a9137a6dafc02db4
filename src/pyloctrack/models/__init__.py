"""Domain models for pyloctrack."""

from pyloctrack.models.location import UNKNOWN_LOCATION_TEXT, LocationSample, location_text
from pyloctrack.models.notification import NotificationPayload
from pyloctrack.models.polling import PollingConfig, PowerPriority
from pyloctrack.models.state import CommandResult, CommandStatus, PresenceMode, TrackingState

__all__ = [
    "UNKNOWN_LOCATION_TEXT",
    "CommandResult",
    "CommandStatus",
    "LocationSample",
    "NotificationPayload",
    "PollingConfig",
    "PowerPriority",
    "PresenceMode",
    "TrackingState",
    "location_text",
]
