"""pyloctrack - Async foreground/background location tracking service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyloctrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pyloctrack.broadcast import EventBroadcaster, LocationObservable
from pyloctrack.config import KEY_TRACKING_ENABLED, MqttSourceConfig, TrackerConfig
from pyloctrack.controller import SubscriptionController
from pyloctrack.exceptions import (
    LocationSourceError,
    LocationTransientError,
    LocationUnauthorizedError,
    LocTrackConfigError,
    LocTrackError,
    StorageUnavailableError,
)
from pyloctrack.location_log import LocationLog
from pyloctrack.models import (
    CommandResult,
    CommandStatus,
    LocationSample,
    NotificationPayload,
    PollingConfig,
    PowerPriority,
    PresenceMode,
    TrackingState,
)
from pyloctrack.notify import LoggingNotifier, Notifier
from pyloctrack.preferences import JsonPreferenceStore, MemoryPreferenceStore, PreferenceStore
from pyloctrack.presence import ForegroundPresenceManager
from pyloctrack.service import LocationTrackerService
from pyloctrack.sources import HttpPollingSource, LocationSource, MqttLocationSource

__all__ = [
    "__version__",
    "KEY_TRACKING_ENABLED",
    "CommandResult",
    "CommandStatus",
    "EventBroadcaster",
    "ForegroundPresenceManager",
    "HttpPollingSource",
    "JsonPreferenceStore",
    "LocTrackConfigError",
    "LocTrackError",
    "LocationLog",
    "LocationObservable",
    "LocationSample",
    "LocationSource",
    "LocationSourceError",
    "LocationTrackerService",
    "LocationTransientError",
    "LocationUnauthorizedError",
    "LoggingNotifier",
    "MemoryPreferenceStore",
    "MqttLocationSource",
    "MqttSourceConfig",
    "Notifier",
    "NotificationPayload",
    "PollingConfig",
    "PowerPriority",
    "PreferenceStore",
    "PresenceMode",
    "StorageUnavailableError",
    "SubscriptionController",
    "TrackerConfig",
    "TrackingState",
]
