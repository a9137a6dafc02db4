"""Location source implementations."""

from pyloctrack.sources._base import LocationCallback, LocationSource
from pyloctrack.sources.http import HttpPollingSource
from pyloctrack.sources.mqtt import MqttLocationSource

__all__ = [
    "HttpPollingSource",
    "LocationCallback",
    "LocationSource",
    "MqttLocationSource",
]
