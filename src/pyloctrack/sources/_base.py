"""Location source boundary."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from pyloctrack.models.location import LocationSample
from pyloctrack.models.polling import PollingConfig

LocationCallback = Callable[[LocationSample | None], None]


class LocationSource(Protocol):
    """Structural interface for location providers.

    ``start_updates`` completes once the provider accepted the request and
    then delivers samples through *callback* on the running event loop.
    ``None`` is delivered when the provider reports that it has no fix.

    Implementations raise
    :class:`~pyloctrack.exceptions.LocationUnauthorizedError` when access
    is denied and :class:`~pyloctrack.exceptions.LocationTransientError`
    when the provider cannot be reached.
    """

    async def start_updates(self, config: PollingConfig, callback: LocationCallback) -> None:
        ...

    async def stop_updates(self) -> None:
        ...
