"""Location source that polls a JSON endpoint over HTTP."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from pyloctrack.exceptions import LocationTransientError, LocationUnauthorizedError
from pyloctrack.models.location import LocationSample
from pyloctrack.models.polling import PollingConfig
from pyloctrack.sources._base import LocationCallback

_logger = logging.getLogger(__name__)


def parse_location_payload(payload: Any) -> LocationSample | None:
    """Turn a decoded JSON body into a sample.

    ``null`` or an empty object means the provider has no fix yet.

    Raises
    ------
    LocationTransientError
        If the body is neither empty nor a valid location.
    """
    if payload is None or payload == {}:
        return None
    if not isinstance(payload, dict):
        raise LocationTransientError("Location payload is not an object", source="http")
    try:
        return LocationSample.model_validate(payload)
    except ValidationError as exc:
        raise LocationTransientError(f"Malformed location payload: {exc}", source="http") from exc


class HttpPollingSource:
    """Polls ``url`` every ``PollingConfig.interval``.

    The first request is made inside :meth:`start_updates` so that
    authorization problems are reported to the caller instead of being
    discovered in the background.
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession,
        token: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._session = session
        self._token = token
        self._logger = logger or _logger
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _fetch(self, timeout: float) -> LocationSample | None:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            async with self._session.get(
                self._url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if response.status in (401, 403):
                    raise LocationUnauthorizedError(
                        f"Location endpoint refused access (HTTP {response.status})",
                        source="http",
                    )
                if response.status >= 400:
                    raise LocationTransientError(
                        f"Location endpoint returned HTTP {response.status}",
                        source="http",
                    )
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise LocationTransientError(f"Location endpoint unreachable: {exc}", source="http") from exc
        return parse_location_payload(payload)

    async def start_updates(self, config: PollingConfig, callback: LocationCallback) -> None:
        await self.stop_updates()
        timeout = config.max_wait.total_seconds()
        self._logger.debug("HTTP source start url=%s interval=%s", self._url, config.interval)
        first = await self._fetch(timeout)
        callback(first)
        self._task = asyncio.create_task(self._run(config, callback))

    async def _run(self, config: PollingConfig, callback: LocationCallback) -> None:
        interval = config.interval.total_seconds()
        timeout = config.max_wait.total_seconds()
        while True:
            await asyncio.sleep(interval)
            try:
                sample = await self._fetch(timeout)
            except (LocationTransientError, LocationUnauthorizedError):
                self._logger.warning("HTTP location poll failed", exc_info=True)
                continue
            callback(sample)

    async def stop_updates(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._logger.debug("HTTP source stopped")
