"""Location source fed by an MQTT topic (OwnTracks-style JSON messages)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, cast

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from pyloctrack.config import MqttSourceConfig
from pyloctrack.exceptions import LocationTransientError, LocationUnauthorizedError
from pyloctrack.models.location import LocationSample
from pyloctrack.models.polling import PollingConfig
from pyloctrack.sources._base import LocationCallback

_logger = logging.getLogger(__name__)

# CONNACK reason codes meaning the broker refused our credentials.
# 4/5 are MQTT 3.1.1 return codes, 134/135 their MQTT 5 equivalents.
_UNAUTHORIZED_CODES = frozenset({4, 5, 134, 135})


def decode_location_message(payload: bytes) -> LocationSample | None:
    """Decode a location message.

    Messages carrying a ``_type`` other than ``"location"`` are ignored
    (returns ``None``).

    Raises
    ------
    ValueError
        If the payload is not a JSON object describing a location.
    """
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise ValueError("MQTT payload is not a JSON object")
    kind = parsed.get("_type")
    if kind is not None and kind != "location":
        return None
    return LocationSample.model_validate(parsed)


class MqttLocationSource:
    """Threaded paho-mqtt client that emits samples onto the asyncio loop."""

    def __init__(self, config: MqttSourceConfig, *, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._logger = logger or _logger
        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._client is not None

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._config.client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if self._config.username is not None:
            client.username_pw_set(self._config.username, self._config.password)
        if self._config.tls:
            client.tls_set()
        return client

    async def start_updates(self, config: PollingConfig, callback: LocationCallback) -> None:
        await self.stop_updates()
        loop = asyncio.get_running_loop()
        self._loop = loop
        connected: asyncio.Future[int] = loop.create_future()
        topic = self._config.topic

        def _resolve(code: int) -> None:
            if not connected.done():
                connected.set_result(code)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            code = int(reason_code.value)
            if code == 0:
                self._logger.debug("MQTT connected, subscribing topic=%s", topic)
                c.subscribe(topic, qos=0)
            else:
                self._logger.warning("MQTT connect failed: %s", reason_code)
            loop.call_soon_threadsafe(_resolve, code)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                sample = decode_location_message(msg.payload)
            except (ValueError, ValidationError):
                self._logger.debug("MQTT location payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            if sample is None:
                return
            loop.call_soon_threadsafe(callback, sample)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            self._logger.debug("MQTT disconnected: %s", reason_code)

        client = self._build_client()
        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            await loop.run_in_executor(
                None,
                lambda: client.connect(self._config.host, self._config.port, keepalive=self._config.keepalive),
            )
        except (OSError, ValueError) as exc:
            # paho raises ValueError for an invalid host or port.
            raise LocationTransientError(f"MQTT broker unreachable: {exc}", source="mqtt") from exc
        client.loop_start()

        try:
            code = await asyncio.wait_for(connected, self._config.connect_timeout)
        except TimeoutError as exc:
            await loop.run_in_executor(None, self._shutdown_client, client)
            raise LocationTransientError("Timed out waiting for MQTT CONNACK", source="mqtt") from exc

        if code != 0:
            await loop.run_in_executor(None, self._shutdown_client, client)
            if code in _UNAUTHORIZED_CODES:
                raise LocationUnauthorizedError(f"MQTT broker refused credentials (code {code})", source="mqtt")
            raise LocationTransientError(f"MQTT broker refused connection (code {code})", source="mqtt")

        self._client = client
        self._logger.debug(
            "MQTT source started host=%s port=%s topic=%s",
            self._config.host,
            self._config.port,
            topic,
        )

    def _shutdown_client(self, client: mqtt.Client) -> None:
        try:
            client.disconnect()
        finally:
            client.loop_stop()

    async def stop_updates(self) -> None:
        client = self._client
        self._client = None
        if client is None:
            return
        loop = self._loop or asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._shutdown_client, client)
        except (OSError, RuntimeError) as exc:
            self._client = client
            raise LocationTransientError(f"MQTT disconnect failed: {exc}", source="mqtt") from exc
        self._logger.debug("MQTT network loop stopped")
