"""Service configuration for pyloctrack."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from pyloctrack.exceptions import LocTrackConfigError
from pyloctrack.models.polling import PollingConfig, PowerPriority

#: Preference key holding the "tracking enabled" flag.
KEY_TRACKING_ENABLED = "tracking_foreground_location"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_minutes(value: str, name: str) -> timedelta:
    try:
        return timedelta(minutes=float(value))
    except ValueError as exc:
        raise LocTrackConfigError(f"{name} must be a number of minutes, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MqttSourceConfig:
    """Broker settings for :class:`~pyloctrack.sources.mqtt.MqttLocationSource`.

    ``topic`` may contain MQTT wildcards.  ``tls`` enables TLS with the
    system trust store.
    """

    host: str
    port: int = 1883
    topic: str = "owntracks/+/+"
    username: str | None = None
    password: str | None = None
    client_id: str = "pyloctrack"
    keepalive: int = 60
    tls: bool = False
    connect_timeout: float = 10.0


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Service configuration.

    Parameters
    ----------
    data_dir : Path
        Directory holding the preference file and the location log.
    preferences_file : str
        File name (inside ``data_dir``) of the JSON preference store.
    log_file : str
        File name (inside ``data_dir``) of the append-only location log.
    app_name : str
        Title used for the persistent notification.
    polling : PollingConfig
        Interval and priority requested from the location source.
    http_url : str or None
        JSON endpoint polled by the HTTP source.
    http_token : str or None
        Optional bearer token sent to ``http_url``.
    mqtt : MqttSourceConfig or None
        Broker settings for the MQTT source.
    """

    data_dir: Path = Path(".")
    preferences_file: str = "preferences.json"
    log_file: str = "location.txt"
    app_name: str = "pyloctrack"
    polling: PollingConfig = dataclasses.field(default_factory=PollingConfig)
    http_url: str | None = None
    http_token: str | None = None
    mqtt: MqttSourceConfig | None = None

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / self.preferences_file

    @property
    def log_path(self) -> Path:
        return self.data_dir / self.log_file

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``LOCTRACK_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        LocTrackConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        data_dir = env.get("LOCTRACK_DATA_DIR")
        if data_dir is not None:
            config_kwargs["data_dir"] = Path(data_dir).expanduser()

        _ENV_CONFIG_MAP = {
            "LOCTRACK_PREFERENCES_FILE": "preferences_file",
            "LOCTRACK_LOG_FILE": "log_file",
            "LOCTRACK_APP_NAME": "app_name",
            "LOCTRACK_HTTP_URL": "http_url",
            "LOCTRACK_HTTP_TOKEN": "http_token",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "polling" not in overrides:
            polling_kwargs: dict[str, Any] = {}
            _ENV_POLLING_MAP = {
                "LOCTRACK_INTERVAL_MINUTES": "interval",
                "LOCTRACK_FASTEST_INTERVAL_MINUTES": "fastest_interval",
                "LOCTRACK_MAX_WAIT_MINUTES": "max_wait",
            }
            for env_key, field_name in _ENV_POLLING_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    polling_kwargs[field_name] = _env_minutes(val, env_key)
            priority = env.get("LOCTRACK_PRIORITY")
            if priority is not None:
                try:
                    polling_kwargs["priority"] = PowerPriority(priority.strip().lower())
                except ValueError as exc:
                    raise LocTrackConfigError(f"Unknown LOCTRACK_PRIORITY {priority!r}") from exc
            # Keep fastest_interval in step with a shortened interval unless set explicitly.
            if "interval" in polling_kwargs and "fastest_interval" not in polling_kwargs:
                polling_kwargs["fastest_interval"] = polling_kwargs["interval"]
            if polling_kwargs:
                try:
                    config_kwargs["polling"] = PollingConfig(**polling_kwargs)
                except ValueError as exc:
                    raise LocTrackConfigError(str(exc)) from exc

        mqtt_host = env.get("LOCTRACK_MQTT_HOST")
        if mqtt_host is not None and "mqtt" not in overrides:
            mqtt_kwargs: dict[str, Any] = {"host": mqtt_host}
            port = env.get("LOCTRACK_MQTT_PORT")
            if port is not None:
                try:
                    mqtt_kwargs["port"] = int(port)
                except ValueError as exc:
                    raise LocTrackConfigError(f"LOCTRACK_MQTT_PORT must be an integer, got {port!r}") from exc
            for env_key, field_name in {
                "LOCTRACK_MQTT_TOPIC": "topic",
                "LOCTRACK_MQTT_USERNAME": "username",
                "LOCTRACK_MQTT_PASSWORD": "password",
                "LOCTRACK_MQTT_CLIENT_ID": "client_id",
            }.items():
                val = env.get(env_key)
                if val is not None:
                    mqtt_kwargs[field_name] = val
            mqtt_kwargs["tls"] = _env_bool(env.get("LOCTRACK_MQTT_TLS"), False)
            config_kwargs["mqtt"] = MqttSourceConfig(**mqtt_kwargs)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
