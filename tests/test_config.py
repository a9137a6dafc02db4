from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import pytest

from pyloctrack.config import TrackerConfig
from pyloctrack.exceptions import LocTrackConfigError
from pyloctrack.models.polling import PollingConfig, PowerPriority


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("LOCTRACK_"):
            monkeypatch.delenv(key, raising=False)


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    config = TrackerConfig.from_env()

    assert config.polling == PollingConfig()
    assert config.mqtt is None
    assert config.http_url is None
    assert config.log_path == Path(".") / "location.txt"


def test_from_env_reads_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOCTRACK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LOCTRACK_INTERVAL_MINUTES", "1")
    monkeypatch.setenv("LOCTRACK_PRIORITY", "HIGH_ACCURACY")
    monkeypatch.setenv("LOCTRACK_MQTT_HOST", "broker.local")
    monkeypatch.setenv("LOCTRACK_MQTT_PORT", "8883")
    monkeypatch.setenv("LOCTRACK_MQTT_TLS", "yes")

    config = TrackerConfig.from_env()

    assert config.preferences_path == tmp_path / "preferences.json"
    assert config.polling.interval == timedelta(minutes=1)
    assert config.polling.fastest_interval == timedelta(minutes=1)
    assert config.polling.priority is PowerPriority.HIGH_ACCURACY
    assert config.mqtt is not None
    assert config.mqtt.host == "broker.local"
    assert config.mqtt.port == 8883
    assert config.mqtt.tls is True


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("LOCTRACK_APP_NAME", "from-env")

    config = TrackerConfig.from_env(app_name="explicit")

    assert config.app_name == "explicit"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("LOCTRACK_INTERVAL_MINUTES", "soon"),
        ("LOCTRACK_PRIORITY", "turbo"),
        ("LOCTRACK_MAX_WAIT_MINUTES", "0"),
    ],
)
def test_invalid_env_raises_config_error(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv(key, value)

    with pytest.raises(LocTrackConfigError):
        TrackerConfig.from_env()
