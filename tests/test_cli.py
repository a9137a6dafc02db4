from __future__ import annotations

import os
from pathlib import Path

import pytest

from pyloctrack.__main__ import _build_config, _parse_args, main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("LOCTRACK_"):
            monkeypatch.delenv(key, raising=False)


def test_build_config_from_mqtt_flags(tmp_path: Path) -> None:
    args = _parse_args(
        [
            "--data-dir",
            str(tmp_path),
            "--mqtt-host",
            "broker.local",
            "--mqtt-topic",
            "owntracks/me/phone",
            "--mqtt-username",
            "me",
        ]
    )

    config = _build_config(args)

    assert config.data_dir == tmp_path
    assert config.mqtt is not None
    assert config.mqtt.topic == "owntracks/me/phone"
    assert config.mqtt.username == "me"
    assert config.http_url is None


def test_build_config_from_http_flags() -> None:
    config = _build_config(_parse_args(["--http-url", "http://gps.local/now", "--http-token", "abc"]))

    assert config.http_url == "http://gps.local/now"
    assert config.http_token == "abc"


def test_main_without_source_exits_with_config_error(tmp_path: Path) -> None:
    assert main(["--data-dir", str(tmp_path)]) == 2
