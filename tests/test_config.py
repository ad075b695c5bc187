"""Tests for command-line configuration loading and validation."""

from __future__ import annotations

from typing import Any

import pytest

from artisanbridge import __version__
from artisanbridge.config import settings
from artisanbridge.config.settings import ConfigError, build_runtime_config, load_runtime_config


def test_defaults_match_the_reference_setup() -> None:
    config = load_runtime_config([])

    assert config.mqtt_host == "localhost"
    assert config.mqtt_port == 1883
    assert config.device_id == "esp32_roaster_01"
    assert config.serial_port == "/tmp/ttyV0"
    assert config.serial_baud == 115200
    assert config.tick_interval == 1.0
    assert config.reconnect_delay == 5.0
    assert config.mqtt_keepalive == 30
    assert config.debug_logging is False
    assert config.metrics_enabled is False
    assert config.telemetry_topic == "roaster/esp32_roaster_01/telemetry"
    assert config.mqtt_client_id == "mqtt-bridge-esp32_roaster_01"


def test_short_flags() -> None:
    config = load_runtime_config(
        ["-h", "broker.lan", "-p", "8883", "-d", "roaster_2", "-s", "/dev/ttyUSB0", "-b", "9600", "--debug"]
    )

    assert config.mqtt_host == "broker.lan"
    assert config.mqtt_port == 8883
    assert config.device_id == "roaster_2"
    assert config.serial_port == "/dev/ttyUSB0"
    assert config.serial_baud == 9600
    assert config.debug_logging is True
    assert config.telemetry_topic == "roaster/roaster_2/telemetry"


def test_long_flags() -> None:
    config = load_runtime_config(
        [
            "--mqtt-host",
            "10.0.0.2",
            "--tick-interval",
            "0.5",
            "--reconnect-delay",
            "2",
            "--write-timeout",
            "0.25",
            "--metrics",
            "--metrics-port",
            "9200",
        ]
    )

    assert config.mqtt_host == "10.0.0.2"
    assert config.tick_interval == 0.5
    assert config.reconnect_delay == 2.0
    assert config.serial_write_timeout == 0.25
    assert config.metrics_enabled is True
    assert config.metrics_port == 9200


def test_help_is_long_form_only(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        load_runtime_config(["--help"])
    assert excinfo.value.code == 0
    assert "--mqtt-host" in capsys.readouterr().out


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        load_runtime_config(["--version"])
    assert __version__ in capsys.readouterr().out


@pytest.mark.parametrize(
    ("raw", "field"),
    [
        ({"mqtt_port": 0}, "mqtt_port"),
        ({"mqtt_port": 70000}, "mqtt_port"),
        ({"device_id": ""}, "device_id"),
        ({"device_id": "roaster/1"}, "device_id"),
        ({"device_id": "roaster+"}, "device_id"),
        ({"device_id": "#"}, "device_id"),
        ({"tick_interval": 0}, "tick_interval"),
        ({"reconnect_delay": -1}, "reconnect_delay"),
        ({"serial_port": "   "}, "serial_port"),
        ({"serial_baud": 0}, "serial_baud"),
    ],
)
def test_invalid_values_raise_config_error(raw: dict[str, Any], field: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        build_runtime_config(raw)
    assert field in excinfo.value.messages
    assert field in str(excinfo.value)


def test_empty_credentials_are_treated_as_unset() -> None:
    config = build_runtime_config({"mqtt_user": "  ", "mqtt_pass": ""})
    assert config.mqtt_user is None
    assert config.mqtt_pass is None


def test_tls_files_require_tls() -> None:
    with pytest.raises(ConfigError, match="mqtt_tls"):
        build_runtime_config({"mqtt_cafile": "/etc/ssl/ca.pem"})


def test_client_certificate_requires_key() -> None:
    with pytest.raises(ConfigError, match="mqtt_certfile"):
        build_runtime_config({"mqtt_tls": True, "mqtt_certfile": "/etc/ssl/client.pem"})


def test_plaintext_credentials_warn(caplog: pytest.LogCaptureFixture) -> None:
    build_runtime_config({"mqtt_user": "roaster", "mqtt_pass": "secret"})
    assert "plaintext" in caplog.text


def test_load_runtime_config_uses_raw_loader(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "_load_raw_config", lambda _argv: {"device_id": "bench"})

    config = load_runtime_config(["ignored"])

    assert config.device_id == "bench"
