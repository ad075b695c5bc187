"""Settings loader for the Artisan bridge.

Configuration comes from command-line flags. Anything not given on the
command line falls back to the defaults declared in
:class:`~artisanbridge.config.schema.RuntimeConfigSchema`.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from typing import Any

from marshmallow import ValidationError

from .. import __version__
from ..const import (
    DEFAULT_DEVICE_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_SERIAL_BAUD,
    DEFAULT_SERIAL_PORT,
)
from .model import RuntimeConfig
from .schema import RuntimeConfigSchema

logger = logging.getLogger(__name__)

# argparse dest -> RuntimeConfig field
_FLAG_FIELDS: dict[str, str] = {
    "mqtt_host": "mqtt_host",
    "mqtt_port": "mqtt_port",
    "device_id": "device_id",
    "serial_port": "serial_port",
    "baud_rate": "serial_baud",
    "tick_interval": "tick_interval",
    "write_timeout": "serial_write_timeout",
    "reconnect_delay": "reconnect_delay",
    "keepalive": "mqtt_keepalive",
    "mqtt_user": "mqtt_user",
    "mqtt_pass": "mqtt_pass",
    "mqtt_tls": "mqtt_tls",
    "mqtt_tls_insecure": "mqtt_tls_insecure",
    "mqtt_cafile": "mqtt_cafile",
    "mqtt_certfile": "mqtt_certfile",
    "mqtt_keyfile": "mqtt_keyfile",
    "debug": "debug_logging",
    "syslog": "log_syslog",
    "metrics": "metrics_enabled",
    "metrics_host": "metrics_host",
    "metrics_port": "metrics_port",
}


class ConfigError(ValueError):
    """Raised when the supplied configuration fails validation."""

    def __init__(self, messages: dict[str, Any]) -> None:
        self.messages = messages
        details = "; ".join(f"{key}: {_flatten_messages(value)}" for key, value in sorted(messages.items()))
        super().__init__(f"Invalid configuration: {details}")


def _flatten_messages(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(_flatten_messages(item) for item in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}: {_flatten_messages(v)}" for k, v in value.items())
    return str(value)


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the command-line parser for the bridge daemon.

    ``-h`` selects the MQTT host, so help is only reachable as ``--help``.
    """
    parser = argparse.ArgumentParser(
        prog="artisanbridge",
        description="Bridge roaster telemetry from MQTT to an Artisan serial port.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    mqtt = parser.add_argument_group("MQTT")
    mqtt.add_argument("-h", "--mqtt-host", default=None, help=f"MQTT broker host (default: {DEFAULT_MQTT_HOST})")
    mqtt.add_argument("-p", "--mqtt-port", type=int, default=None, help=f"MQTT broker port (default: {DEFAULT_MQTT_PORT})")
    mqtt.add_argument("-d", "--device-id", default=None, help=f"Roaster device identifier (default: {DEFAULT_DEVICE_ID})")
    mqtt.add_argument("--mqtt-user", default=None, help="MQTT username")
    mqtt.add_argument("--mqtt-pass", default=None, help="MQTT password")
    mqtt.add_argument("--mqtt-tls", action="store_true", default=None, help="Connect to the broker over TLS")
    mqtt.add_argument("--mqtt-tls-insecure", action="store_true", default=None, help="Disable TLS hostname verification")
    mqtt.add_argument("--mqtt-cafile", default=None, help="CA bundle used to verify the broker")
    mqtt.add_argument("--mqtt-certfile", default=None, help="Client certificate for mTLS")
    mqtt.add_argument("--mqtt-keyfile", default=None, help="Client key for mTLS")
    mqtt.add_argument("--keepalive", type=int, default=None, help="MQTT keepalive in seconds")
    mqtt.add_argument("--reconnect-delay", type=float, default=None, help="Seconds to wait before reconnecting")

    serial = parser.add_argument_group("Serial")
    serial.add_argument("-s", "--serial-port", default=None, help=f"Serial device path (default: {DEFAULT_SERIAL_PORT})")
    serial.add_argument("-b", "--baud-rate", type=int, default=None, help=f"Serial baud rate (default: {DEFAULT_SERIAL_BAUD})")
    serial.add_argument("--tick-interval", type=float, default=None, help="Seconds between serial writes")
    serial.add_argument("--write-timeout", type=float, default=None, help="Seconds to wait for a serial write to drain")

    system = parser.add_argument_group("System")
    system.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    system.add_argument("--syslog", action="store_true", default=None, help="Log to syslog instead of stderr")
    system.add_argument("--metrics", action="store_true", default=None, help="Serve Prometheus metrics")
    system.add_argument("--metrics-host", default=None, help="Prometheus exporter bind address")
    system.add_argument("--metrics-port", type=int, default=None, help="Prometheus exporter port")
    return parser


def _load_raw_config(argv: Sequence[str] | None) -> dict[str, Any]:
    namespace = build_arg_parser().parse_args(argv)
    raw: dict[str, Any] = {}
    for dest, field_name in _FLAG_FIELDS.items():
        value = getattr(namespace, dest, None)
        if value is not None:
            raw[field_name] = value
    return raw


def build_runtime_config(raw: dict[str, Any]) -> RuntimeConfig:
    """Validate a raw mapping and build a :class:`RuntimeConfig`."""
    try:
        config = RuntimeConfigSchema().load(raw)
    except ValidationError as exc:
        messages = exc.messages if isinstance(exc.messages, dict) else {"_schema": exc.messages}
        raise ConfigError(messages) from exc

    if not config.mqtt_tls:
        if config.mqtt_user:
            logger.warning(
                "MQTT TLS is disabled; MQTT credentials will be sent in plaintext."
            )
    elif config.mqtt_tls_insecure:
        logger.warning(
            "MQTT TLS hostname verification is disabled; "
            "use this only for known/self-hosted brokers."
        )
    return config


def load_runtime_config(argv: Sequence[str] | None = None) -> RuntimeConfig:
    """Load configuration from command-line flags and defaults."""
    return build_runtime_config(_load_raw_config(argv))


__all__ = [
    "ConfigError",
    "RuntimeConfig",
    "build_arg_parser",
    "build_runtime_config",
    "load_runtime_config",
]
