"""Default values and fixed protocol constants for the Artisan bridge."""

from __future__ import annotations

from typing import Final

DEFAULT_MQTT_HOST: Final[str] = "localhost"
DEFAULT_MQTT_PORT: Final[int] = 1883
DEFAULT_MQTT_KEEPALIVE: Final[int] = 30
DEFAULT_DEVICE_ID: Final[str] = "esp32_roaster_01"

DEFAULT_SERIAL_PORT: Final[str] = "/tmp/ttyV0"
DEFAULT_SERIAL_BAUD: Final[int] = 115200
DEFAULT_SERIAL_WRITE_TIMEOUT: Final[float] = 1.0

DEFAULT_TICK_INTERVAL: Final[float] = 1.0
DEFAULT_RECONNECT_DELAY: Final[float] = 5.0
DEFAULT_DEBUG_LOGGING: Final[bool] = False
DEFAULT_LOG_SYSLOG: Final[bool] = False

DEFAULT_METRICS_ENABLED: Final[bool] = False
DEFAULT_METRICS_HOST: Final[str] = "127.0.0.1"
DEFAULT_METRICS_PORT: Final[int] = 9130

TELEMETRY_TOPIC_TEMPLATE: Final[str] = "roaster/{device_id}/telemetry"
MQTT_CLIENT_ID_PREFIX: Final[str] = "mqtt-bridge-"
# Telemetry is fire-and-forget: QoS 0, at most once.
TELEMETRY_QOS: Final[int] = 0
MQTT_TOPIC_RESERVED_CHARS: Final[frozenset[str]] = frozenset({"/", "+", "#"})

SIMULATOR_PUBLISH_INTERVAL: Final[float] = 2.0
