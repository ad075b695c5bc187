"""Data model for Artisan bridge configuration."""

from __future__ import annotations

from dataclasses import dataclass

from ..const import (
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_LOG_SYSLOG,
    DEFAULT_METRICS_ENABLED,
    DEFAULT_METRICS_HOST,
    DEFAULT_METRICS_PORT,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_SERIAL_WRITE_TIMEOUT,
    DEFAULT_TICK_INTERVAL,
    MQTT_CLIENT_ID_PREFIX,
    TELEMETRY_TOPIC_TEMPLATE,
)


@dataclass(slots=True)
class RuntimeConfig:
    """Strongly typed configuration for the bridge."""

    mqtt_host: str
    mqtt_port: int
    device_id: str
    serial_port: str
    serial_baud: int
    mqtt_user: str | None = None
    mqtt_pass: str | None = None
    mqtt_tls: bool = False
    mqtt_tls_insecure: bool = False
    mqtt_cafile: str | None = None
    mqtt_certfile: str | None = None
    mqtt_keyfile: str | None = None
    mqtt_keepalive: int = DEFAULT_MQTT_KEEPALIVE
    tick_interval: float = DEFAULT_TICK_INTERVAL
    serial_write_timeout: float = DEFAULT_SERIAL_WRITE_TIMEOUT
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    log_syslog: bool = DEFAULT_LOG_SYSLOG
    metrics_enabled: bool = DEFAULT_METRICS_ENABLED
    metrics_host: str = DEFAULT_METRICS_HOST
    metrics_port: int = DEFAULT_METRICS_PORT

    @property
    def tls_enabled(self) -> bool:
        return self.mqtt_tls

    @property
    def telemetry_topic(self) -> str:
        return TELEMETRY_TOPIC_TEMPLATE.format(device_id=self.device_id)

    @property
    def mqtt_client_id(self) -> str:
        return f"{MQTT_CLIENT_ID_PREFIX}{self.device_id}"
