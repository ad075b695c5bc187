"""Runtime counters for the Artisan bridge daemon."""

from __future__ import annotations

import time
from typing import Final

import msgspec

from ..config.model import RuntimeConfig

__all__: Final[tuple[str, ...]] = (
    "BridgeState",
    "MqttLinkStats",
    "SerialLinkStats",
    "TelemetryStats",
    "create_bridge_state",
)


class TelemetryStats(msgspec.Struct):
    """Inbound telemetry statistics."""

    received: int = 0
    decode_errors: int = 0
    ignored_topics: int = 0
    last_received_unix: float = 0.0
    last_bean_temp: float | None = None
    last_env_temp: float | None = None
    last_error: str | None = None


class SerialLinkStats(msgspec.Struct):
    """Serial sink statistics."""

    lines_written: int = 0
    bytes_written: int = 0
    idle_ticks: int = 0
    write_errors: int = 0
    reopens: int = 0
    last_write_unix: float = 0.0
    last_error: str | None = None


class MqttLinkStats(msgspec.Struct):
    """Broker connection statistics."""

    connected: bool = False
    connects: int = 0
    disconnects: int = 0
    last_connect_unix: float = 0.0
    last_error: str | None = None


def _describe(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


class BridgeState(msgspec.Struct):
    """Aggregated mutable counters shared across the daemon layers."""

    device_id: str = ""
    telemetry_topic: str = ""
    serial_port: str = ""
    started_unix: float = msgspec.field(default_factory=time.time)
    telemetry: TelemetryStats = msgspec.field(default_factory=TelemetryStats)
    serial: SerialLinkStats = msgspec.field(default_factory=SerialLinkStats)
    mqtt: MqttLinkStats = msgspec.field(default_factory=MqttLinkStats)

    def configure(self, config: RuntimeConfig) -> None:
        self.device_id = config.device_id
        self.telemetry_topic = config.telemetry_topic
        self.serial_port = config.serial_port

    @property
    def uptime_seconds(self) -> float:
        return max(0.0, time.time() - self.started_unix)

    def record_telemetry(self, bean_temp: float, env_temp: float) -> None:
        self.telemetry.received += 1
        self.telemetry.last_received_unix = time.time()
        self.telemetry.last_bean_temp = bean_temp
        self.telemetry.last_env_temp = env_temp

    def record_decode_error(self, exc: BaseException) -> None:
        self.telemetry.decode_errors += 1
        self.telemetry.last_error = str(exc)

    def record_ignored_topic(self) -> None:
        self.telemetry.ignored_topics += 1

    def record_serial_write(self, size: int) -> None:
        self.serial.lines_written += 1
        self.serial.bytes_written += size
        self.serial.last_write_unix = time.time()

    def record_serial_idle(self) -> None:
        self.serial.idle_ticks += 1

    def record_serial_error(self, exc: BaseException) -> None:
        self.serial.write_errors += 1
        self.serial.last_error = _describe(exc)

    def record_serial_reopen(self) -> None:
        self.serial.reopens += 1

    def record_mqtt_connected(self) -> None:
        self.mqtt.connected = True
        self.mqtt.connects += 1
        self.mqtt.last_connect_unix = time.time()

    def record_mqtt_disconnected(self, exc: BaseException | None = None) -> None:
        """Mark the broker link down; *exc* is None for an orderly shutdown."""
        if exc is not None:
            if self.mqtt.connected:
                self.mqtt.disconnects += 1
            self.mqtt.last_error = _describe(exc)
        self.mqtt.connected = False


def create_bridge_state(config: RuntimeConfig) -> BridgeState:
    state = BridgeState()
    state.configure(config)
    return state
