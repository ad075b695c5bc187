"""Prometheus exporter for the Artisan bridge.

Metric families are built on every scrape straight from :class:`BridgeState`,
so the hot paths only bump plain counters and never touch prometheus_client.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    InfoMetricFamily,
    Metric,
)
from prometheus_client.registry import Collector

from .state.context import BridgeState

logger = logging.getLogger("artisanbridge.metrics")

_METRICS_PATHS = frozenset({"/", "/metrics"})
_MAX_REQUEST_HEAD = 8192
_STATUS_PHRASES = {200: "OK", 400: "Bad Request", 404: "Not Found"}


def _counter(name: str, documentation: str, value: float) -> CounterMetricFamily:
    return CounterMetricFamily(f"artisanbridge_{name}", documentation, value=value)


def _gauge(name: str, documentation: str, value: float) -> GaugeMetricFamily:
    return GaugeMetricFamily(f"artisanbridge_{name}", documentation, value=value)


class BridgeStateCollector(Collector):
    """Expose telemetry, serial and broker counters of one bridge."""

    def __init__(self, state: BridgeState) -> None:
        self._state = state

    def collect(self) -> Iterator[Metric]:
        state = self._state
        yield InfoMetricFamily(
            "artisanbridge_bridge",
            "Device and serial port served by this bridge",
            value={
                "device_id": state.device_id,
                "telemetry_topic": state.telemetry_topic,
                "serial_port": state.serial_port,
            },
        )
        yield _gauge("uptime_seconds", "Seconds since the bridge started", state.uptime_seconds)
        yield from self._telemetry_metrics()
        yield from self._serial_metrics()
        yield from self._mqtt_metrics()

    def _telemetry_metrics(self) -> Iterator[Metric]:
        telemetry = self._state.telemetry
        yield _counter("telemetry_received", "Telemetry messages decoded and cached", telemetry.received)

        rejected = CounterMetricFamily(
            "artisanbridge_telemetry_rejected",
            "Inbound messages that did not update the cache",
            labels=("reason",),
        )
        rejected.add_metric(("decode_error",), telemetry.decode_errors)
        rejected.add_metric(("foreign_topic",), telemetry.ignored_topics)
        yield rejected

        temperature = GaugeMetricFamily(
            "artisanbridge_temperature_celsius",
            "Most recent temperature reported by the roaster",
            labels=("probe",),
        )
        if telemetry.last_bean_temp is not None:
            temperature.add_metric(("bean",), telemetry.last_bean_temp)
        if telemetry.last_env_temp is not None:
            temperature.add_metric(("env",), telemetry.last_env_temp)
        yield temperature

        if telemetry.last_received_unix > 0:
            yield _gauge(
                "telemetry_age_seconds",
                "Seconds since the cached record was received",
                max(0.0, time.time() - telemetry.last_received_unix),
            )

    def _serial_metrics(self) -> Iterator[Metric]:
        serial = self._state.serial
        yield _counter("serial_lines_written", "Lines written to the Artisan serial port", serial.lines_written)
        yield _counter("serial_bytes_written", "Bytes written to the Artisan serial port", serial.bytes_written)
        yield _counter("serial_write_errors", "Ticks whose serial write failed", serial.write_errors)
        yield _counter("serial_idle_ticks", "Ticks skipped because no telemetry was cached", serial.idle_ticks)
        yield _counter("serial_reopens", "Times the serial port was reopened after a loss", serial.reopens)

    def _mqtt_metrics(self) -> Iterator[Metric]:
        mqtt = self._state.mqtt
        yield _gauge("mqtt_connected", "1 while the broker session is up", 1.0 if mqtt.connected else 0.0)
        yield _counter("mqtt_connects", "Successful broker connections", mqtt.connects)
        yield _counter("mqtt_disconnects", "Broker sessions lost to an error", mqtt.disconnects)


class PrometheusExporter:
    """Serve the bridge metrics over a minimal HTTP/1.1 endpoint."""

    def __init__(self, state: BridgeState, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._server: asyncio.AbstractServer | None = None
        self._registry = CollectorRegistry()
        self._registry.register(BridgeStateCollector(state))

    @property
    def port(self) -> int:
        if self._server is not None and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self._port

    async def start(self) -> None:
        if self._server is None:
            self._server = await asyncio.start_server(self._handle_client, self._host, self._port)
            logger.info("Prometheus exporter listening on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def run(self) -> None:
        await self.start()
        assert self._server is not None
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            status, body = self._route(head)
            content_type = CONTENT_TYPE_LATEST if status == 200 else "text/plain; charset=utf-8"
            writer.write(
                f"HTTP/1.1 {status} {_STATUS_PHRASES[status]}\r\n"
                f"Content-Type: {content_type}\r\n"
                f"Content-Length: {len(body)}\r\n"
                "Connection: close\r\n\r\n".encode("ascii") + body
            )
            await writer.drain()
        except (asyncio.IncompleteReadError, asyncio.LimitOverrunError, OSError) as exc:
            logger.debug("Metrics request dropped: %s", exc)
        finally:
            writer.close()

    def _route(self, head: bytes) -> tuple[int, bytes]:
        request_line = head.split(b"\r\n", 1)[0].decode("ascii", errors="replace").split()
        if len(request_line) < 2 or len(head) > _MAX_REQUEST_HEAD:
            return 400, b""
        method, path = request_line[0], request_line[1].split("?", 1)[0]
        if method != "GET" or path not in _METRICS_PATHS:
            return 404, b""
        return 200, self.render()

    def render(self) -> bytes:
        return generate_latest(self._registry)


__all__ = ["BridgeStateCollector", "PrometheusExporter"]
