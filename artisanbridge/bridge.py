"""Bridge supervisor: wires the cache, the serial writer and the MQTT listener.

Architecture:
    BridgeSupervisor.run() -> TaskGroup
        ├── serial-writer (SerialWriter.run, background)
        ├── prometheus-exporter (optional)
        └── mqtt-listener (TelemetryListener.run, foreground)

The two telemetry paths only meet at the LatestValueCache. The serial sink
and the broker client are both created before any task starts, so a bad
device path or unusable broker parameters abort startup instead of being
retried.
"""

from __future__ import annotations

import asyncio
import logging

from .config.model import RuntimeConfig
from .metrics import PrometheusExporter
from .state.cache import LatestValueCache
from .state.context import BridgeState, create_bridge_state
from .transport.mqtt import TelemetryListener
from .transport.serial import SerialOpenError, SerialSink, SerialWriter, open_serial_sink

logger = logging.getLogger("artisanbridge.bridge")


class BridgeStartupError(RuntimeError):
    """Raised when the bridge cannot start (serial sink or broker client)."""


class BridgeSupervisor:
    """Owns the latest-value cache and the lifetimes of both bridge activities."""

    def __init__(self, config: RuntimeConfig, state: BridgeState | None = None) -> None:
        self.config = config
        self.state = state or create_bridge_state(config)
        self.cache = LatestValueCache()
        self.writer: SerialWriter | None = None
        self.listener: TelemetryListener | None = None
        self.exporter: PrometheusExporter | None = None

    async def _open_sink(self) -> SerialSink:
        return await open_serial_sink(self.config)

    def _build_listener(self) -> TelemetryListener:
        return TelemetryListener(self.config, self.cache, self.state)

    async def start(self) -> None:
        """Open the serial sink and build the broker client.

        Raises:
            BridgeStartupError: either resource could not be created.
        """
        try:
            sink = await self._open_sink()
        except SerialOpenError as exc:
            raise BridgeStartupError(str(exc)) from exc

        try:
            self.listener = self._build_listener()
        except (RuntimeError, ValueError, TypeError) as exc:
            sink.close()
            raise BridgeStartupError(f"Cannot create MQTT client: {exc}") from exc

        self.writer = SerialWriter(
            sink,
            self.cache,
            self.state,
            tick_interval=self.config.tick_interval,
            write_timeout=self.config.serial_write_timeout,
            reopen=self._open_sink,
        )

        if self.config.metrics_enabled:
            self.exporter = PrometheusExporter(
                self.state,
                self.config.metrics_host,
                self.config.metrics_port,
            )

    async def _run_exporter(self, exporter: PrometheusExporter) -> None:
        # Metrics are optional; an exporter that cannot bind must not stop the bridge.
        try:
            await exporter.run()
        except OSError as exc:
            logger.error("Prometheus exporter unavailable: %s", exc)

    async def run(self) -> None:
        """Start the bridge and run until cancelled."""
        await self.start()
        assert self.writer is not None and self.listener is not None

        try:
            async with asyncio.TaskGroup() as task_group:
                task_group.create_task(self.writer.run(), name="serial-writer")
                if self.exporter is not None:
                    task_group.create_task(self._run_exporter(self.exporter), name="prometheus-exporter")
                await self.listener.run()
        finally:
            self.writer.close()
            logger.info("Artisan bridge stopped.")


__all__ = ["BridgeStartupError", "BridgeSupervisor"]
