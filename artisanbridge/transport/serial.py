"""Serial sink for Artisan, built on pyserial-asyncio-fast.

The bridge only ever writes to the port. A plain asyncio Protocol gives
direct access to the transport and its flow-control callbacks, which is all
the periodic writer needs to bound how long a single write may take.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, cast

# pyserial-asyncio-fast is mandatory; let a missing install fail at import.
import serial_asyncio_fast  # type: ignore
from serial import SerialException

from artisanbridge.config.model import RuntimeConfig
from artisanbridge.state.cache import LatestValueCache
from artisanbridge.state.context import BridgeState
from artisanbridge.telemetry import format_for_serial
from artisanbridge.util import log_hexdump

logger = logging.getLogger("artisanbridge.serial")


class SerialOpenError(OSError):
    """Raised when the serial sink cannot be opened."""


class SerialSink(Protocol):
    async def write(self, data: bytes, timeout: float) -> None: ...

    def close(self) -> None: ...


class ArtisanSerialProtocol(asyncio.Protocol):
    """Write-only protocol attached to the Artisan serial port."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self.transport: asyncio.Transport | None = None
        self.connected_future: asyncio.Future[None] = loop.create_future()
        self._can_write = asyncio.Event()
        self._can_write.set()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = cast(asyncio.Transport, transport)
        logger.info("Serial transport established.")
        if not self.connected_future.done():
            self.connected_future.set_result(None)

    def connection_lost(self, exc: Exception | None) -> None:
        logger.warning("Serial connection lost: %s", exc)
        self.transport = None
        # Wake any writer stuck waiting for the buffer to drain.
        self._can_write.set()
        if not self.connected_future.done():
            self.connected_future.set_exception(exc or ConnectionError("Closed"))

    def pause_writing(self) -> None:
        self._can_write.clear()

    def resume_writing(self) -> None:
        self._can_write.set()

    def data_received(self, data: bytes) -> None:
        # Artisan may echo or send commands; the bridge never reads them.
        log_hexdump(logger, logging.DEBUG, "Serial RX (discarded)", data)

    async def write(self, data: bytes, timeout: float) -> None:
        """Write *data* and wait up to *timeout* seconds for the buffer to drain.

        Raises:
            ConnectionError: the transport is gone or was aborted by this write.
            BlockingIOError: the previous line has not drained yet.
            asyncio.TimeoutError: the buffer did not drain in time.
        """
        transport = self.transport
        if transport is None or transport.is_closing():
            raise ConnectionError("Serial port is closed")
        if not self._can_write.is_set():
            # Never queue a fresh line behind a stale one.
            raise BlockingIOError("Serial output still blocked")
        transport.write(data)
        # The transport swallows SerialException and aborts itself instead.
        if transport.is_closing():
            raise ConnectionError("Serial write aborted the transport")
        if not self._can_write.is_set():
            await asyncio.wait_for(self._can_write.wait(), timeout)
        if self.transport is None:
            raise ConnectionError("Serial port closed during write")

    def close(self) -> None:
        if self.transport is not None and not self.transport.is_closing():
            self.transport.close()


async def open_serial_sink(config: RuntimeConfig) -> ArtisanSerialProtocol:
    """Open the configured serial port.

    Raises:
        SerialOpenError: the device does not exist, cannot be opened, or
            rejects the requested baud rate.
    """
    loop = asyncio.get_running_loop()
    logger.info("Opening serial port %s at %d baud", config.serial_port, config.serial_baud)
    try:
        _transport, proto = await serial_asyncio_fast.create_serial_connection(
            loop,
            functools.partial(ArtisanSerialProtocol, loop),
            config.serial_port,
            baudrate=config.serial_baud,
        )
        sink = cast(ArtisanSerialProtocol, proto)
        await sink.connected_future
    except (SerialException, OSError, ValueError) as exc:
        raise SerialOpenError(f"Cannot open serial port {config.serial_port}: {exc}") from exc
    return sink


class SerialWriter:
    """Periodically copies the cached telemetry record to the serial sink.

    Every tick re-emits the cached value, even if it was already sent, so
    Artisan sees a steady stream. The cache lock is released before any
    serial I/O starts. When the port drops and *reopen* is given, the sink
    is discarded and reopened on a later tick.
    """

    def __init__(
        self,
        sink: SerialSink,
        cache: LatestValueCache,
        state: BridgeState,
        *,
        tick_interval: float,
        write_timeout: float,
        reopen: Callable[[], Awaitable[SerialSink]] | None = None,
    ) -> None:
        self.sink: SerialSink | None = sink
        self.cache = cache
        self.state = state
        self.tick_interval = tick_interval
        self.write_timeout = write_timeout
        self.reopen = reopen

    async def run(self) -> None:
        logger.info("Serial writer started (tick %.3fs)", self.tick_interval)
        try:
            while True:
                await asyncio.sleep(self.tick_interval)
                await self.tick()
        except asyncio.CancelledError:
            logger.info("Serial writer stopping.")
            raise

    async def tick(self) -> bool:
        """Emit the cached record once. Returns True when a line was written."""
        record = await self.cache.get()
        if record is None:
            self.state.record_serial_idle()
            return False

        sink = self.sink or await self._reopen()
        if sink is None:
            return False

        line = format_for_serial(record).encode("ascii")
        try:
            await sink.write(line, self.write_timeout)
        except (SerialException, OSError, asyncio.TimeoutError) as exc:
            logger.error("Serial write failed: %s", str(exc) or exc.__class__.__name__)
            self.state.record_serial_error(exc)
            if isinstance(exc, ConnectionError) and self.reopen is not None:
                sink.close()
                self.sink = None
            return False

        self.state.record_serial_write(len(line))
        logger.debug("Sent to Artisan: %s", line.decode("ascii").rstrip())
        return True

    async def _reopen(self) -> SerialSink | None:
        if self.reopen is None:
            return None
        try:
            self.sink = await self.reopen()
        except SerialOpenError as exc:
            logger.warning("Serial port still unavailable: %s", exc)
            self.state.record_serial_error(exc)
            return None
        logger.info("Serial port reopened.")
        self.state.record_serial_reopen()
        return self.sink

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()


__all__ = [
    "ArtisanSerialProtocol",
    "SerialOpenError",
    "SerialSink",
    "SerialWriter",
    "open_serial_sink",
]
