"""Single-slot cache holding the freshest telemetry record."""

from __future__ import annotations

import asyncio

from ..telemetry import TelemetryRecord


class LatestValueCache:
    """Latest-value slot shared by the MQTT listener and the serial writer.

    Records are immutable, so handing out the stored reference is a copy for
    every practical purpose. The lock is held only while the slot is read or
    replaced, never across I/O.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._record: TelemetryRecord | None = None

    async def get(self) -> TelemetryRecord | None:
        async with self._lock:
            return self._record

    async def set(self, record: TelemetryRecord) -> None:
        async with self._lock:
            self._record = record

    def peek(self) -> TelemetryRecord | None:
        """Return the current value without taking the lock (diagnostics only)."""
        return self._record


__all__ = ["LatestValueCache"]
