"""Transport abstractions (serial, MQTT) for the Artisan bridge daemon."""

from .mqtt import TelemetryListener
from .serial import SerialOpenError, SerialWriter, open_serial_sink

__all__ = [
    "SerialOpenError",
    "SerialWriter",
    "TelemetryListener",
    "open_serial_sink",
]
