"""Roaster telemetry record and its wire formats.

Inbound telemetry arrives as camel-cased JSON published by the roaster
controller. Outbound, Artisan only understands a two-column temperature
stream, so everything except bean and environment temperature is dropped
when a record is rendered for the serial line.
"""

from __future__ import annotations

from typing import Annotated, Final

import msgspec

UINT8_MAX: Final[int] = 0xFF
UINT64_MAX: Final[int] = 0xFFFFFFFFFFFFFFFF

UInt8 = Annotated[int, msgspec.Meta(ge=0, le=UINT8_MAX)]
# msgspec only takes bounds that fit an int64; the upper limit is checked in decode().
UInt64 = Annotated[int, msgspec.Meta(ge=0)]

_UINT64_FIELDS: Final[tuple[str, ...]] = ("timestamp", "uptime")

_WIRE_NAMES: Final[dict[str, str]] = {
    "timestamp": "timestamp",
    "bean_temp": "beanTemp",
    "env_temp": "envTemp",
    "rate_of_rise": "rateOfRise",
    "heater_pwm": "heaterPWM",
    "fan_pwm": "fanPWM",
    "setpoint": "setpoint",
    "control_mode": "controlMode",
    "heater_enable": "heaterEnable",
    "uptime": "uptime",
}


class TelemetryDecodeError(ValueError):
    """Raised when an inbound payload cannot be decoded into a record."""


class TelemetryRecord(msgspec.Struct, frozen=True, rename=_WIRE_NAMES):
    """One decoded sample of roaster sensor and actuator state."""

    timestamp: UInt64
    bean_temp: float
    env_temp: float
    rate_of_rise: float
    heater_pwm: UInt8
    fan_pwm: UInt8
    setpoint: float
    control_mode: UInt8
    heater_enable: UInt8
    uptime: UInt64


_DECODER: Final = msgspec.json.Decoder(TelemetryRecord)
_ENCODER: Final = msgspec.json.Encoder()


def decode(payload: bytes | bytearray | memoryview | str) -> TelemetryRecord:
    """Decode one complete JSON payload into a :class:`TelemetryRecord`.

    Raises:
        TelemetryDecodeError: payload is not JSON, a field is missing, or a
            field has the wrong type or is out of range.
    """
    try:
        record = _DECODER.decode(payload)
    except msgspec.DecodeError as exc:
        # msgspec.ValidationError subclasses DecodeError.
        raise TelemetryDecodeError(str(exc)) from exc
    for name in _UINT64_FIELDS:
        if getattr(record, name) > UINT64_MAX:
            raise TelemetryDecodeError(f"Expected `int` <= {UINT64_MAX} - at `$.{_WIRE_NAMES[name]}`")
    return record


def encode(record: TelemetryRecord) -> bytes:
    """Encode a record back to its camel-cased JSON wire form."""
    return _ENCODER.encode(record)


def format_for_serial(record: TelemetryRecord) -> str:
    """Render ``"<beanTemp>,<envTemp>\\n"`` with one decimal place each.

    Python's format mini-language ignores the process locale, so the decimal
    separator is always ``.``.
    """
    return f"{record.bean_temp:.1f},{record.env_temp:.1f}\n"


__all__ = [
    "TelemetryDecodeError",
    "TelemetryRecord",
    "decode",
    "encode",
    "format_for_serial",
]
