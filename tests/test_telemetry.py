"""Tests for telemetry decoding and serial formatting."""

from __future__ import annotations

import msgspec
import pytest

from artisanbridge import telemetry
from artisanbridge.telemetry import TelemetryDecodeError, decode, format_for_serial
from mocks import SCENARIO_PAYLOAD, make_record


def test_decode_scenario_payload() -> None:
    record = decode(SCENARIO_PAYLOAD)

    assert record.timestamp == 1000
    assert record.bean_temp == 25.0
    assert record.env_temp == 23.0
    assert record.rate_of_rise == 0.0
    assert record.heater_pwm == 10
    assert record.fan_pwm == 150
    assert record.setpoint == 200.0
    assert record.control_mode == 1
    assert record.heater_enable == 1
    assert record.uptime == 5


def test_decode_accepts_str_payload() -> None:
    assert decode(SCENARIO_PAYLOAD.decode()) == decode(SCENARIO_PAYLOAD)


def test_format_for_serial_rounds_to_one_decimal() -> None:
    record = make_record(bean_temp=87.456, env_temp=64.04)
    assert format_for_serial(record) == "87.5,64.0\n"


def test_format_for_serial_scenario() -> None:
    assert format_for_serial(decode(SCENARIO_PAYLOAD)) == "25.0,23.0\n"


def test_format_for_serial_negative_and_large_values() -> None:
    record = make_record(bean_temp=-3.25, env_temp=1234.0)
    assert format_for_serial(record) == "-3.2,1234.0\n"


def test_encode_uses_camel_case_wire_names() -> None:
    raw = msgspec.json.decode(telemetry.encode(make_record()))
    assert set(raw) == {
        "timestamp",
        "beanTemp",
        "envTemp",
        "rateOfRise",
        "heaterPWM",
        "fanPWM",
        "setpoint",
        "controlMode",
        "heaterEnable",
        "uptime",
    }


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"",
        b"[]",
        b'{"beanTemp": 25.0}',
        SCENARIO_PAYLOAD.replace(b'"beanTemp":25.0', b'"beanTemp":"hot"'),
        SCENARIO_PAYLOAD.replace(b'"fanPWM":150', b'"fanPWM":300'),
        SCENARIO_PAYLOAD.replace(b'"uptime":5', b'"uptime":-1'),
        SCENARIO_PAYLOAD[:-10],
    ],
)
def test_decode_rejects_malformed_payloads(payload: bytes) -> None:
    with pytest.raises(TelemetryDecodeError):
        decode(payload)


def test_records_are_immutable() -> None:
    record = make_record()
    with pytest.raises(AttributeError):
        record.bean_temp = 99.0  # type: ignore[misc]


def test_decode_accepts_full_uint64_range() -> None:
    payload = SCENARIO_PAYLOAD.replace(b'"uptime":5', b'"uptime":18446744073709551615')
    assert decode(payload).uptime == 2**64 - 1


@pytest.mark.parametrize("value", [b"18446744073709551616", b"-1"])
@pytest.mark.parametrize("field", [b"timestamp", b"uptime"])
def test_decode_rejects_uint64_out_of_range(field: bytes, value: bytes) -> None:
    original = b'"timestamp":1000' if field == b"timestamp" else b'"uptime":5'
    payload = SCENARIO_PAYLOAD.replace(original, b'"' + field + b'":' + value)

    with pytest.raises(TelemetryDecodeError):
        decode(payload)
