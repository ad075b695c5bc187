"""Marshmallow schema for RuntimeConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import Schema, ValidationError, fields, post_load, pre_load, validate, validates, validates_schema

from ..const import (
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_DEVICE_ID,
    DEFAULT_LOG_SYSLOG,
    DEFAULT_METRICS_ENABLED,
    DEFAULT_METRICS_HOST,
    DEFAULT_METRICS_PORT,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_SERIAL_BAUD,
    DEFAULT_SERIAL_PORT,
    DEFAULT_SERIAL_WRITE_TIMEOUT,
    DEFAULT_TICK_INTERVAL,
    MQTT_TOPIC_RESERVED_CHARS,
)
from .model import RuntimeConfig

_POSITIVE = validate.Range(min=0.0, min_inclusive=False)
_OPTIONAL_STRINGS = frozenset({"mqtt_user", "mqtt_pass", "mqtt_cafile", "mqtt_certfile", "mqtt_keyfile"})


class RuntimeConfigSchema(Schema):
    """Declarative validation schema for Artisan bridge configuration."""

    # MQTT
    mqtt_host = fields.Str(load_default=DEFAULT_MQTT_HOST, validate=validate.Length(min=1))
    mqtt_port = fields.Int(load_default=DEFAULT_MQTT_PORT, validate=validate.Range(min=1, max=65535))
    mqtt_user = fields.Str(load_default=None, allow_none=True)
    mqtt_pass = fields.Str(load_default=None, allow_none=True)
    mqtt_tls = fields.Bool(load_default=False)
    mqtt_tls_insecure = fields.Bool(load_default=False)
    mqtt_cafile = fields.Str(load_default=None, allow_none=True)
    mqtt_certfile = fields.Str(load_default=None, allow_none=True)
    mqtt_keyfile = fields.Str(load_default=None, allow_none=True)
    mqtt_keepalive = fields.Int(load_default=DEFAULT_MQTT_KEEPALIVE, validate=validate.Range(min=1))
    device_id = fields.Str(load_default=DEFAULT_DEVICE_ID, validate=validate.Length(min=1))
    reconnect_delay = fields.Float(load_default=DEFAULT_RECONNECT_DELAY, validate=_POSITIVE)

    # Serial
    serial_port = fields.Str(load_default=DEFAULT_SERIAL_PORT, validate=validate.Length(min=1))
    serial_baud = fields.Int(load_default=DEFAULT_SERIAL_BAUD, validate=validate.Range(min=50))
    serial_write_timeout = fields.Float(load_default=DEFAULT_SERIAL_WRITE_TIMEOUT, validate=_POSITIVE)
    tick_interval = fields.Float(load_default=DEFAULT_TICK_INTERVAL, validate=_POSITIVE)

    # System
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    log_syslog = fields.Bool(load_default=DEFAULT_LOG_SYSLOG)
    metrics_enabled = fields.Bool(load_default=DEFAULT_METRICS_ENABLED)
    metrics_host = fields.Str(load_default=DEFAULT_METRICS_HOST)
    metrics_port = fields.Int(load_default=DEFAULT_METRICS_PORT, validate=validate.Range(min=0, max=65535))

    @pre_load
    def strip_strings(self, data: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        cleaned: Dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
                # Empty optional credentials/paths mean "not configured".
                if not value and key in _OPTIONAL_STRINGS:
                    value = None
            cleaned[key] = value
        return cleaned

    @validates("device_id")
    def validate_device_id(self, value: str, **kwargs: Any) -> None:
        reserved = sorted(MQTT_TOPIC_RESERVED_CHARS.intersection(value))
        if reserved:
            raise ValidationError(f"device_id must not contain MQTT topic characters {''.join(reserved)!r}")

    @validates_schema
    def validate_client_certificate(self, data: Dict[str, Any], **kwargs: Any) -> None:
        certfile = data.get("mqtt_certfile")
        keyfile = data.get("mqtt_keyfile")
        if bool(certfile) != bool(keyfile):
            raise ValidationError(
                "Both mqtt_certfile and mqtt_keyfile must be provided for mTLS.",
                field_name="mqtt_certfile",
            )
        if (certfile or data.get("mqtt_cafile")) and not data.get("mqtt_tls"):
            raise ValidationError(
                "TLS files are configured but mqtt_tls is disabled.",
                field_name="mqtt_tls",
            )

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> RuntimeConfig:
        return RuntimeConfig(**data)
