"""TLS helpers shared by the bridge daemon and the telemetry simulator."""

from __future__ import annotations

import logging
import ssl
from pathlib import Path

from artisanbridge.config.model import RuntimeConfig

logger = logging.getLogger("artisanbridge.util.mqtt")

MQTT_TLS_MIN_VERSION = ssl.TLSVersion.TLSv1_2


def configure_tls_context(config: RuntimeConfig) -> ssl.SSLContext | None:
    """Create an ssl.SSLContext based on the provided RuntimeConfig."""
    if not config.tls_enabled:
        return None

    try:
        if config.mqtt_cafile:
            if not Path(config.mqtt_cafile).exists():
                raise RuntimeError(f"MQTT TLS CA file missing: {config.mqtt_cafile}")
            context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=config.mqtt_cafile)
        else:
            context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)

        context.minimum_version = MQTT_TLS_MIN_VERSION

        if config.mqtt_tls_insecure:
            context.check_hostname = False

        if config.mqtt_certfile or config.mqtt_keyfile:
            if not (config.mqtt_certfile and config.mqtt_keyfile):
                raise ValueError("Both mqtt_certfile and mqtt_keyfile must be provided for mTLS.")
            context.load_cert_chain(config.mqtt_certfile, config.mqtt_keyfile)

        return context
    except (OSError, ssl.SSLError, ValueError) as exc:
        raise RuntimeError(f"TLS setup failed: {exc}") from exc
