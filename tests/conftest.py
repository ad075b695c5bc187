"""Pytest configuration for Artisan bridge tests."""

from __future__ import annotations

import logging

import pytest

from artisanbridge.config.model import RuntimeConfig
from artisanbridge.const import (
    DEFAULT_DEVICE_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_SERIAL_BAUD,
    DEFAULT_SERIAL_PORT,
)
from artisanbridge.state.cache import LatestValueCache
from artisanbridge.state.context import BridgeState, create_bridge_state


@pytest.fixture(scope="session")
def event_loop_policy():
    """Provide uvloop event loop policy for pytest-asyncio."""
    import warnings

    import uvloop

    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore",
            message=".*AbstractEventLoopPolicy.*",
            category=DeprecationWarning,
        )
        policy = uvloop.EventLoopPolicy()
    return policy


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    """Close and remove all logging handlers after each test to prevent ResourceWarnings."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        try:
            handler.close()
        except (OSError, RuntimeError):
            pass
        root.removeHandler(handler)


@pytest.fixture()
def runtime_config() -> RuntimeConfig:
    return RuntimeConfig(
        mqtt_host=DEFAULT_MQTT_HOST,
        mqtt_port=DEFAULT_MQTT_PORT,
        device_id=DEFAULT_DEVICE_ID,
        serial_port=DEFAULT_SERIAL_PORT,
        serial_baud=DEFAULT_SERIAL_BAUD,
    )


@pytest.fixture()
def bridge_state(runtime_config: RuntimeConfig) -> BridgeState:
    return create_bridge_state(runtime_config)


@pytest.fixture()
def cache() -> LatestValueCache:
    return LatestValueCache()
