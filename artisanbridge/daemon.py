#!/usr/bin/env python3
"""Entry point for the Artisan bridge daemon.

Subscribes to roaster telemetry over MQTT and feeds a two-column
temperature stream to Artisan over a serial port.

Architecture:
    main() -> BridgeSupervisor -> TaskGroup
        ├── serial-writer (SerialWriter)
        ├── mqtt-listener (TelemetryListener)
        └── prometheus-exporter (optional)
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import NoReturn

# uvloop is mandatory; fail immediately if it is not installed.
import uvloop

from artisanbridge import __version__
from artisanbridge.bridge import BridgeStartupError, BridgeSupervisor
from artisanbridge.config.logging import configure_logging
from artisanbridge.config.model import RuntimeConfig
from artisanbridge.config.settings import ConfigError, load_runtime_config

logger = logging.getLogger("artisanbridge")


async def run_bridge(config: RuntimeConfig) -> None:
    """Run the bridge until SIGINT/SIGTERM or an unrecoverable error."""
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    assert main_task is not None

    def _request_shutdown(signame: str) -> None:
        logger.info("Received %s; shutting down.", signame)
        main_task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, _request_shutdown, signum.name)

    supervisor = BridgeSupervisor(config)
    try:
        await supervisor.run()
    except asyncio.CancelledError:
        logger.info("Main task cancelled; shutting down.")
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)


def main() -> NoReturn:  # pragma: no cover (Entry point wrapper)
    try:
        config = load_runtime_config(sys.argv[1:])
    except ConfigError as exc:
        print(f"artisanbridge: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config)

    logger.info(
        "Starting Artisan bridge %s. MQTT: %s:%d topic %s, Serial: %s@%d",
        __version__,
        config.mqtt_host,
        config.mqtt_port,
        config.telemetry_topic,
        config.serial_port,
        config.serial_baud,
    )

    try:
        asyncio.run(run_bridge(config), loop_factory=uvloop.new_event_loop)
        sys.exit(0)
    except KeyboardInterrupt:
        logger.info("Daemon interrupted by user.")
        sys.exit(0)
    except BridgeStartupError as exc:
        logger.critical("Startup aborted: %s", exc)
        sys.exit(1)
    except ExceptionGroup as exc_group:
        for group_exc in exc_group.exceptions:
            logger.critical("Fatal error in task group: %s", group_exc, exc_info=group_exc)
        sys.exit(1)
    except (RuntimeError, OSError) as exc:
        logger.critical("Fatal error during daemon execution: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
