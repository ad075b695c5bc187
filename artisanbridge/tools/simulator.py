#!/usr/bin/env python3
"""Publish synthetic roaster telemetry so the bridge can run without hardware."""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from collections.abc import Sequence

import aiomqtt

from artisanbridge.const import (
    DEFAULT_DEVICE_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    SIMULATOR_PUBLISH_INTERVAL,
    TELEMETRY_QOS,
    TELEMETRY_TOPIC_TEMPLATE,
)
from artisanbridge.telemetry import TelemetryRecord, encode

logger = logging.getLogger("artisanbridge.simulator")


def build_sample(counter: int, *, now_ms: int | None = None) -> TelemetryRecord:
    """Return the *counter*-th sample of a slow linear warm-up."""
    return TelemetryRecord(
        timestamp=now_ms if now_ms is not None else int(time.time() * 1000),
        bean_temp=25.0 + counter * 0.8,
        env_temp=23.0 + counter * 0.3,
        rate_of_rise=round(counter * 0.1, 2),
        heater_pwm=counter % 100,
        fan_pwm=150 + counter % 50,
        setpoint=200.0,
        control_mode=1,
        heater_enable=1,
        uptime=counter,
    )


async def publish_samples(
    client: aiomqtt.Client,
    topic: str,
    *,
    interval: float,
    count: int | None = None,
) -> int:
    """Publish samples on *topic* until cancelled or *count* are sent."""
    sent = 0
    while count is None or sent < count:
        sample = build_sample(sent)
        await client.publish(topic, encode(sample), qos=TELEMETRY_QOS)
        logger.info("BT=%.1f°C, ET=%.1f°C", sample.bean_temp, sample.env_temp)
        sent += 1
        if count is None or sent < count:
            await asyncio.sleep(interval)
    return sent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish simulated roaster telemetry.")
    parser.add_argument("--host", default=DEFAULT_MQTT_HOST, help="MQTT Broker Host")
    parser.add_argument("--port", type=int, default=DEFAULT_MQTT_PORT, help="MQTT Broker Port")
    parser.add_argument("--device-id", default=DEFAULT_DEVICE_ID, help="Roaster device identifier")
    parser.add_argument("--user", default=None, help="MQTT Username")
    parser.add_argument("--password", default=None, help="MQTT Password")
    parser.add_argument(
        "--interval",
        type=float,
        default=SIMULATOR_PUBLISH_INTERVAL,
        help="Seconds between samples",
    )
    parser.add_argument("--count", type=int, default=None, help="Stop after this many samples")
    return parser


async def _run(args: argparse.Namespace) -> None:
    topic = TELEMETRY_TOPIC_TEMPLATE.format(device_id=args.device_id)
    logger.info("Publishing simulated telemetry to %s", topic)
    async with aiomqtt.Client(
        hostname=args.host,
        port=args.port,
        username=args.user,
        password=args.password,
    ) as client:
        await publish_samples(client, topic, interval=args.interval, count=args.count)


def main(argv: Sequence[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    args = _build_parser().parse_args(argv)
    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Simulator stopped.")
    except aiomqtt.MqttError as exc:
        logger.error("MQTT publish failed: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
