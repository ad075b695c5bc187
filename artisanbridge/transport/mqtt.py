"""MQTT telemetry listener for the Artisan bridge daemon."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiomqtt
import tenacity
from transitions import Machine

from artisanbridge.config.model import RuntimeConfig
from artisanbridge.const import TELEMETRY_QOS
from artisanbridge.state.cache import LatestValueCache
from artisanbridge.state.context import BridgeState
from artisanbridge.telemetry import TelemetryDecodeError, decode
from artisanbridge.util import log_hexdump
from artisanbridge.util.mqtt_helper import configure_tls_context

logger = logging.getLogger("artisanbridge.mqtt")

_CONNECTION_ERRORS = (aiomqtt.MqttError, OSError, asyncio.TimeoutError)


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode("utf-8")
    raise TelemetryDecodeError(f"unsupported payload type {type(payload).__name__}")


class TelemetryListener:
    """Keeps one subscription to the device telemetry topic alive.

    Two states only: ``connecting`` and ``connected``. Any connection-level
    error drops back to ``connecting`` and the next attempt starts after a
    fixed delay, forever.
    """

    # FSM States
    STATE_CONNECTING = "connecting"
    STATE_CONNECTED = "connected"

    def __init__(
        self,
        config: RuntimeConfig,
        cache: LatestValueCache,
        state: BridgeState,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.cache = cache
        self.state = state
        self.topic = config.telemetry_topic
        self._sleep = sleep
        self.fsm_state = self.STATE_CONNECTING

        self.machine = Machine(
            model=self,
            states=[self.STATE_CONNECTING, self.STATE_CONNECTED],
            initial=self.STATE_CONNECTING,
            model_attribute="fsm_state",
            ignore_invalid_triggers=True,
        )
        self.machine.add_transition("connected", self.STATE_CONNECTING, self.STATE_CONNECTED)
        self.machine.add_transition("connection_lost", "*", self.STATE_CONNECTING)

        # Bad parameters surface here, before the bridge starts.
        self.client = self._build_client()

    def _build_client(self) -> aiomqtt.Client:
        return aiomqtt.Client(
            hostname=self.config.mqtt_host,
            port=self.config.mqtt_port,
            identifier=self.config.mqtt_client_id,
            username=self.config.mqtt_user or None,
            password=self.config.mqtt_pass or None,
            keepalive=self.config.mqtt_keepalive,
            clean_session=True,
            tls_context=configure_tls_context(self.config),
            logger=logging.getLogger("artisanbridge.mqtt.client"),
        )

    def _before_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.info(
            "Reconnecting to MQTT broker in %.1fs (attempt %d)...",
            delay,
            retry_state.attempt_number + 1,
        )

    async def run(self) -> None:
        """Connect, subscribe and process telemetry until cancelled."""
        retryer = tenacity.AsyncRetrying(
            wait=tenacity.wait_fixed(self.config.reconnect_delay),
            retry=tenacity.retry_if_exception_type(_CONNECTION_ERRORS),
            stop=tenacity.stop_never,
            before_sleep=self._before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retryer:
                with attempt:
                    try:
                        await self._session()
                    except _CONNECTION_ERRORS as exc:
                        logger.error("MQTT error: %s", exc)
                        self.state.record_mqtt_disconnected(exc)
                        raise
                    finally:
                        self.trigger("connection_lost")
        except asyncio.CancelledError:
            logger.info("MQTT listener stopping.")
            self.state.record_mqtt_disconnected()
            raise

    async def _session(self) -> None:
        logger.info(
            "Connecting to MQTT broker %s:%d as %s",
            self.config.mqtt_host,
            self.config.mqtt_port,
            self.config.mqtt_client_id,
        )
        async with self.client as client:
            self.trigger("connected")
            self.state.record_mqtt_connected()
            logger.info("MQTT connected successfully")

            await client.subscribe(self.topic, qos=TELEMETRY_QOS)
            logger.info("Subscribed to: %s", self.topic)

            async for message in client.messages:
                await self.handle_message(message)

        # The message stream only ends when the connection goes away.
        raise aiomqtt.MqttError("Message stream ended")

    async def handle_message(self, message: aiomqtt.Message) -> None:
        """Decode one inbound message and overwrite the cache on success."""
        if not message.topic.matches(self.topic):
            self.state.record_ignored_topic()
            logger.debug("Ignoring message on %s", message.topic)
            return

        try:
            payload = _payload_bytes(message.payload)
            if logger.isEnabledFor(logging.DEBUG):
                log_hexdump(logger, logging.DEBUG, f"MQTT SUB < {message.topic}", payload)
            record = decode(payload)
        except TelemetryDecodeError as exc:
            logger.error("Failed to parse telemetry: %s", exc)
            self.state.record_decode_error(exc)
            return

        await self.cache.set(record)
        self.state.record_telemetry(record.bean_temp, record.env_temp)
        logger.info("Telemetry: BT=%.1f°C, ET=%.1f°C", record.bean_temp, record.env_temp)


__all__ = ["TelemetryListener"]
