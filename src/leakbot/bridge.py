"""MQTT -> Telegram leak alert bridge.

Owns:
- the bus connection lifecycle (connect, subscribe, stream, back off)
- decoding inbound publishes and evaluating them against the state cache
- dispatching one Telegram message per leak state transition
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum

from leakbot._mqtt import BusClient, MqttBusClient, MqttPublish
from leakbot._telegram import Notifier
from leakbot.config import LeakBotConfig
from leakbot.exceptions import LeakBotConnectionError, LeakBotNotifyError, LeakBotPayloadError
from leakbot.formatting import build_message
from leakbot.ingestion.mqtt import decode_text, evaluate, parse_reading
from leakbot.ingestion.topics import extract_device_id, is_bridge_topic
from leakbot.state.events import LeakTransition
from leakbot.state.store import DeviceStateCache

_logger = logging.getLogger(__name__)


class LoopState(StrEnum):
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    BACKOFF = "backoff"
    STOPPED = "stopped"


def mqtt_bus_factory(config: LeakBotConfig, logger: logging.Logger | None = None) -> Callable[[], BusClient]:
    """Build a factory creating one :class:`MqttBusClient` per connection attempt."""

    def factory() -> BusClient:
        return MqttBusClient(
            host=config.mqtt_host,
            port=config.mqtt_port,
            client_id=config.mqtt_client_id,
            keepalive=config.mqtt_keepalive,
            username=config.mqtt_username,
            password=config.mqtt_password,
            logger=logger,
        )

    return factory


class LeakBridge:
    """Edge-triggered leak alerting over an MQTT subscription.

    Usage::

        bridge = LeakBridge(config, notifier=TelegramNotifier(...))
        await bridge.run(stop_event)

    Everything runs sequentially on one asyncio task, so the cache needs no
    locking and alerts for a device are sent in the order they were
    evaluated.
    """

    def __init__(
        self,
        config: LeakBotConfig,
        *,
        notifier: Notifier,
        cache: DeviceStateCache | None = None,
        bus_factory: Callable[[], BusClient] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._notifier = notifier
        self._cache = cache if cache is not None else DeviceStateCache()
        self._logger = logger or _logger
        self._bus_factory = bus_factory or mqtt_bus_factory(config, logger)
        self._state = LoopState.STOPPED
        self._attempts = 0

    @property
    def cache(self) -> DeviceStateCache:
        return self._cache

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def connection_attempts(self) -> int:
        """Number of connection attempts made so far."""
        return self._attempts

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Connect, stream and reconnect until *stop* is set.

        Without a stop event the loop runs until the task is cancelled.
        """
        stop = stop or asyncio.Event()
        try:
            while not stop.is_set():
                await self._run_connection(stop)
                if stop.is_set():
                    break
                self._state = LoopState.BACKOFF
                self._logger.info("Reconnecting in %.0fs", self._config.reconnect_delay)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop.wait(), self._config.reconnect_delay)
        finally:
            self._state = LoopState.STOPPED

    async def _run_connection(self, stop: asyncio.Event) -> None:
        """One connection attempt; returns on failure or stop."""
        self._attempts += 1
        bus = self._bus_factory()
        try:
            self._state = LoopState.CONNECTING
            await bus.connect()

            self._state = LoopState.SUBSCRIBING
            await bus.subscribe(self._config.mqtt_topic)
            self._logger.info("Subscribed to MQTT topic: %s", self._config.mqtt_topic)

            self._state = LoopState.STREAMING
            await self._stream(bus, stop)
        except LeakBotConnectionError as exc:
            self._logger.error("MQTT error: %s", exc)
        except Exception:
            self._logger.exception("Unexpected MQTT failure")
        finally:
            try:
                await bus.close()
            except Exception:
                self._logger.debug("MQTT close failed", exc_info=True)

    async def _stream(self, bus: BusClient, stop: asyncio.Event) -> None:
        stop_waiter = asyncio.ensure_future(stop.wait())
        try:
            while True:
                next_event = asyncio.ensure_future(bus.next_event())
                done, _pending = await asyncio.wait(
                    {next_event, stop_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if next_event not in done:
                    next_event.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await next_event
                    return
                event = next_event.result()
                if isinstance(event, MqttPublish):
                    await self.handle_publish(event.topic, event.payload)
        finally:
            stop_waiter.cancel()

    # ------------------------------------------------------------------
    # Per-message evaluation
    # ------------------------------------------------------------------

    async def handle_publish(self, topic: str, payload: bytes) -> bool:
        """Decode, evaluate and alert on one publish.

        Returns ``True`` when a notification was dispatched (successfully or
        not). Undecodable payloads and bridge topics are logged and skipped.
        """
        try:
            text = decode_text(payload, topic=topic)
        except LeakBotPayloadError as exc:
            self._logger.debug("Skipping topic %s: %s", topic, exc)
            return False

        if is_bridge_topic(topic, self._config.bridge_prefix):
            return False

        device_id = extract_device_id(topic)

        try:
            reading = parse_reading(text, topic=topic)
        except LeakBotPayloadError as exc:
            self._logger.error("JSON parse error for topic %s: %s", topic, exc)
            return False

        transition = evaluate(self._cache, device_id=device_id, topic=topic, reading=reading)
        if transition is None:
            return False

        await self._dispatch(transition)
        return True

    async def _dispatch(self, transition: LeakTransition) -> bool:
        text = build_message(transition, self._config.places)
        self._logger.info("Send alert: %s", text)
        try:
            await self._notifier.send_message(self._config.chat_id, text)
        except LeakBotNotifyError as exc:
            self._logger.error("Telegram send error: %s", exc)
            return False
        except Exception:
            self._logger.exception("Telegram send error")
            return False
        return True
