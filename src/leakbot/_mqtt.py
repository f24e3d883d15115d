"""Internal MQTT bus client built on paho-mqtt."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import paho.mqtt.client as mqtt

from leakbot._constants import DEFAULT_MQTT_CLIENT_ID, DEFAULT_MQTT_KEEPALIVE
from leakbot.exceptions import LeakBotConnectionError


@dataclass(frozen=True)
class MqttPublish:
    """Inbound PUBLISH as received from the broker."""

    topic: str
    payload: bytes


@dataclass(frozen=True)
class MqttNotice:
    """Any other broker event (CONNACK, SUBACK); informational only."""

    kind: str
    detail: str = ""


MqttEvent = MqttPublish | MqttNotice


class BusClient(Protocol):
    """Structural bus interface driven by the bridge.

    One instance covers one connection attempt; a fresh one is created
    after every failure.
    """

    async def connect(self) -> None:
        ...

    async def subscribe(self, topic: str) -> None:
        ...

    async def next_event(self) -> MqttEvent:
        ...

    async def close(self) -> None:
        ...


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
        clean_session=True,
    )


def _reason_value(reason_code: Any) -> int:
    value = getattr(reason_code, "value", reason_code)
    return int(value)


class MqttBusClient:
    """Threaded paho-mqtt client that hands broker events to an asyncio queue.

    paho runs its network loop on its own thread (``loop_start``). Every
    callback is marshalled onto the asyncio loop with
    ``call_soon_threadsafe`` so futures and the queue are only touched from
    the loop thread. Connection loss is queued as a
    :class:`LeakBotConnectionError` and raised from :meth:`next_event`.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        client_id: str = DEFAULT_MQTT_CLIENT_ID,
        keepalive: int = DEFAULT_MQTT_KEEPALIVE,
        username: str | None = None,
        password: str | None = None,
        ack_timeout: float = 10.0,
        client_factory: Callable[[str], mqtt.Client] = _default_client_factory,
        logger: logging.Logger | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._client_id = client_id
        self._keepalive = keepalive
        self._username = username
        self._password = password
        self._ack_timeout = ack_timeout
        self._client_factory = client_factory
        self._logger = logger or logging.getLogger(__name__)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._client: mqtt.Client | None = None
        self._events: asyncio.Queue[MqttEvent | LeakBotConnectionError] = asyncio.Queue()
        self._connack: asyncio.Future[None] | None = None
        self._subacks: dict[int, asyncio.Future[None]] = {}
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._connack is not None and self._connack.done()

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _dispatch(self, handler: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(handler, *args)

    def _on_connect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        self._dispatch(self._handle_connack, _reason_value(reason_code), str(reason_code))

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        self._dispatch(self._handle_disconnect, _reason_value(reason_code), str(reason_code))

    def _on_subscribe(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        mid: int,
        reason_codes: list[Any],
        _properties: Any,
    ) -> None:
        self._dispatch(self._handle_suback, mid, [_reason_value(rc) for rc in reason_codes])

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        try:
            event = MqttPublish(topic=msg.topic, payload=bytes(msg.payload))
        except UnicodeDecodeError:
            self._logger.warning("Dropping PUBLISH with non UTF-8 topic")
            return
        self._dispatch(self._events.put_nowait, event)

    # ------------------------------------------------------------------
    # Loop-thread handlers
    # ------------------------------------------------------------------

    def _handle_connack(self, code: int, reason: str) -> None:
        waiter = self._connack
        if code != 0:
            self._logger.warning("MQTT connect refused: %s", reason)
            if waiter is not None and not waiter.done():
                waiter.set_exception(LeakBotConnectionError(f"MQTT connect refused: {reason}", reason_code=code))
            return
        self._logger.debug("MQTT connected reason=%s", reason)
        if waiter is not None and not waiter.done():
            waiter.set_result(None)
        self._events.put_nowait(MqttNotice(kind="connack", detail=reason))

    def _handle_disconnect(self, code: int, reason: str) -> None:
        if self._closed:
            return
        error = LeakBotConnectionError(f"MQTT disconnected: {reason}", reason_code=code)
        waiter = self._connack
        if waiter is not None and not waiter.done():
            waiter.set_exception(error)
        for pending in self._subacks.values():
            if not pending.done():
                pending.set_exception(error)
        self._subacks.clear()
        self._events.put_nowait(error)

    def _handle_suback(self, mid: int, codes: list[int]) -> None:
        waiter = self._subacks.pop(mid, None)
        if waiter is None or waiter.done():
            return
        if any(code >= 0x80 for code in codes):
            waiter.set_exception(LeakBotConnectionError(f"MQTT subscribe rejected: {codes}", reason_code=max(codes)))
            return
        waiter.set_result(None)
        self._events.put_nowait(MqttNotice(kind="suback", detail=str(codes)))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def _require_client(self) -> mqtt.Client:
        if self._client is None:
            raise LeakBotConnectionError("MQTT client is not connected")
        return self._client

    async def connect(self) -> None:
        """Open the TCP connection and wait for CONNACK."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._logger.debug(
            "MQTT connect host=%s port=%s client_id=%s keepalive=%s",
            self._host,
            self._port,
            self._client_id,
            self._keepalive,
        )

        client = self._client_factory(self._client_id)
        client.enable_logger(self._logger)
        if self._username:
            client.username_pw_set(self._username, self._password)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message

        self._connack = loop.create_future()
        self._client = client
        try:
            await loop.run_in_executor(
                None,
                functools.partial(client.connect, self._host, self._port, keepalive=self._keepalive),
            )
        except OSError as exc:
            raise LeakBotConnectionError(f"MQTT connect to {self._host}:{self._port} failed: {exc}") from exc
        client.loop_start()

        try:
            await asyncio.wait_for(self._connack, self._ack_timeout)
        except TimeoutError as exc:
            raise LeakBotConnectionError("MQTT connect timed out waiting for CONNACK") from exc

    async def subscribe(self, topic: str) -> None:
        """Subscribe to *topic* with QoS 0 and wait for SUBACK."""
        client = self._require_client()
        loop = asyncio.get_running_loop()
        result, mid = client.subscribe(topic, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise LeakBotConnectionError(
                f"MQTT subscribe to {topic} failed: {mqtt.error_string(result)}",
                reason_code=int(result),
            )
        waiter: asyncio.Future[None] = loop.create_future()
        self._subacks[mid] = waiter
        try:
            await asyncio.wait_for(waiter, self._ack_timeout)
        except TimeoutError as exc:
            raise LeakBotConnectionError(f"MQTT subscribe to {topic} timed out") from exc
        finally:
            self._subacks.pop(mid, None)

    async def next_event(self) -> MqttEvent:
        """Wait for the next broker event; raise on connection loss."""
        item = await self._events.get()
        if isinstance(item, LeakBotConnectionError):
            raise item
        return item

    async def close(self) -> None:
        """Disconnect and stop the network thread. Safe to call twice."""
        self._closed = True
        client = self._client
        self._client = None
        if client is None:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._shutdown, client)

    def _shutdown(self, client: mqtt.Client) -> None:
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
