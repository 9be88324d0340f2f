"""
Client Protocol Engine.

This module provides:
- `ClientEngine`, the small operation/event contract the client facade drives.
- `AiomqttEngine`, the implementation on top of `aiomqtt`.

One connection is one asyncio task running inside `async with Client(...)`.
The task also reads inbound messages, so message callbacks are invoked
sequentially from that task. Leaving the block for any reason other than a
requested disconnect is reported as a disconnect event.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from aiomqtt import Client as MQTTClient, MqttError, ProtocolVersion

from mqtt_facade.client.config import ConnectionConfig
from mqtt_facade.errors import EngineError
from mqtt_facade.models import OutboundMessage

logger = logging.getLogger(__name__)

MessageHook = Callable[[str, bytes, int, bool], None]
DisconnectHook = Callable[[Optional[Exception]], None]


@dataclass(frozen=True, kw_only=True)
class ConnectOptions:
    """Everything the engine needs to (re)open the connection."""
    host: str
    port: int
    client_id: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    protocol_version: int = 4
    keepalive: int = 60

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "ConnectOptions":
        return cls(
            host=config.server_address.strip(),
            port=config.port,
            client_id=config.client_id,
            username=config.username,
            password=config.password,
            protocol_version=config.protocol_version,
            keepalive=config.keepalive,
        )


class ClientEngine(Protocol):
    @property
    def is_connected(self) -> bool: ...

    def set_event_hooks(self, on_message: MessageHook, on_disconnected: DisconnectHook) -> None: ...

    async def connect(self, options: ConnectOptions) -> None: ...

    async def disconnect(self) -> None: ...

    async def publish(self, message: OutboundMessage) -> None: ...

    async def subscribe(self, topic: str) -> None: ...

    async def unsubscribe(self, topic: str) -> None: ...


class AiomqttEngine:
    """
    `ClientEngine` backed by aiomqtt. aiomqtt/paho failures leave this class
    as `EngineError`.
    """
    _client: Optional[MQTTClient]
    _session_task: Optional[asyncio.Task]
    _on_message: Optional[MessageHook]
    _on_disconnected: Optional[DisconnectHook]

    def __init__(self):
        self._client = None
        self._session_task = None
        self._closing = False
        self._on_message = None
        self._on_disconnected = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def set_event_hooks(self, on_message: MessageHook, on_disconnected: DisconnectHook) -> None:
        self._on_message = on_message
        self._on_disconnected = on_disconnected

    async def connect(self, options: ConnectOptions) -> None:
        """Opens a session and waits until the broker accepted or refused it."""
        if self._session_task is not None and not self._session_task.done():
            raise EngineError("Connection is already open")
        self._closing = False
        connected = asyncio.get_running_loop().create_future()
        self._session_task = asyncio.create_task(self._run_session(options, connected))
        await connected

    async def disconnect(self) -> None:
        """Closes the session normally; no disconnect event is emitted."""
        self._closing = True
        task = self._session_task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("MQTT session closed.")
        except Exception as e:
            raise EngineError(f"MQTT session ended with an error: {e}") from e

    async def _run_session(self, options: ConnectOptions, connected: asyncio.Future) -> None:
        lost: Optional[Exception] = None
        try:
            # The connection is ONLY valid inside this block
            async with MQTTClient(
                options.host,
                options.port,
                identifier=options.client_id,
                username=options.username,
                password=options.password,
                protocol=ProtocolVersion(options.protocol_version),
                keepalive=options.keepalive,
            ) as client:
                self._client = client
                connected.set_result(None)
                logger.info(f"Connected to {options.host}:{options.port} as {options.client_id}")
                async for message in client.messages:
                    self._dispatch(message)
        except MqttError as e:
            if not connected.done():
                connected.set_exception(EngineError(f"Connect to {options.host}:{options.port} failed: {e}"))
                return
            lost = e
        except Exception as e:
            if not connected.done():
                connected.set_exception(EngineError(f"Connect to {options.host}:{options.port} failed: {e}"))
                return
            logger.error(f"MQTT session ended unexpectedly: {e}")
            lost = e
        finally:
            self._client = None
            if not connected.done():
                connected.cancel()

        if not self._closing and self._on_disconnected is not None:
            logger.warning(f"MQTT connection lost: {lost}")
            self._on_disconnected(lost)

    def _dispatch(self, message) -> None:
        payload = message.payload
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        elif payload is None:
            payload = b""
        elif not isinstance(payload, (bytes, bytearray)):
            payload = str(payload).encode("utf-8")
        logger.debug(f"Received message on '{message.topic.value}' ({len(payload)} bytes)")
        if self._on_message is None:
            return
        try:
            self._on_message(message.topic.value, bytes(payload), message.qos, message.retain)
        except Exception:
            # Callback errors are logged; the session stays open
            logger.exception(f"Message callback failed for '{message.topic.value}'")

    def _require_client(self) -> MQTTClient:
        if self._client is None:
            raise EngineError("MQTT client is not connected")
        return self._client

    async def publish(self, message: OutboundMessage) -> None:
        client = self._require_client()
        try:
            await client.publish(**message.to_aiomqtt_args())
        except MqttError as e:
            raise EngineError(f"Publish to '{message.topic}' failed: {e}") from e

    async def subscribe(self, topic: str) -> None:
        client = self._require_client()
        try:
            await client.subscribe(topic)
        except MqttError as e:
            raise EngineError(f"Subscribe to '{topic}' failed: {e}") from e

    async def unsubscribe(self, topic: str) -> None:
        client = self._require_client()
        try:
            await client.unsubscribe(topic)
        except MqttError as e:
            raise EngineError(f"Unsubscribe from '{topic}' failed: {e}") from e
