"""
MQTT Client Connection Lifecycle.

This module provides:
- `MqttClient`, the client-side facade: initializes the protocol engine,
  registers the event hooks, and exposes start/stop/publish/subscribe.
- Automatic reconnection through a single `ReconnectSupervisor`.
- `connect_client`, a factory that builds and starts a client in one call.
"""
import asyncio
import logging
from typing import Optional, Union

from mqtt_facade.client.config import ConnectionConfig
from mqtt_facade.client.engine import AiomqttEngine, ClientEngine, ConnectOptions
from mqtt_facade.client.publisher import Publisher
from mqtt_facade.client.subscriptions import SubscriptionManager
from mqtt_facade.client.supervisor import ConnectionState, ReconnectSupervisor, Sleep
from mqtt_facade.errors import EngineError, ErrorRouter, OperationResult
from mqtt_facade.events import ClientEventTranslator
from mqtt_facade.models import Payload, PublishQos

logger = logging.getLogger(__name__)


class MqttClient:
    config: ConnectionConfig
    engine: Optional[ClientEngine]
    supervisor: Optional[ReconnectSupervisor]
    translator: Optional[ClientEventTranslator]
    _publisher: Optional[Publisher]
    _subscriptions: Optional[SubscriptionManager]

    """
    Facade over the client protocol engine.

    Usage:
        client = MqttClient(ConnectionConfig(
            server_address="127.0.0.1",
            port=1883,
            message_received_callback=lambda m: print(m.payload_utf8),
        ))
        await client.start()
        await client.subscribe("/TopicName/")
    """
    def __init__(
        self,
        config: Optional[ConnectionConfig] = None,
        engine: Optional[ClientEngine] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config or ConnectionConfig()
        self.errors = ErrorRouter(self.config.error_handler)
        self.engine = None
        self.supervisor = None
        self.translator = None
        self._publisher = None
        self._subscriptions = None
        self._initialize(engine, sleep)

    def _initialize(self, engine: Optional[ClientEngine], sleep: Sleep) -> None:
        try:
            self.engine = engine if engine is not None else AiomqttEngine()
            self.supervisor = ReconnectSupervisor(
                self.engine,
                ConnectOptions.from_config(self.config),
                interval=self.config.reconnect_interval_seconds,
                errors=self.errors,
                sleep=sleep,
            )
            self.translator = ClientEventTranslator(self.config.message_received_callback)
            self.engine.set_event_hooks(
                on_message=self.translator.message_received,
                on_disconnected=self.supervisor.on_disconnected,
            )
            self._publisher = Publisher(self.engine, self.supervisor, self.errors)
            self._subscriptions = SubscriptionManager(self.engine)
        except Exception as e:
            logger.error(f"Failed to initialize MQTT client: {e}")
            self.supervisor = None
            error = e if isinstance(e, EngineError) else EngineError(f"Initialization failed: {e}")
            self.errors.handle(error)

    @property
    def initialized(self) -> bool:
        return self.supervisor is not None

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def is_connected(self) -> bool:
        return self.engine is not None and self.engine.is_connected

    @property
    def state(self) -> ConnectionState:
        return self.supervisor.state if self.supervisor else ConnectionState.IDLE

    def _not_initialized(self) -> OperationResult:
        return self.errors.handle(EngineError("MQTT client is not initialized"))

    async def start(self) -> OperationResult:
        """
        Connects to the configured broker and waits for the outcome.
        """
        if not self.initialized:
            return self._not_initialized()
        logger.info(f"Starting MQTT client, connecting to {self.config.server_address}:{self.config.port}...")
        try:
            await self.supervisor.connect()
        except EngineError as e:
            logger.error(f"MQTT connect failed: {e}")
            return self.errors.handle(e)
        return OperationResult.success()

    async def stop(self) -> OperationResult:
        """
        Normal disconnect; no reconnect follows it.
        """
        if not self.initialized:
            return self._not_initialized()
        logger.info("Stopping MQTT client...")
        try:
            await self.supervisor.disconnect()
        except EngineError as e:
            logger.error(f"Error during MQTT stop: {e}")
            return self.errors.handle(e)
        return OperationResult.success()

    async def publish(self, topic: str, payload: Payload, qos: Union[PublishQos, int] = PublishQos.QOS_0) -> OperationResult:
        """
        Sends a message with the retain flag set, reconnecting first if the
        connection was lost. See `Publisher.publish`.
        """
        if not self.initialized:
            return self._not_initialized()
        return await self._publisher.publish(topic, payload, qos)

    async def subscribe(self, topic: str) -> None:
        if not self.initialized:
            raise EngineError("MQTT client is not initialized")
        await self._subscriptions.subscribe(topic)

    async def unsubscribe(self, topic: str) -> None:
        if not self.initialized:
            raise EngineError("MQTT client is not initialized")
        await self._subscriptions.unsubscribe(topic)

    async def __aenter__(self) -> "MqttClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


async def connect_client(config: Optional[ConnectionConfig] = None, engine: Optional[ClientEngine] = None) -> MqttClient:
    """Builds a client and starts it right away."""
    client = MqttClient(config, engine=engine)
    await client.start()
    return client
