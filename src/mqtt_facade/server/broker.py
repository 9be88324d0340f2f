"""
Embedded MQTT Broker Setup and Management.

This module is responsible for:
- Building the `amqtt` broker configuration (listener, admission and
  event plugins) from a `ServerConfig`.
- Managing the broker's lifecycle (start, stop).
- Routing initialization and lifecycle failures to the configured error
  handler, or raising them when there is none.
"""
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from amqtt.broker import Broker as AMQTTBroker

from mqtt_facade.errors import EngineError, ErrorRouter, OperationResult
from mqtt_facade.events import ServerEventTranslator
from mqtt_facade.server.config import ServerConfig
from mqtt_facade.server.security import ServerAdmissionPolicy

logger = logging.getLogger(__name__)

ADMISSION_PLUGIN = "mqtt_facade.server.plugins.AdmissionAuthPlugin"
EVENT_PLUGIN = "mqtt_facade.server.plugins.EventBridgePlugin"


class ServerEngine(Protocol):
    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...


class AmqttBrokerEngine:
    """
    `ServerEngine` backed by the amqtt broker. The broker object is created
    on start because amqtt binds it to the running event loop.
    """
    broker_config: Dict[str, Any]
    broker: Optional[AMQTTBroker]

    def __init__(self, broker_config: Dict[str, Any]):
        self.broker_config = broker_config
        self.broker = None

    async def start(self) -> None:
        try:
            self.broker = AMQTTBroker(self.broker_config)
            await self.broker.start()
        except Exception as e:
            self.broker = None
            raise EngineError(f"Broker failed to start: {e}") from e

    async def shutdown(self) -> None:
        if self.broker is None:
            return
        try:
            await self.broker.shutdown()
        except Exception as e:
            raise EngineError(f"Broker failed to shut down: {e}") from e
        finally:
            self.broker = None


EngineFactory = Callable[[Dict[str, Any]], ServerEngine]


def build_broker_config(config: ServerConfig, policy: ServerAdmissionPolicy, translator: ServerEventTranslator) -> Dict[str, Any]:
    """The amqtt configuration dictionary for `config`."""
    return {
        "listeners": {
            "default": {
                "type": "tcp",
                "bind": f"{config.host}:{policy.listen_port(config.port)}",
            },
        },
        "plugins": {
            ADMISSION_PLUGIN: {"policy": policy},
            EVENT_PLUGIN: {"translator": translator},
        },
    }


class EmbeddedBroker:
    config: ServerConfig
    policy: Optional[ServerAdmissionPolicy]
    translator: Optional[ServerEventTranslator]
    broker_config: Dict[str, Any]
    engine: Optional[ServerEngine]

    """
    Manages the lifecycle and configuration of the embedded amqtt broker.

    Usage:
        broker = EmbeddedBroker(ServerConfig(
            admission=AdmissionConfig(port=1884),
            on_message_received=lambda e: print(e.message),
            on_client_connected=lambda e: print(e.message),
        ))
        await broker.start()
    """
    def __init__(self, config: Optional[ServerConfig] = None, engine_factory: Optional[EngineFactory] = None):
        self.config = config or ServerConfig()
        self.errors = ErrorRouter(self.config.error_handler)
        self.policy = None
        self.translator = None
        self.broker_config = {}
        self.engine = None
        self._running = False
        try:
            self.policy = ServerAdmissionPolicy(self.config.admission)
            self.translator = ServerEventTranslator.from_config(self.config)
            self.broker_config = build_broker_config(self.config, self.policy, self.translator)
            self.engine = (engine_factory or AmqttBrokerEngine)(self.broker_config)
        except Exception as e:
            logger.error(f"Failed to initialize embedded MQTT broker: {e}")
            self.engine = None
            error = e if isinstance(e, EngineError) else EngineError(f"Initialization failed: {e}")
            self.errors.handle(error)

    @property
    def initialized(self) -> bool:
        return self.engine is not None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def listen_port(self) -> int:
        if self.policy is None:
            return self.config.port
        return self.policy.listen_port(self.config.port)

    async def start(self) -> OperationResult:
        """
        Starts the embedded broker and begins accepting connections.
        """
        if not self.initialized:
            return self.errors.handle(EngineError("Embedded broker is not initialized"))
        try:
            await self.engine.start()
        except EngineError as e:
            logger.error(f"Failed to start embedded MQTT Broker: {e}")
            return self.errors.handle(e)
        self._running = True
        logger.info(f"Embedded MQTT Broker listening on {self.config.host}:{self.listen_port}")
        return OperationResult.success()

    async def stop(self) -> OperationResult:
        """
        Stops the embedded broker and disconnects every client.
        """
        if not self.initialized:
            return self.errors.handle(EngineError("Embedded broker is not initialized"))
        try:
            await self.engine.shutdown()
        except EngineError as e:
            logger.error(f"Failed to stop embedded MQTT Broker: {e}")
            return self.errors.handle(e)
        finally:
            self._running = False
        logger.info("Embedded MQTT Broker stopped successfully.")
        return OperationResult.success()

    async def __aenter__(self) -> "EmbeddedBroker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


async def start_broker(config: Optional[ServerConfig] = None, engine_factory: Optional[EngineFactory] = None) -> EmbeddedBroker:
    """Builds a broker and starts it right away."""
    broker = EmbeddedBroker(config, engine_factory=engine_factory)
    await broker.start()
    return broker
