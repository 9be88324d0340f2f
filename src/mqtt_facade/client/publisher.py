"""
Publisher.

Builds outbound messages (topic validation, payload encoding, QoS mapping,
retain flag) and hands them to the engine after a reconnect check.
"""
import logging
from typing import Union

from mqtt_facade.client.engine import ClientEngine
from mqtt_facade.client.supervisor import ReconnectSupervisor
from mqtt_facade.errors import EngineError, ErrorRouter, OperationResult
from mqtt_facade.models import OutboundMessage, Payload, PublishQos, require_topic

logger = logging.getLogger(__name__)


class Publisher:
    def __init__(self, engine: ClientEngine, supervisor: ReconnectSupervisor, errors: ErrorRouter):
        self.engine = engine
        self.supervisor = supervisor
        self.errors = errors

    async def publish(self, topic: str, payload: Payload, qos: Union[PublishQos, int] = PublishQos.QOS_0) -> OperationResult:
        """
        Publishes `payload` on `topic`. Every message carries retain=True.

        EmptyTopicError is raised before anything else happens; engine
        failures follow the error-handler policy.
        """
        topic = require_topic(topic)
        message = OutboundMessage.build(topic, payload, qos)
        self.supervisor.ensure_connected()

        try:
            await self.engine.publish(message)
        except EngineError as e:
            logger.error(f"Failed to publish to '{topic}': {e}")
            return self.errors.handle(e)

        logger.debug(f"Published {len(message.payload)} bytes to '{topic}' (qos={message.qos.name}, retain={message.retain})")
        return OperationResult.success()
