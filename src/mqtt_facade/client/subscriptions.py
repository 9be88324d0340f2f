"""
Subscription Manager.

Adds and removes topic interest on the live connection. Failures are always
raised to the caller; the error handler is not involved on this path.
"""
import logging

from mqtt_facade.client.engine import ClientEngine
from mqtt_facade.errors import NotConnectedError
from mqtt_facade.models import require_topic

logger = logging.getLogger(__name__)


class SubscriptionManager:
    def __init__(self, engine: ClientEngine):
        self.engine = engine

    def _require_connection(self) -> None:
        # The engine's own state decides, not the supervisor's target state
        if not self.engine.is_connected:
            raise NotConnectedError("MQTT client is not connected, call start() first")

    async def subscribe(self, topic: str) -> None:
        topic = require_topic(topic)
        self._require_connection()
        await self.engine.subscribe(topic)
        logger.info(f"Subscribed to '{topic}'")

    async def unsubscribe(self, topic: str) -> None:
        topic = require_topic(topic)
        self._require_connection()
        await self.engine.unsubscribe(topic)
        logger.info(f"Unsubscribed from '{topic}'")
