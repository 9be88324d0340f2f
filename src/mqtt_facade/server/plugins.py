"""
amqtt Broker Plugins.

Bridges the amqtt plugin system to this package:
- `AdmissionAuthPlugin` asks a `ServerAdmissionPolicy` about every CONNECT.
- `EventBridgePlugin` forwards broker events to a `ServerEventTranslator`.

Both are referenced by dotted path from the broker configuration built in
`mqtt_facade.server.broker`; their collaborators travel in the plugin config.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from amqtt.plugins.base import BaseAuthPlugin, BasePlugin
from amqtt.session import ApplicationMessage, Session

logger = logging.getLogger(__name__)


class AdmissionAuthPlugin(BaseAuthPlugin):
    """
    Answers amqtt's authentication step with the admission policy. amqtt
    closes a refused connection without a CONNACK, so the reason is only logged.
    """

    @dataclass
    class Config:
        policy: Any = None

    async def authenticate(self, *, session: Session) -> Optional[bool]:
        decision = self.config.policy.evaluate(session.client_id, session.username, session.password)
        if not decision.accepted:
            logger.info(f"Refusing CONNECT from '{session.client_id}': {decision.reason.value}")
        return decision.accepted


class EventBridgePlugin(BasePlugin):

    @dataclass
    class Config:
        translator: Any = None

    async def on_broker_client_connected(self, *, client_id: str, **kwargs: Any) -> None:
        self.config.translator.client_connected(client_id)

    async def on_broker_client_disconnected(self, *, client_id: str, **kwargs: Any) -> None:
        self.config.translator.client_disconnected(client_id)

    async def on_broker_client_subscribed(self, *, client_id: str, topic: str, **kwargs: Any) -> None:
        self.config.translator.subscribed(client_id, topic)

    async def on_broker_client_unsubscribed(self, *, client_id: str, topic: str, **kwargs: Any) -> None:
        self.config.translator.unsubscribed(client_id, topic)

    async def on_broker_message_received(self, *, client_id: str, message: Optional[ApplicationMessage], **kwargs: Any) -> None:
        if message is None:
            return
        self.config.translator.message_received(
            client_id,
            message.topic,
            message.data,
            message.qos,
            message.retain,
        )
