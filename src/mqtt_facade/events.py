"""
Event Translation Layer.

This module is responsible for:
- Turning raw protocol-engine events into the notification records
  defined in `mqtt_facade.models`.
- Invoking the host application's callback for that event type, if one is
  configured, synchronously on the engine's dispatch context.
- Dropping the event silently when no callback is configured
  (nothing is buffered for later delivery).
"""
import logging
from typing import Callable, Dict, Optional

from mqtt_facade.models import (
    QualityOfService,
    ReceivedMessage,
    ServerEvent,
    ServerEventKind,
    decode_text,
)

logger = logging.getLogger(__name__)

MessageCallback = Callable[[ReceivedMessage], None]
ServerEventCallback = Callable[[ServerEvent], None]


def _as_qos(value) -> QualityOfService:
    return QualityOfService(int(value or 0))


class ClientEventTranslator:
    """Converts inbound client-side messages into `ReceivedMessage` notifications."""

    def __init__(self, on_message_received: Optional[MessageCallback] = None):
        self.on_message_received = on_message_received

    def message_received(self, topic: str, payload: bytes, qos: int = 0, retain: bool = False) -> Optional[ReceivedMessage]:
        if self.on_message_received is None:
            logger.debug(f"No message callback configured, dropping message on '{topic}'")
            return None
        message = ReceivedMessage(
            topic=topic,
            payload=bytes(payload or b""),
            qos=_as_qos(qos),
            retain=bool(retain),
        )
        self.on_message_received(message)
        return message


class ServerEventTranslator:
    """
    Converts broker events into `ServerEvent` notifications with a
    precomposed human-readable summary.
    """
    callbacks: Dict[ServerEventKind, Optional[ServerEventCallback]]

    def __init__(
        self,
        on_client_connected: Optional[ServerEventCallback] = None,
        on_client_disconnected: Optional[ServerEventCallback] = None,
        on_subscribed: Optional[ServerEventCallback] = None,
        on_unsubscribed: Optional[ServerEventCallback] = None,
        on_message_received: Optional[ServerEventCallback] = None,
    ):
        self.callbacks = {
            ServerEventKind.CLIENT_CONNECTED: on_client_connected,
            ServerEventKind.CLIENT_DISCONNECTED: on_client_disconnected,
            ServerEventKind.SUBSCRIBED: on_subscribed,
            ServerEventKind.UNSUBSCRIBED: on_unsubscribed,
            ServerEventKind.MESSAGE_RECEIVED: on_message_received,
        }

    @classmethod
    def from_config(cls, config) -> "ServerEventTranslator":
        """Builds a translator from the event sinks of a `ServerConfig`."""
        return cls(
            on_client_connected=config.on_client_connected,
            on_client_disconnected=config.on_client_disconnected,
            on_subscribed=config.on_subscribed,
            on_unsubscribed=config.on_unsubscribed,
            on_message_received=config.on_message_received,
        )

    def _dispatch(self, kind: ServerEventKind, build: Callable[[], ServerEvent]) -> Optional[ServerEvent]:
        callback = self.callbacks.get(kind)
        if callback is None:
            return None
        event = build()
        logger.debug(event.message)
        callback(event)
        return event

    def client_connected(self, client_id: str) -> Optional[ServerEvent]:
        return self._dispatch(
            ServerEventKind.CLIENT_CONNECTED,
            lambda: ServerEvent(client_id=client_id, message=f"Client [{client_id}] connected"),
        )

    def client_disconnected(self, client_id: str) -> Optional[ServerEvent]:
        return self._dispatch(
            ServerEventKind.CLIENT_DISCONNECTED,
            lambda: ServerEvent(client_id=client_id, message=f"Client [{client_id}] disconnected"),
        )

    def subscribed(self, client_id: str, topic: str) -> Optional[ServerEvent]:
        return self._dispatch(
            ServerEventKind.SUBSCRIBED,
            lambda: ServerEvent(
                client_id=client_id,
                topic=topic,
                message=f"Client [{client_id}] subscribed to topic: {topic}",
            ),
        )

    def unsubscribed(self, client_id: str, topic: str) -> Optional[ServerEvent]:
        return self._dispatch(
            ServerEventKind.UNSUBSCRIBED,
            lambda: ServerEvent(
                client_id=client_id,
                topic=topic,
                message=f"Client [{client_id}] unsubscribed from topic: {topic}",
            ),
        )

    def message_received(self, client_id: str, topic: str, payload: bytes, qos: int = 0, retain: bool = False) -> Optional[ServerEvent]:
        def build() -> ServerEvent:
            text = decode_text(bytes(payload or b""))
            level = _as_qos(qos)
            return ServerEvent(
                client_id=client_id,
                topic=topic,
                payload=text,
                qos=level,
                retain=bool(retain),
                message=(
                    f"Client [{client_id}] >> Topic: [{topic}] "
                    f"Payload: [{text}] QoS: [{level.name}] "
                    f"Retain: [{bool(retain)}]"
                ),
            )

        return self._dispatch(ServerEventKind.MESSAGE_RECEIVED, build)
