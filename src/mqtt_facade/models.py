"""
Data Models shared by the Client and Server roles.

Defines the QoS vocabulary, the notification records handed to the host
application and the outbound message envelope handed to the protocol engine.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum, IntEnum
import json
from typing import Any, BinaryIO, Dict, Iterable, Optional, Union

from mqtt_facade.errors import EmptyTopicError


class QualityOfService(IntEnum):
    """Delivery guarantee as understood by the protocol engine (the wire value)."""
    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


class PublishQos(IntEnum):
    """QoS level requested by the caller of `publish`."""
    QOS_0 = 0
    QOS_1 = 1
    QOS_2 = 2


# Requested level -> engine level. 0 and 1 map crossed, see DESIGN.md.
QOS_MAPPING: Dict[PublishQos, QualityOfService] = {
    PublishQos.QOS_0: QualityOfService.AT_LEAST_ONCE,
    PublishQos.QOS_1: QualityOfService.AT_MOST_ONCE,
    PublishQos.QOS_2: QualityOfService.EXACTLY_ONCE,
}


def map_qos(requested: Union[PublishQos, int]) -> QualityOfService:
    """Translates a requested level (enum member or plain int) to the engine level."""
    try:
        return QOS_MAPPING[PublishQos(requested)]
    except ValueError:
        raise ValueError(f"Unsupported QoS level: {requested!r}") from None


def require_topic(topic: Optional[str]) -> str:
    """Returns the trimmed topic or raises EmptyTopicError."""
    trimmed = topic.strip() if topic is not None else ""
    if not trimmed:
        raise EmptyTopicError("Topic must not be empty")
    return trimmed


Payload = Union[str, bytes, bytearray, memoryview, Iterable[int], BinaryIO, None]


def encode_payload(payload: Payload) -> bytes:
    """
    Normalises every accepted payload shape to raw bytes:
    text (UTF-8), byte buffers, binary or text streams and iterables of ints.
    """
    if payload is None:
        return b""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if hasattr(payload, "read"):
        # Streams are read to the end from their current position
        return encode_payload(payload.read())
    if isinstance(payload, Iterable):
        return bytes(payload)
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def decode_text(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


# --- Notifications handed to the host application ---

@dataclass(frozen=True, kw_only=True)
class ReceivedMessage:
    """An inbound message as seen by a client."""
    topic: str
    payload: bytes
    qos: QualityOfService = QualityOfService.AT_MOST_ONCE
    retain: bool = False

    @property
    def payload_utf8(self) -> str:
        """The payload decoded as UTF-8 (invalid sequences are replaced)."""
        return decode_text(self.payload)


@dataclass(frozen=True, kw_only=True)
class ServerEvent:
    """One broker-side notification (connect, disconnect, (un)subscribe, message)."""
    client_id: str
    message: str
    topic: Optional[str] = None
    payload: Optional[str] = None
    qos: Optional[QualityOfService] = None
    retain: bool = False

    def to_json(self) -> str:
        """Converts the event to a JSON string."""
        return json.dumps(asdict(self))


class ServerEventKind(str, Enum):
    CLIENT_CONNECTED = "client_connected"
    CLIENT_DISCONNECTED = "client_disconnected"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    MESSAGE_RECEIVED = "message_received"


# --- The envelope handed to the protocol engine ---

@dataclass(frozen=True, kw_only=True)
class OutboundMessage:
    """
    A fully built message ready for the engine.

    Field names match the keyword arguments of `aiomqtt.Client.publish`
    so the adapter can spread `to_aiomqtt_args()` directly into it.
    """
    topic: str
    payload: bytes = field(default=b"")
    qos: QualityOfService = QualityOfService.AT_MOST_ONCE
    retain: bool = True

    @classmethod
    def build(cls, topic: str, payload: Payload, qos: Union[PublishQos, int] = PublishQos.QOS_0) -> "OutboundMessage":
        """Validates the topic, encodes the payload and maps the QoS. Retain is always set."""
        return cls(
            topic=require_topic(topic),
            payload=encode_payload(payload),
            qos=map_qos(qos),
            retain=True,
        )

    @property
    def payload_utf8(self) -> str:
        return decode_text(self.payload)

    def to_aiomqtt_args(self) -> Dict[str, Any]:
        """Returns dict suitable for client.publish(**args)"""
        return {
            "topic": self.topic,
            "payload": self.payload,
            "qos": int(self.qos),
            "retain": self.retain,
        }
