"""
mqtt_facade

This package provides an asynchronous facade over MQTT, usable either as a
connecting client (aiomqtt) or as an embedded broker (amqtt), with
automatic reconnection, QoS-aware publishing and connection admission.
"""
from mqtt_facade.errors import (
    ConfigurationError,
    EmptyTopicError,
    EngineError,
    MqttFacadeError,
    NotConnectedError,
    OperationResult,
)
from mqtt_facade.models import PublishQos, QualityOfService, ReceivedMessage, ServerEvent

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EmptyTopicError",
    "EngineError",
    "MqttFacadeError",
    "NotConnectedError",
    "OperationResult",
    "PublishQos",
    "QualityOfService",
    "ReceivedMessage",
    "ServerEvent",
    "__version__",
]
