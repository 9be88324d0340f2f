"""
Server-side components: the embedded amqtt broker, its connection
admission policy and event notifications.
"""
from mqtt_facade.server.broker import EmbeddedBroker, start_broker
from mqtt_facade.server.config import AdmissionConfig, ServerConfig
from mqtt_facade.server.security import AdmissionDecision, RejectReason, ServerAdmissionPolicy

__all__ = [
    "AdmissionConfig",
    "AdmissionDecision",
    "EmbeddedBroker",
    "RejectReason",
    "ServerAdmissionPolicy",
    "ServerConfig",
    "start_broker",
]
