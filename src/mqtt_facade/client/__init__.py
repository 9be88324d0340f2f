"""
Client-side components: connection lifecycle, reconnection,
publishing and subscriptions on top of aiomqtt.
"""
from mqtt_facade.client.config import ConnectionConfig
from mqtt_facade.client.connection import MqttClient, connect_client
from mqtt_facade.client.supervisor import ConnectionState, ReconnectSupervisor

__all__ = [
    "ConnectionConfig",
    "ConnectionState",
    "MqttClient",
    "ReconnectSupervisor",
    "connect_client",
]
