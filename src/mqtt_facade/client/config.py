"""
Client Connection Configuration.

`ConnectionConfig` is built once, validated eagerly and never mutated
afterwards; the client id is resolved (or generated) at construction.
"""
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from mqtt_facade.errors import ConfigurationError, ErrorHandler
from mqtt_facade.models import ReceivedMessage

DEFAULT_SERVER_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 1883
DEFAULT_RECONNECT_INTERVAL = 5.0
PROTOCOL_VERSIONS = (3, 4, 5)  # MQTT 3.1, 3.1.1, 5.0


@dataclass(frozen=True, kw_only=True)
class ConnectionConfig:
    server_address: str = DEFAULT_SERVER_ADDRESS
    port: int = DEFAULT_PORT
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    client_id: Optional[str] = None
    reconnect_interval_seconds: float = DEFAULT_RECONNECT_INTERVAL
    protocol_version: int = 4
    keepalive: int = 60
    error_handler: Optional[ErrorHandler] = field(default=None, compare=False)
    message_received_callback: Optional[Callable[[ReceivedMessage], None]] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.server_address, str) or not self.server_address.strip():
            raise ConfigurationError("server_address can't be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or self.port <= 0:
            raise ConfigurationError(f"port must be a positive integer, got {self.port!r}")
        interval = self.reconnect_interval_seconds
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
            raise ConfigurationError(f"reconnect_interval_seconds must be a non-negative number, got {interval!r}")
        if self.protocol_version not in PROTOCOL_VERSIONS:
            raise ConfigurationError(f"Unsupported MQTT protocol version: {self.protocol_version!r}")
        if isinstance(self.keepalive, bool) or not isinstance(self.keepalive, int) or self.keepalive <= 0:
            raise ConfigurationError(f"keepalive must be a positive integer, got {self.keepalive!r}")

        # Resolve the identity once; it stays stable for the lifetime of this config
        if self.client_id is None or not self.client_id.strip():
            object.__setattr__(self, "client_id", str(uuid.uuid4()))
