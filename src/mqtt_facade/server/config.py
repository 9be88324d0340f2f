"""
Embedded Broker Configuration.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from mqtt_facade.errors import ConfigurationError, ErrorHandler
from mqtt_facade.events import ServerEventCallback

DEFAULT_BIND_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 1883


def _frozen(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True, kw_only=True)
class AdmissionConfig:
    """
    Allow-lists checked for every inbound connection. An empty list means
    that dimension is not enforced. `port` > 0 overrides the listen port.
    """
    client_ids: Tuple[str, ...] = ()
    usernames: Tuple[str, ...] = ()
    passwords: Tuple[str, ...] = field(default=(), repr=False)
    port: int = 0

    def __post_init__(self):
        object.__setattr__(self, "client_ids", _frozen(self.client_ids))
        object.__setattr__(self, "usernames", _frozen(self.usernames))
        object.__setattr__(self, "passwords", _frozen(self.passwords))
        if isinstance(self.port, bool) or not isinstance(self.port, int) or self.port < 0:
            raise ConfigurationError(f"Admission port can't be negative, got {self.port!r}")


@dataclass(frozen=True, kw_only=True)
class ServerConfig:
    admission: Optional[AdmissionConfig] = None
    host: str = DEFAULT_BIND_HOST
    port: int = DEFAULT_LISTEN_PORT
    on_subscribed: Optional[ServerEventCallback] = field(default=None, compare=False)
    on_unsubscribed: Optional[ServerEventCallback] = field(default=None, compare=False)
    on_message_received: Optional[ServerEventCallback] = field(default=None, compare=False)
    on_client_connected: Optional[ServerEventCallback] = field(default=None, compare=False)
    on_client_disconnected: Optional[ServerEventCallback] = field(default=None, compare=False)
    error_handler: Optional[ErrorHandler] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.host, str) or not self.host.strip():
            raise ConfigurationError("Broker bind host can't be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or self.port <= 0:
            raise ConfigurationError(f"Broker port must be a positive integer, got {self.port!r}")

