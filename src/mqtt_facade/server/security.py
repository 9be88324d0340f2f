"""
Security Components for the Embedded MQTT Broker.

This module is responsible for:
- Deciding whether an inbound client connection may be accepted, based on
  the client identifier and credential allow-lists.
- Reporting the reason of a rejection.

The decision is pure; `mqtt_facade.server.plugins` wires it into amqtt.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mqtt_facade.server.config import AdmissionConfig

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
    CLIENT_IDENTIFIER_NOT_VALID = "client identifier not valid"
    BAD_USERNAME_OR_PASSWORD = "bad username or password"


@dataclass(frozen=True)
class AdmissionDecision:
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "AdmissionDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "AdmissionDecision":
        return cls(accepted=False, reason=reason)


class ServerAdmissionPolicy:
    """
    Evaluates connection attempts against an `AdmissionConfig`.

    Rules, first failure wins:
    1. A non-empty client-id list must contain the attempted identifier.
    2. When both username and password lists are non-empty, the username must
       be in the username list and the password in the password list.
    """
    config: AdmissionConfig

    def __init__(self, config: Optional[AdmissionConfig] = None):
        self.config = config or AdmissionConfig()

    @property
    def enforces_client_ids(self) -> bool:
        return len(self.config.client_ids) > 0

    @property
    def enforces_credentials(self) -> bool:
        return len(self.config.usernames) > 0 and len(self.config.passwords) > 0

    def listen_port(self, default: int) -> int:
        return self.config.port if self.config.port > 0 else default

    def evaluate(self, client_id: Optional[str], username: Optional[str] = None, password: Optional[str] = None) -> AdmissionDecision:
        if self.enforces_client_ids and client_id not in self.config.client_ids:
            logger.warning(f"Rejected connection from '{client_id}': {RejectReason.CLIENT_IDENTIFIER_NOT_VALID.value}")
            return AdmissionDecision.reject(RejectReason.CLIENT_IDENTIFIER_NOT_VALID)

        if self.enforces_credentials and (
            username not in self.config.usernames or password not in self.config.passwords
        ):
            logger.warning(f"Rejected connection from '{client_id}': {RejectReason.BAD_USERNAME_OR_PASSWORD.value}")
            return AdmissionDecision.reject(RejectReason.BAD_USERNAME_OR_PASSWORD)

        logger.debug(f"Admitted connection from '{client_id}'")
        return AdmissionDecision.accept()
