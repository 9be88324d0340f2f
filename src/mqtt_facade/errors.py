"""
Error Taxonomy and Error Routing.

This module is responsible for:
- Defining the exceptions raised by the client and server facades.
- Modelling the outcome of an engine operation as an `OperationResult`.
- Applying the error-handler policy: route failures to the host's handler
  when one is configured, raise them otherwise.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception], None]


class MqttFacadeError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MqttFacadeError, ValueError):
    """Invalid endpoint, port or other option at construction time."""


class EmptyTopicError(MqttFacadeError, ValueError):
    """A topic argument was empty or only whitespace."""


class NotConnectedError(MqttFacadeError):
    """Subscribe/unsubscribe was attempted without an active connection."""


class EngineError(MqttFacadeError):
    """Any failure surfaced by the underlying protocol engine."""


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of start/stop/publish.

    A failed result is only ever returned when an error handler consumed
    the error; without a handler the error is raised instead.
    """
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> None:
        """Raises the stored error, if any."""
        if self.error is not None:
            raise self.error

    @classmethod
    def success(cls) -> "OperationResult":
        return cls()

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult":
        return cls(error=error)


class ErrorRouter:
    """
    Applies the error-handler policy shared by both roles.
    """
    handler: Optional[ErrorHandler]

    def __init__(self, handler: Optional[ErrorHandler] = None):
        self.handler = handler

    def handle(self, error: Exception) -> OperationResult:
        """
        Routes `error` to the configured handler and returns a failed result.
        Without a handler the error is raised to the caller.
        """
        if self.handler is None:
            raise error
        logger.debug(f"Routing {type(error).__name__} to the configured error handler: {error}")
        self.handler(error)
        return OperationResult.failure(error)

    def report(self, error: Exception) -> None:
        """
        Same policy for background work that has no caller to raise into.
        Without a handler the error is logged.
        """
        if self.handler is None:
            logger.error(f"Unhandled {type(error).__name__}: {error}")
            return
        self.handler(error)
