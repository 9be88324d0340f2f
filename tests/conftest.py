"""
Pytest Configuration and Fixtures for the mqtt_facade project.

This module provides in-memory stand-ins for the protocol engines so the
facades can be exercised without a network or a running broker.
"""

import asyncio
import logging
import sys
from typing import List, Optional

import pytest

from mqtt_facade.client.engine import ConnectOptions
from mqtt_facade.errors import EngineError
from mqtt_facade.models import OutboundMessage


class FakeClientEngine:
    """Implements the client engine contract in memory."""

    def __init__(self):
        self.connected = False
        self.connect_calls: List[ConnectOptions] = []
        self.connect_errors: List[Exception] = []
        self.disconnect_calls = 0
        self.published: List[OutboundMessage] = []
        self.publish_error: Optional[Exception] = None
        self.subscribed: List[str] = []
        self.unsubscribed: List[str] = []
        self.subscribe_error: Optional[Exception] = None
        self.on_message = None
        self.on_disconnected = None

    @property
    def is_connected(self) -> bool:
        return self.connected

    def set_event_hooks(self, on_message, on_disconnected):
        self.on_message = on_message
        self.on_disconnected = on_disconnected

    async def connect(self, options):
        self.connect_calls.append(options)
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        self.connected = True

    async def disconnect(self):
        self.disconnect_calls += 1
        was_connected = self.connected
        self.connected = False
        # A real engine reports the normal disconnect too; the supervisor must ignore it
        if was_connected and self.on_disconnected is not None:
            self.on_disconnected(None)

    async def publish(self, message):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append(message)

    async def subscribe(self, topic):
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscribed.append(topic)

    async def unsubscribe(self, topic):
        self.unsubscribed.append(topic)

    # --- test controls ---

    def drop_connection(self, reason: Optional[Exception] = None):
        """Simulates the broker going away."""
        self.connected = False
        self.on_disconnected(reason or EngineError("connection reset"))

    def deliver(self, topic: str, payload: bytes, qos: int = 0, retain: bool = False):
        self.on_message(topic, payload, qos, retain)


class FakeServerEngine:
    """Implements the server engine contract in memory."""

    def __init__(self, broker_config):
        self.broker_config = broker_config
        self.started = False
        self.start_error: Optional[Exception] = None
        self.shutdown_calls = 0

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def shutdown(self):
        self.shutdown_calls += 1
        self.started = False


class GatedSleep:
    """Replaces asyncio.sleep: records the requested delay and waits until released."""

    def __init__(self, released: bool = True):
        self.calls: List[float] = []
        self._gate = asyncio.Event()
        if released:
            self._gate.set()

    async def __call__(self, seconds: float):
        self.calls.append(seconds)
        await self._gate.wait()

    def release(self):
        self._gate.set()


async def settle(rounds: int = 10):
    """Lets background tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """
    Configures the Python logging framework globally for all tests.
    Tests never go through a host application, so nothing else does it.
    """
    formatter = logging.Formatter(fmt="%(levelname)-8s %(message)s - %(funcName)s:%(lineno)d ")
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)


@pytest.fixture
def fake_engine():
    return FakeClientEngine()


@pytest.fixture
def fake_server_engines():
    """Collects every FakeServerEngine built by an EmbeddedBroker."""
    engines: List[FakeServerEngine] = []

    def factory(broker_config):
        engine = FakeServerEngine(broker_config)
        engines.append(engine)
        return engine

    factory.engines = engines
    return factory
