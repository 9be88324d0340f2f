"""
Reconnect Supervisor.

Owns the connection state machine of one client:

    IDLE --connect()--> CONNECTED --disconnect event--> RECONNECTING
    RECONNECTING --attempt succeeds--> CONNECTED
    RECONNECTING --attempt fails--> RECONNECTING (waits for the next trigger)
    any --disconnect()--> IDLE

At most one reconnect attempt is in flight at any time. Arming while an
attempt is pending is a no-op.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from mqtt_facade.client.engine import ClientEngine, ConnectOptions
from mqtt_facade.errors import EngineError, ErrorRouter

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class ReconnectSupervisor:
    state: ConnectionState
    reconnect_attempts: int
    _retry_task: Optional[asyncio.Task]

    def __init__(
        self,
        engine: ClientEngine,
        options: ConnectOptions,
        interval: float,
        errors: ErrorRouter,
        sleep: Sleep = asyncio.sleep,
    ):
        self.engine = engine
        self.options = options
        self.interval = interval
        self.errors = errors
        self._sleep = sleep
        self.state = ConnectionState.IDLE
        self.reconnect_attempts = 0
        self._retry_task = None

    @property
    def attempt_pending(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    async def connect(self) -> None:
        """Opens the connection. Raises EngineError on failure."""
        await self.engine.connect(self.options)
        self.state = ConnectionState.CONNECTED
        logger.info(f"Client {self.options.client_id} connected to {self.options.host}:{self.options.port}")

    async def disconnect(self) -> None:
        """Normal disconnect: parks the machine in IDLE so no reconnect follows."""
        self.state = ConnectionState.IDLE
        await self._cancel_retry()
        await self.engine.disconnect()
        logger.info(f"Client {self.options.client_id} disconnected")

    def on_disconnected(self, reason: Optional[Exception] = None) -> None:
        """Engine hook: a live connection was lost."""
        if self.state is not ConnectionState.CONNECTED:
            # Requested disconnects and duplicate notifications end up here
            logger.debug(f"Ignoring disconnect event in state {self.state.value}")
            return
        logger.warning(f"Connection lost ({reason}), reconnecting in {self.interval}s")
        self.state = ConnectionState.RECONNECTING
        self._arm()

    def ensure_connected(self) -> None:
        """
        Called before every publish. No-op while the connection is healthy
        or the client was never started; re-arms a failed reconnect otherwise.
        """
        if self.engine.is_connected or self.state is ConnectionState.IDLE:
            return
        self.state = ConnectionState.RECONNECTING
        self._arm()

    def _arm(self) -> None:
        if self.attempt_pending:
            return
        self._retry_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        await self._sleep(self.interval)
        if self.state is not ConnectionState.RECONNECTING:
            return
        self.reconnect_attempts += 1
        logger.info(f"Reconnect attempt {self.reconnect_attempts} to {self.options.host}:{self.options.port}")
        try:
            await self.engine.connect(self.options)
        except EngineError as e:
            logger.error(f"Reconnect attempt {self.reconnect_attempts} failed: {e}")
            self.errors.report(e)
            return
        self.state = ConnectionState.CONNECTED
        logger.info(f"Client {self.options.client_id} reconnected")

    async def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
