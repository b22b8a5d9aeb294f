"""Supervisor — runs the login/subscribe/stream pipeline and restarts it on failure."""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

import websockets
from websockets.exceptions import WebSocketException

from repwatch.actions.clear import ClearEndpointAction
from repwatch.actions.remediator import Remediator
from repwatch.apic.client import ApicClient
from repwatch.config import RepWatchConfig
from repwatch.errors import RepWatchError
from repwatch.faults.registry import FaultRegistry
from repwatch.session.manager import SessionManager
from repwatch.subscription.manager import SubscriptionManager

logger = logging.getLogger(__name__)

_Failure = tuple[str, BaseException]
_T = TypeVar("_T")


class SupervisorState(enum.Enum):
    """Pipeline lifecycle state."""

    LOGGING_IN = "logging-in"
    SESSION_ACTIVE = "session-active"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    RECOVERING = "recovering"
    STOPPED = "stopped"


class Supervisor:
    """Owns one pipeline generation at a time.

    A generation is login -> session refresh -> event socket -> subscription
    -> subscription refresh. Its background tasks report their terminal
    error on a queue scoped to that generation; the first error cancels the
    whole generation, and a new one starts after ``restart_cooldown``. The
    remediator runs across generations for the life of the process; if it
    dies, the supervisor stops.
    """

    def __init__(
        self,
        config: RepWatchConfig,
        client: ApicClient | None = None,
        registry: FaultRegistry | None = None,
        connect: Callable[..., Awaitable[Any]] = websockets.connect,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._client = client if client is not None else ApicClient(config)
        self._registry = registry if registry is not None else FaultRegistry()
        self._connect = connect
        self._clock = clock
        self._sleep = sleep
        self._remediator = Remediator(
            self._registry,
            ClearEndpointAction(self._client),
            clear_delay=config.clear_delay,
            sleep=sleep,
        )
        self._state = SupervisorState.LOGGING_IN
        self._stopped = asyncio.Event()
        self._generation = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def registry(self) -> FaultRegistry:
        return self._registry

    @property
    def generation(self) -> int:
        return self._generation

    def stop(self) -> None:
        """Ask run() to return after tearing down the current generation."""
        self._stopped.set()

    async def run(self) -> None:
        """Run generations until stop() is called."""
        remediation = asyncio.create_task(self._remediator.run(), name="remediation")
        remediation.add_done_callback(self._remediation_done)
        try:
            while not self._stopped.is_set():
                await self._run_generation()
                if self._stopped.is_set():
                    break
                self._state = SupervisorState.RECOVERING
                logger.info("Pausing for %ss", self._config.restart_cooldown)
                await self._unless_stopped(self._sleep(self._config.restart_cooldown))
        finally:
            remediation.cancel()
            await asyncio.gather(remediation, return_exceptions=True)
            await self._client.aclose()
            self._state = SupervisorState.STOPPED

    def _remediation_done(self, task: asyncio.Task[None]) -> None:
        # A dead remediation loop is fatal
        if task.cancelled() or task.exception() is None:
            return
        logger.critical("Remediation loop stopped: %s", task.exception())
        self.stop()

    async def _run_generation(self) -> None:
        self._generation += 1
        self._client.reset()
        self._registry.clear()

        failures: asyncio.Queue[_Failure] = asyncio.Queue()
        tasks: list[asyncio.Task[None]] = []
        socket: Any = None
        sessions = SessionManager(self._client, clock=self._clock, sleep=self._sleep)
        subscriptions = SubscriptionManager(
            self._client,
            self._registry,
            self._config,
            connect=self._connect,
            clock=self._clock,
            sleep=self._sleep,
        )

        try:
            self._state = SupervisorState.LOGGING_IN
            session = await sessions.login(self._config.username, self._config.password)

            self._state = SupervisorState.SESSION_ACTIVE
            if session.token:
                tasks.append(
                    self._spawn("Refresh", sessions.refresh_loop(session), failures)
                )
            else:
                logger.warning("No session token after login, skipping token refresh")

            self._state = SupervisorState.SUBSCRIBING
            socket = await subscriptions.open_socket(session)
            tasks.append(self._spawn("Websocket", subscriptions.listen(socket), failures))

            subscription = await subscriptions.subscribe()
            tasks.append(
                self._spawn(
                    "Subscription refresh",
                    subscriptions.refresh_loop(subscription),
                    failures,
                )
            )

            self._state = SupervisorState.STREAMING
            failure = await self._unless_stopped(failures.get())
            if failure is not None:
                stage, exc = failure
                logger.error("%s error: %s", stage, exc)
                logger.debug("Restarting due to error in generation %d", self._generation)
        except RepWatchError as e:
            logger.error("%s error: %s", self._state.value, e)
        finally:
            await self._teardown(tasks, socket)

    def _spawn(
        self,
        stage: str,
        coro: Coroutine[Any, Any, None],
        failures: asyncio.Queue[_Failure],
    ) -> asyncio.Task[None]:
        async def guarded() -> None:
            try:
                await coro
            except asyncio.CancelledError:
                raise
            except Exception as e:  # any task error restarts the pipeline
                failures.put_nowait((stage, e))
            else:
                failures.put_nowait((stage, RepWatchError(f"{stage} loop exited")))

        return asyncio.create_task(guarded(), name=f"{stage} (gen {self._generation})")

    async def _unless_stopped(self, awaitable: Awaitable[_T]) -> _T | None:
        """Await ``awaitable`` unless stop() is called first; then return None."""
        waiter = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(self._stopped.wait())
        done, pending = await asyncio.wait(
            {waiter, stopper}, return_when=asyncio.FIRST_COMPLETED
        )
        for future in pending:
            future.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if waiter in done:
            return waiter.result()
        return None

    async def _teardown(self, tasks: list[asyncio.Task[None]], socket: Any) -> None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if socket is not None:
            try:
                await socket.close()
            except (OSError, WebSocketException) as e:
                logger.debug("Error closing websocket: %s", e)
