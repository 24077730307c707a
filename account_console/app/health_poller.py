from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from account_console.app.infrastructure.logging.logger import get_logger, log_action

logger = get_logger(__name__)

LivenessCheck = Callable[[], Awaitable[bool]]


@dataclass
class RestartReconciliation:
    active: bool = False
    observed_up: bool | None = None
    attempts: int = 0


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ServiceHealthPoller:
    """Polls a liveness check until the service reports it is running.

    Ticks never overlap: while one check is still pending, further ticks are
    skipped. Each run gets its own cancellation token, consulted before a
    check is dispatched and again before its result is applied, so a result
    that arrives after ``stop`` is dropped. ``on_stopped`` fires when a run is
    stopped before the service came up.
    """

    def __init__(self, check: LivenessCheck) -> None:
        self._check = check
        self.state = RestartReconciliation()
        self.skipped_ticks = 0
        self._token: CancellationToken | None = None
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: asyncio.Task[None] | None = None
        self._on_up: Callable[[], None] | None = None
        self._on_stopped: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self.state.active

    @property
    def check_in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def start(
        self,
        interval_ms: int,
        on_up: Callable[[], None],
        on_stopped: Callable[[], None] | None = None,
    ) -> None:
        if self.state.active:
            return
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        token = CancellationToken()
        self._token = token
        self._on_up = on_up
        self._on_stopped = on_stopped
        self.skipped_ticks = 0
        self.state = RestartReconciliation(active=True, observed_up=False, attempts=0)
        self._timer = asyncio.ensure_future(self._run(token, interval_ms / 1000))
        log_action(logger, "health_poller", "start", None, "active", interval_ms=interval_ms)

    def stop(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        on_stopped = self._on_stopped
        self._on_up = None
        self._on_stopped = None
        if self.state.active:
            self.state.active = False
            log_action(logger, "health_poller", "stop", None, "cancelled", attempts=self.state.attempts)
            if on_stopped is not None:
                on_stopped()

    def tick(self) -> bool:
        token = self._token
        if token is None or token.cancelled or not self.state.active:
            return False
        if self.check_in_flight:
            self.skipped_ticks += 1
            return False
        self.state.attempts += 1
        self._in_flight = asyncio.ensure_future(self._check_once(token))
        return True

    async def _run(self, token: CancellationToken, interval: float) -> None:
        while not token.cancelled:
            await asyncio.sleep(interval)
            self.tick()

    async def _check_once(self, token: CancellationToken) -> None:
        try:
            running = await self._check()
        except Exception as error:
            logger.debug("liveness check raised %s", type(error).__name__)
            running = False

        if token.cancelled:
            return
        if not running:
            self.state.observed_up = False
            return

        token.cancel()
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        self.state.active = False
        self.state.observed_up = True
        log_action(logger, "health_poller", "observed_up", None, "success", attempts=self.state.attempts)
        on_up = self._on_up
        self._on_up = None
        self._on_stopped = None
        if on_up is not None:
            on_up()
