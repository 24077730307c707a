from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import LivenessResponse, OkResponse

from account_console.app.error_presenter import user_message
from account_console.app.health_poller import ServiceHealthPoller
from account_console.app.infrastructure.logging.logger import get_logger, log_action

logger = get_logger(__name__)

RELOAD_OK_MESSAGE = "Gateway configuration reloaded."
RESTART_ACCEPTED_MESSAGE = "Restart requested."
RESTART_UP_MESSAGE = "The gateway is back up."
RESTART_TIMEOUT_MESSAGE = "The gateway did not report itself running before the timeout."
RESTART_IN_PROGRESS_MESSAGE = "A restart is already being monitored."
RESTART_MONITOR_STOPPED_MESSAGE = "Stopped waiting for the gateway to come back."
TEST_EMAIL_SENT_MESSAGE = "Test email sent."
TEST_SMS_SENT_MESSAGE = "Test SMS sent."
MISSING_RECIPIENT_MESSAGE = "Enter a recipient."


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str


class AdminApi(Protocol):
    def reload_config(self) -> Awaitable[OkResponse]: ...

    def restart(self) -> Awaitable[OkResponse]: ...

    def status(self) -> Awaitable[LivenessResponse]: ...

    def test_email(self, to: str) -> Awaitable[OkResponse]: ...

    def test_sms(self, to: str) -> Awaitable[OkResponse]: ...


class AdminActions:
    def __init__(self, api: AdminApi, actor: str | None = None) -> None:
        self._api = api
        self._actor = actor
        self._restarting = False
        self.poller = ServiceHealthPoller(self.is_running)

    @property
    def restarting(self) -> bool:
        return self._restarting

    async def reload_config(self) -> ActionResult:
        return await self._run("reload_config", self._api.reload_config, RELOAD_OK_MESSAGE)

    async def restart_service(self) -> ActionResult:
        return await self._run("restart", self._api.restart, RESTART_ACCEPTED_MESSAGE)

    async def send_test_email(self, to: str) -> ActionResult:
        recipient = to.strip()
        if not recipient:
            return ActionResult(ok=False, message=MISSING_RECIPIENT_MESSAGE)
        return await self._run("test_email", lambda: self._api.test_email(recipient), TEST_EMAIL_SENT_MESSAGE)

    async def send_test_sms(self, to: str) -> ActionResult:
        recipient = to.strip()
        if not recipient:
            return ActionResult(ok=False, message=MISSING_RECIPIENT_MESSAGE)
        return await self._run("test_sms", lambda: self._api.test_sms(recipient), TEST_SMS_SENT_MESSAGE)

    async def is_running(self) -> bool:
        try:
            return (await self._api.status()).running
        except (ApiError, pydantic.ValidationError):
            return False

    async def restart_and_wait(self, interval_ms: int, timeout_seconds: float | None = None) -> ActionResult:
        """Request a restart, then poll until the gateway is up again.

        Only one restart is tracked at a time. Stopping the poller, through
        ``close`` or otherwise, ends the wait with a failed result.
        """
        if self._restarting or self.poller.active:
            return ActionResult(ok=False, message=RESTART_IN_PROGRESS_MESSAGE)
        self._restarting = True
        try:
            accepted = await self.restart_service()
            if not accepted.ok:
                return accepted
            return await self._wait_until_up(interval_ms, timeout_seconds)
        finally:
            self._restarting = False

    def close(self) -> None:
        self.poller.stop()

    async def _wait_until_up(self, interval_ms: int, timeout_seconds: float | None) -> ActionResult:
        outcome: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

        def _settle(came_up: bool) -> None:
            if not outcome.done():
                outcome.set_result(came_up)

        self.poller.start(interval_ms, lambda: _settle(True), on_stopped=lambda: _settle(False))
        try:
            if timeout_seconds:
                came_up = await asyncio.wait_for(outcome, timeout=timeout_seconds)
            else:
                came_up = await outcome
        except asyncio.TimeoutError:
            log_action(logger, "admin", "restart_wait", self._actor, "timeout", attempts=self.poller.state.attempts)
            return ActionResult(ok=False, message=RESTART_TIMEOUT_MESSAGE)
        finally:
            self.poller.stop()
        if not came_up:
            log_action(logger, "admin", "restart_wait", self._actor, "stopped", attempts=self.poller.state.attempts)
            return ActionResult(ok=False, message=RESTART_MONITOR_STOPPED_MESSAGE)
        return ActionResult(ok=True, message=RESTART_UP_MESSAGE)

    async def _run(self, action: str, call: Callable[[], Awaitable[object]], success_message: str) -> ActionResult:
        try:
            await call()
        except (ApiError, pydantic.ValidationError) as error:
            log_action(logger, "admin", action, self._actor, "error", error=type(error).__name__)
            return ActionResult(ok=False, message=user_message(error))
        log_action(logger, "admin", action, self._actor, "success")
        return ActionResult(ok=True, message=success_message)
