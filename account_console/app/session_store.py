from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import LogoutResponse, ProfileResponse

from account_console.app.infrastructure.logging.logger import get_logger, log_action

logger = get_logger(__name__)

SessionListener = Callable[["Session"], None]


class SessionStatus(str, Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Session:
    status: SessionStatus = SessionStatus.UNKNOWN
    username: str | None = None
    role: str | None = None
    totp_enabled: bool = False

    def __post_init__(self) -> None:
        if self.status is SessionStatus.AUTHENTICATED and not self.username:
            raise ValueError("an authenticated session requires a username")

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == "admin"

    @property
    def is_settled(self) -> bool:
        return self.status in {SessionStatus.AUTHENTICATED, SessionStatus.ANONYMOUS}


class ProfileSource(Protocol):
    def profile(self) -> Awaitable[ProfileResponse]: ...


class LogoutSource(Protocol):
    def logout(self) -> Awaitable[LogoutResponse]: ...


class SessionStore:
    """Caches the authentication verdict for one console session.

    Every probe is stamped with a sequence number when it is issued. A
    response is applied only while its number is still the latest one, so a
    slow answer to an older probe can never overwrite a newer verdict. Calls
    to ``invalidate`` and ``reset`` also advance the sequence, which drops any
    probe still in flight.
    """

    def __init__(self, account: ProfileSource, auth: LogoutSource | None = None) -> None:
        self._account = account
        self._auth = auth
        self._session = Session()
        self._issued = 0
        self._in_flight = 0
        self._listeners: list[SessionListener] = []

    def current(self) -> Session:
        return self._session

    @property
    def is_checking(self) -> bool:
        return self._in_flight > 0

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> Session:
        return await self.check()

    async def check(self) -> Session:
        self._issued += 1
        ticket = self._issued
        if self._session.status is SessionStatus.UNKNOWN:
            self._apply(Session(status=SessionStatus.CHECKING))

        self._in_flight += 1
        try:
            verdict = await self._probe()
        finally:
            self._in_flight -= 1

        if ticket != self._issued:
            logger.debug("discarding session probe %s superseded by %s", ticket, self._issued)
            return self._session

        self._apply(verdict)
        log_action(logger, "session", "check", verdict.username, verdict.status.value, sequence=ticket)
        return verdict

    def invalidate(self) -> None:
        self._issued += 1
        self._apply(Session(status=SessionStatus.ANONYMOUS))

    def reset(self) -> None:
        self._issued += 1
        self._apply(Session())

    async def sign_out(self) -> str | None:
        actor = self._session.username
        redirect_url = None
        if self._auth is not None:
            try:
                redirect_url = (await self._auth.logout()).redirect_url
            except (ApiError, pydantic.ValidationError) as error:
                log_action(logger, "session", "sign_out", actor, "error", error=type(error).__name__)
        self.invalidate()
        log_action(logger, "session", "sign_out", actor, "success")
        return redirect_url

    async def _probe(self) -> Session:
        try:
            profile = await self._account.profile()
        except (ApiError, pydantic.ValidationError) as error:
            logger.debug("session probe failed: %s", type(error).__name__)
            return Session(status=SessionStatus.ANONYMOUS)
        if not profile.username:
            return Session(status=SessionStatus.ANONYMOUS)
        return Session(
            status=SessionStatus.AUTHENTICATED,
            username=profile.username,
            role=profile.role,
            totp_enabled=profile.totp_enabled,
        )

    def _apply(self, session: Session) -> None:
        if session == self._session:
            return
        self._session = session
        for listener in list(self._listeners):
            listener(session)
