from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError, AuthError
from gateway_client_sdk.models import AuthCheckResponse, OkResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_login
from account_console.app.session_store import Session

SESSION_NOT_CONFIRMED_MESSAGE = "The gateway accepted the login but did not confirm a session."
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."


@dataclass(frozen=True)
class LoginIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class LoginSubmitting:
    phase: ClassVar[str] = "submitting"
    username: str


@dataclass(frozen=True)
class LoginSucceeded:
    phase: ClassVar[str] = "signed_in"
    username: str


LoginState = Union[LoginIdle, LoginSubmitting, LoginSucceeded]


class LoginApi(Protocol):
    def login(self, username: str, password: str) -> Awaitable[OkResponse]: ...

    def check(self) -> Awaitable[AuthCheckResponse]: ...


class SessionRefresher(Protocol):
    def check(self) -> Awaitable[Session]: ...


class LoginFlow(Flow[LoginState]):
    """Password sign-in for an anonymous console session.

    After the gateway accepts the credentials, ``/auth/check`` confirms the
    session cookie took hold and the session store is refreshed so the
    signed-in flows become reachable.
    """

    module = "login"

    def __init__(self, api: LoginApi, session: SessionRefresher) -> None:
        super().__init__(LoginIdle())
        self._api = api
        self._session = session

    async def submit(self, username: str, password: str) -> LoginState:
        if not isinstance(self._state, LoginIdle):
            return self._state

        form = validate_login(username, password)
        if not form.is_valid:
            return self._transition(LoginIdle(last_error=form.first_error), "submit", "invalid")

        self._transition(LoginSubmitting(form.values["username"]), "submit", "pending")
        epoch = self._epoch
        try:
            await self._api.login(form.values["username"], form.values["password"])
            confirmed = await self._api.check()
        except AuthError as error:
            if self._is_stale(epoch):
                return self._state
            message = error.message if error.message != "Request failed" else INVALID_CREDENTIALS_MESSAGE
            return self._transition(LoginIdle(last_error=message), "submit", "rejected")
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(LoginIdle(last_error=user_message(error)), "submit", "rejected")
        if self._is_stale(epoch):
            return self._state
        if not confirmed.authenticated:
            return self._transition(LoginIdle(last_error=SESSION_NOT_CONFIRMED_MESSAGE), "submit", "unconfirmed")

        session = await self._session.check()
        if not session.is_authenticated:
            return self._transition(LoginIdle(last_error=SESSION_NOT_CONFIRMED_MESSAGE), "submit", "unconfirmed")
        return self._transition(LoginSucceeded(session.username or form.values["username"]), "submit", "success")

    def close(self) -> None:
        self._discard_pending()
        if isinstance(self._state, LoginSubmitting):
            self._transition(LoginIdle(), "close", "discarded")
        self._closed = True
