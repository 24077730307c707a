from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import SignupResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_signup_form

SIGNUP_DISABLED_MESSAGE = "Self-service signup is disabled on this gateway."


@dataclass(frozen=True)
class SignupIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class SignupSubmitting:
    phase: ClassVar[str] = "submitting"


@dataclass(frozen=True)
class SignupSubmitted:
    phase: ClassVar[str] = "submitted"
    username: str
    status: str | None = None

    @property
    def pending_approval(self) -> bool:
        return (self.status or "").lower() == "pending"


@dataclass(frozen=True)
class SignupFailed:
    phase: ClassVar[str] = "failed"
    last_error: str


SignupState = Union[SignupIdle, SignupSubmitting, SignupSubmitted, SignupFailed]


class SignupApi(Protocol):
    def signup(self, username: str, email: str, password: str) -> Awaitable[SignupResponse]: ...


class SignupFlow(Flow[SignupState]):
    module = "signup"

    def __init__(self, api: SignupApi, *, enabled: bool = True, username_is_email: bool = True) -> None:
        super().__init__(SignupIdle() if enabled else SignupFailed(last_error=SIGNUP_DISABLED_MESSAGE))
        self._api = api
        self._username_is_email = username_is_email

    @property
    def username_is_email(self) -> bool:
        return self._username_is_email

    async def submit(
        self,
        username: str | None,
        email: str,
        password: str,
        confirm_password: str,
    ) -> SignupState:
        if not isinstance(self._state, SignupIdle):
            return self._state

        form = validate_signup_form(
            username,
            email,
            password,
            confirm_password,
            username_is_email=self._username_is_email,
        )
        if not form.is_valid:
            return self._transition(SignupIdle(last_error=form.first_error), "submit", "invalid")

        self._transition(SignupSubmitting(), "submit", "pending")
        try:
            response = await self._api.signup(form.values["username"], form.values["email"], form.values["password"])
        except (ApiError, pydantic.ValidationError) as error:
            return self._transition(SignupIdle(last_error=user_message(error)), "submit", "rejected")
        return self._transition(SignupSubmitted(form.values["username"], response.status), "submit", "success")

    def close(self) -> None:
        self._closed = True
