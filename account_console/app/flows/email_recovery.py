from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import OkResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_identifier, validate_new_password, validate_reset_token

RESET_REQUESTED_MESSAGE = "If an account with that name exists, a password reset link has been sent."
EMAIL_RECOVERY_DISABLED_MESSAGE = "Password reset by email is not available on this gateway."


@dataclass(frozen=True)
class EmailIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class EmailRequested:
    phase: ClassVar[str] = "requested"
    identifier: str
    token: str | None = None
    notice: str = RESET_REQUESTED_MESSAGE
    last_error: str | None = None

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("a requested reset requires the identifier")


@dataclass(frozen=True)
class EmailConfirming:
    phase: ClassVar[str] = "confirming"
    identifier: str
    token: str

    def __post_init__(self) -> None:
        if not self.identifier or not self.token:
            raise ValueError("confirming a reset requires identifier and token")


@dataclass(frozen=True)
class EmailCompleted:
    phase: ClassVar[str] = "completed"
    identifier: str


@dataclass(frozen=True)
class EmailFailed:
    phase: ClassVar[str] = "failed"
    last_error: str


EmailRecoveryState = Union[EmailIdle, EmailRequested, EmailConfirming, EmailCompleted, EmailFailed]


class EmailRecoveryApi(Protocol):
    def request_email_reset(self, identifier: str) -> Awaitable[OkResponse]: ...

    def confirm_email_reset(self, token: str, new_password: str) -> Awaitable[OkResponse]: ...


class EmailRecoveryFlow(Flow[EmailRecoveryState]):
    """Password recovery through a token mailed to the account owner.

    The request step always lands in ``EmailRequested`` with the same notice,
    whatever the gateway answered, so the console never reveals whether an
    account exists.
    """

    module = "email_recovery"

    def __init__(self, api: EmailRecoveryApi, *, enabled: bool = True, username_is_email: bool = True) -> None:
        initial: EmailRecoveryState = EmailIdle() if enabled else EmailFailed(last_error=EMAIL_RECOVERY_DISABLED_MESSAGE)
        super().__init__(initial)
        self._api = api
        self._enabled = enabled
        self._username_is_email = username_is_email

    async def request_reset(self, identifier: str) -> EmailRecoveryState:
        state = self._state
        if not isinstance(state, (EmailIdle, EmailRequested)):
            return state

        form = validate_identifier(identifier, username_is_email=self._username_is_email)
        if not form.is_valid:
            if isinstance(state, EmailRequested):
                return self._transition(
                    EmailRequested(state.identifier, state.token, last_error=form.first_error),
                    "request_reset",
                    "invalid",
                )
            return self._transition(EmailIdle(last_error=form.first_error), "request_reset", "invalid")

        normalized = form.values["identifier"]
        epoch = self._epoch
        try:
            await self._api.request_email_reset(normalized)
            outcome = "sent"
        except (ApiError, pydantic.ValidationError) as error:
            outcome = f"suppressed:{type(error).__name__}"
        if self._is_stale(epoch):
            return self._state
        return self._transition(EmailRequested(identifier=normalized), "request_reset", outcome)

    def enter_token(self, token: str) -> EmailRecoveryState:
        state = self._state
        if not isinstance(state, EmailRequested):
            return state
        self._state = EmailRequested(state.identifier, token.strip() or None, last_error=state.last_error)
        return self._state

    async def confirm(
        self,
        new_password: str,
        confirm_password: str,
        token: str | None = None,
    ) -> EmailRecoveryState:
        state = self._state
        if not isinstance(state, EmailRequested):
            return state

        token_form = validate_reset_token(token if token is not None else state.token)
        password_form = validate_new_password(new_password, confirm_password)
        entered_token = token_form.values["token"] or None
        if not token_form.is_valid or not password_form.is_valid:
            error = token_form.first_error or password_form.first_error
            return self._transition(
                EmailRequested(state.identifier, entered_token, last_error=error),
                "confirm",
                "invalid",
            )

        self._transition(EmailConfirming(state.identifier, token_form.values["token"]), "confirm", "pending")
        epoch = self._epoch
        try:
            await self._api.confirm_email_reset(token_form.values["token"], password_form.values["new_password"])
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(
                EmailRequested(state.identifier, entered_token, last_error=user_message(error)),
                "confirm",
                "rejected",
            )
        if self._is_stale(epoch):
            return self._state
        return self._transition(EmailCompleted(state.identifier), "confirm", "success")

    def reset(self) -> EmailRecoveryState:
        self._discard_pending()
        if not self._enabled:
            return self._state
        return self._transition(EmailIdle(), "reset", "discarded")

    def close(self) -> None:
        self._discard_pending()
        if isinstance(self._state, (EmailRequested, EmailConfirming)):
            self._transition(EmailIdle(), "close", "discarded")
        self._closed = True
