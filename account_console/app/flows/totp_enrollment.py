from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError, AuthError
from gateway_client_sdk.models import OkResponse, TotpSetupResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_totp_code

SIGN_IN_REQUIRED_MESSAGE = "Sign in to manage two-factor authentication."


@dataclass(frozen=True)
class TotpIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class TotpSecretIssued:
    phase: ClassVar[str] = "secret_issued"
    secret: str
    otp_uri: str
    qr_image: str | None = None
    last_error: str | None = None

    def __post_init__(self) -> None:
        if not self.secret or not self.otp_uri:
            raise ValueError("an issued TOTP secret requires both secret and otp_uri")


@dataclass(frozen=True)
class TotpVerifying:
    phase: ClassVar[str] = "verifying"
    secret: str
    otp_uri: str
    qr_image: str | None = None

    def __post_init__(self) -> None:
        if not self.secret or not self.otp_uri:
            raise ValueError("verification requires the issued secret and otp_uri")


@dataclass(frozen=True)
class TotpEnrolled:
    phase: ClassVar[str] = "enrolled"
    last_error: str | None = None


@dataclass(frozen=True)
class TotpFailed:
    phase: ClassVar[str] = "failed"
    last_error: str


TotpState = Union[TotpIdle, TotpSecretIssued, TotpVerifying, TotpEnrolled, TotpFailed]


class TotpApi(Protocol):
    def totp_setup(self) -> Awaitable[TotpSetupResponse]: ...

    def totp_enable(self, secret: str, code: str) -> Awaitable[OkResponse]: ...

    def totp_disable(self, password: str) -> Awaitable[OkResponse]: ...


class SessionReader(Protocol):
    def current(self): ...


class TotpEnrollmentFlow(Flow[TotpState]):
    """Second-factor enrollment for the signed-in user.

    The issued secret lives only in ``TotpSecretIssued``/``TotpVerifying``.
    Wrong codes keep the same secret so the entry already added to the
    authenticator app stays valid; a new secret is only requested after the
    flow is cancelled or closed.
    """

    module = "totp"

    def __init__(self, api: TotpApi, session: SessionReader) -> None:
        current = session.current()
        initial: TotpState = TotpEnrolled() if getattr(current, "totp_enabled", False) else TotpIdle()
        super().__init__(initial, actor=getattr(current, "username", None))
        self._api = api
        self._session = session
        self.disable_password = ""

    async def request(self) -> TotpState:
        state = self._state
        if not isinstance(state, TotpIdle):
            return state
        if not self._session.current().is_authenticated:
            return self._transition(TotpIdle(last_error=SIGN_IN_REQUIRED_MESSAGE), "request", "rejected")

        epoch = self._epoch
        try:
            issued = await self._api.totp_setup()
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(TotpIdle(last_error=user_message(error)), "request", "error")
        if self._is_stale(epoch):
            return self._state
        return self._transition(
            TotpSecretIssued(secret=issued.secret, otp_uri=issued.otp_url, qr_image=issued.qr_png),
            "request",
            "success",
        )

    async def submit(self, code: str) -> TotpState:
        state = self._state
        if not isinstance(state, TotpSecretIssued):
            return state

        form = validate_totp_code(code)
        if not form.is_valid:
            return self._transition(
                TotpSecretIssued(state.secret, state.otp_uri, state.qr_image, last_error=form.first_error),
                "submit",
                "invalid",
            )

        self._transition(TotpVerifying(state.secret, state.otp_uri, state.qr_image), "submit", "pending")
        epoch = self._epoch
        try:
            await self._api.totp_enable(state.secret, form.values["code"])
        except AuthError as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(TotpFailed(last_error=user_message(error)), "submit", "session_lost")
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(
                TotpSecretIssued(state.secret, state.otp_uri, state.qr_image, last_error=user_message(error)),
                "submit",
                "rejected",
            )
        if self._is_stale(epoch):
            return self._state
        return self._transition(TotpEnrolled(), "submit", "success")

    async def disable(self, password: str | None = None) -> TotpState:
        if password is not None:
            self.disable_password = password
        state = self._state
        if not isinstance(state, TotpEnrolled):
            return state
        if not self.disable_password:
            return self._transition(TotpEnrolled(last_error="Enter your current password."), "disable", "invalid")

        try:
            await self._api.totp_disable(self.disable_password)
        except (ApiError, pydantic.ValidationError) as error:
            self.disable_password = ""
            return self._transition(TotpEnrolled(last_error=user_message(error)), "disable", "rejected")
        self.disable_password = ""
        return self._transition(TotpIdle(), "disable", "success")

    def cancel(self) -> TotpState:
        self._discard_pending()
        if isinstance(self._state, (TotpSecretIssued, TotpVerifying, TotpFailed)):
            return self._transition(TotpIdle(), "cancel", "discarded")
        return self._state

    def close(self) -> None:
        self.cancel()
        self.disable_password = ""
        self._closed = True
