from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import OkResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_new_password, validate_phone, validate_sms_code

CODE_SENT_MESSAGE = "If the number is registered, a reset code has been sent by SMS."
CODE_RESENT_MESSAGE = "A new code has been requested. Earlier codes may no longer work."
SMS_RECOVERY_DISABLED_MESSAGE = "Password reset by SMS is not available on this gateway."


@dataclass(frozen=True)
class SmsIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class SmsCodeSent:
    phase: ClassVar[str] = "code_sent"
    phone: str
    code: str | None = None
    notice: str = CODE_SENT_MESSAGE
    last_error: str | None = None

    def __post_init__(self) -> None:
        if not self.phone:
            raise ValueError("a sent code is bound to a phone number")


@dataclass(frozen=True)
class SmsConfirming:
    phase: ClassVar[str] = "confirming"
    phone: str
    code: str

    def __post_init__(self) -> None:
        if not self.phone or not self.code:
            raise ValueError("confirming requires both phone and code")


@dataclass(frozen=True)
class SmsCompleted:
    phase: ClassVar[str] = "completed"
    phone: str


@dataclass(frozen=True)
class SmsFailed:
    phase: ClassVar[str] = "failed"
    last_error: str


SmsRecoveryState = Union[SmsIdle, SmsCodeSent, SmsConfirming, SmsCompleted, SmsFailed]


class SmsRecoveryApi(Protocol):
    def request_sms_code(self, phone: str) -> Awaitable[OkResponse]: ...

    def confirm_sms_reset(self, phone: str, code: str, new_password: str) -> Awaitable[OkResponse]: ...


class SmsRecoveryFlow(Flow[SmsRecoveryState]):
    """Password recovery through a short-lived code sent to the user's phone.

    The phone number is fixed once a code has been sent. ``resend`` wipes
    whatever code was typed before asking for a new one, and concurrent
    resends collapse into the one already in flight.
    """

    module = "sms_recovery"

    def __init__(self, api: SmsRecoveryApi, *, enabled: bool = True) -> None:
        initial: SmsRecoveryState = SmsIdle() if enabled else SmsFailed(last_error=SMS_RECOVERY_DISABLED_MESSAGE)
        super().__init__(initial)
        self._api = api
        self._enabled = enabled
        self._resending = False

    async def request_code(self, phone: str) -> SmsRecoveryState:
        state = self._state
        if not isinstance(state, SmsIdle):
            return state

        form = validate_phone(phone)
        if not form.is_valid:
            return self._transition(SmsIdle(last_error=form.first_error), "request_code", "invalid")

        normalized = form.values["phone"]
        epoch = self._epoch
        try:
            await self._api.request_sms_code(normalized)
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(SmsIdle(last_error=user_message(error)), "request_code", "error")
        if self._is_stale(epoch):
            return self._state
        return self._transition(SmsCodeSent(phone=normalized), "request_code", "sent")

    def enter_code(self, code: str) -> SmsRecoveryState:
        state = self._state
        if not isinstance(state, SmsCodeSent):
            return state
        self._state = SmsCodeSent(state.phone, code.strip() or None, state.notice, state.last_error)
        return self._state

    async def resend(self) -> SmsRecoveryState:
        state = self._state
        if not isinstance(state, SmsCodeSent) or self._resending:
            return state

        phone = state.phone
        self._transition(SmsCodeSent(phone, code=None, notice=state.notice), "resend", "pending")
        epoch = self._epoch
        self._resending = True
        try:
            await self._api.request_sms_code(phone)
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch) or not isinstance(self._state, SmsCodeSent):
                return self._state
            return self._transition(
                SmsCodeSent(phone, code=self._state.code, notice=state.notice, last_error=user_message(error)),
                "resend",
                "error",
            )
        finally:
            self._resending = False
        if self._is_stale(epoch) or not isinstance(self._state, SmsCodeSent):
            return self._state
        return self._transition(
            SmsCodeSent(phone, code=self._state.code, notice=CODE_RESENT_MESSAGE),
            "resend",
            "sent",
        )

    async def confirm(
        self,
        new_password: str,
        confirm_password: str,
        code: str | None = None,
    ) -> SmsRecoveryState:
        state = self._state
        if not isinstance(state, SmsCodeSent):
            return state

        code_form = validate_sms_code(code if code is not None else state.code)
        password_form = validate_new_password(new_password, confirm_password)
        entered_code = code_form.values["code"] or None
        if not code_form.is_valid or not password_form.is_valid:
            error = code_form.first_error or password_form.first_error
            return self._transition(
                SmsCodeSent(state.phone, entered_code, state.notice, last_error=error),
                "confirm",
                "invalid",
            )

        self._transition(SmsConfirming(state.phone, code_form.values["code"]), "confirm", "pending")
        epoch = self._epoch
        try:
            await self._api.confirm_sms_reset(state.phone, code_form.values["code"], password_form.values["new_password"])
        except (ApiError, pydantic.ValidationError) as error:
            if self._is_stale(epoch):
                return self._state
            return self._transition(
                SmsCodeSent(state.phone, entered_code, state.notice, last_error=user_message(error)),
                "confirm",
                "rejected",
            )
        if self._is_stale(epoch):
            return self._state
        return self._transition(SmsCompleted(state.phone), "confirm", "success")

    def reset(self) -> SmsRecoveryState:
        self._discard_pending()
        if not self._enabled:
            return self._state
        return self._transition(SmsIdle(), "reset", "discarded")

    def close(self) -> None:
        self._discard_pending()
        if isinstance(self._state, (SmsCodeSent, SmsConfirming)):
            self._transition(SmsIdle(), "close", "discarded")
        self._closed = True
