from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import ClassVar, Protocol, Union

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import OkResponse

from account_console.app.error_presenter import user_message
from account_console.app.flows.base import Flow
from account_console.app.forms import validate_password_change


@dataclass(frozen=True)
class PasswordIdle:
    phase: ClassVar[str] = "idle"
    last_error: str | None = None


@dataclass(frozen=True)
class PasswordSubmitting:
    phase: ClassVar[str] = "submitting"


@dataclass(frozen=True)
class PasswordChanged:
    phase: ClassVar[str] = "changed"


PasswordChangeState = Union[PasswordIdle, PasswordSubmitting, PasswordChanged]


class PasswordApi(Protocol):
    def change_password(self, old_password: str, new_password: str) -> Awaitable[OkResponse]: ...


class PasswordChangeFlow(Flow[PasswordChangeState]):
    module = "password_change"

    def __init__(self, api: PasswordApi, actor: str | None = None) -> None:
        super().__init__(PasswordIdle(), actor=actor)
        self._api = api

    async def change(self, old_password: str, new_password: str, confirm_password: str) -> PasswordChangeState:
        if isinstance(self._state, PasswordSubmitting):
            return self._state

        form = validate_password_change(old_password, new_password, confirm_password)
        if not form.is_valid:
            return self._transition(PasswordIdle(last_error=form.first_error), "change", "invalid")

        self._transition(PasswordSubmitting(), "change", "pending")
        try:
            await self._api.change_password(form.values["old_password"], form.values["new_password"])
        except (ApiError, pydantic.ValidationError) as error:
            return self._transition(PasswordIdle(last_error=user_message(error)), "change", "rejected")
        return self._transition(PasswordChanged(), "change", "success")

    def close(self) -> None:
        self._closed = True
