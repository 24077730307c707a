from __future__ import annotations

from dataclasses import dataclass

from ..models import OkResponse
from .base import BaseClient


@dataclass
class RecoveryClient(BaseClient):
    module: str = "recovery"

    async def request_email_reset(self, identifier: str) -> OkResponse:
        data = await self._request(
            "POST",
            "/password-reset/request",
            operation="email_reset_request",
            json_body={"username": identifier},
        )
        return OkResponse.model_validate(data)

    async def confirm_email_reset(self, token: str, new_password: str) -> OkResponse:
        payload = {"token": token, "newPassword": new_password}
        data = await self._request("POST", "/password-reset/confirm", operation="email_reset_confirm", json_body=payload)
        return OkResponse.model_validate(data)

    async def request_sms_code(self, phone: str) -> OkResponse:
        data = await self._request(
            "POST",
            "/password-reset/sms/request",
            operation="sms_reset_request",
            json_body={"phone": phone},
        )
        return OkResponse.model_validate(data)

    async def confirm_sms_reset(self, phone: str, code: str, new_password: str) -> OkResponse:
        payload = {"phone": phone, "code": code, "newPassword": new_password}
        data = await self._request("POST", "/password-reset/sms/confirm", operation="sms_reset_confirm", json_body=payload)
        return OkResponse.model_validate(data)
