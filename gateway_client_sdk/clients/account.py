from __future__ import annotations

from dataclasses import dataclass

from ..models import OkResponse, ProfileResponse, TotpSetupResponse
from .base import BaseClient


@dataclass
class AccountClient(BaseClient):
    module: str = "account"

    async def profile(self) -> ProfileResponse:
        data = await self._request("GET", "/account/profile", operation="profile", allow_retry=False)
        return ProfileResponse.model_validate(data)

    async def change_password(self, old_password: str, new_password: str) -> OkResponse:
        payload = {"oldPassword": old_password, "newPassword": new_password}
        data = await self._request("POST", "/account/change-password", operation="change_password", json_body=payload)
        return OkResponse.model_validate(data)

    async def totp_setup(self) -> TotpSetupResponse:
        data = await self._request("POST", "/account/totp/setup", operation="totp_setup")
        return TotpSetupResponse.model_validate(data)

    async def totp_enable(self, secret: str, code: str) -> OkResponse:
        payload = {"secret": secret, "code": code}
        data = await self._request("POST", "/account/totp/enable", operation="totp_enable", json_body=payload)
        return OkResponse.model_validate(data)

    async def totp_disable(self, password: str) -> OkResponse:
        data = await self._request(
            "POST",
            "/account/totp/disable",
            operation="totp_disable",
            json_body={"password": password},
        )
        return OkResponse.model_validate(data)
