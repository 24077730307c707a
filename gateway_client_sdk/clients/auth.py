from __future__ import annotations

from dataclasses import dataclass

from ..models import AuthCheckResponse, LogoutResponse, OkResponse
from .base import BaseClient


@dataclass
class AuthClient(BaseClient):
    module: str = "auth"

    async def login(self, username: str, password: str) -> OkResponse:
        payload = {"username": username, "password": password}
        data = await self._request("POST", "/auth/login", operation="login", json_body=payload)
        return OkResponse.model_validate(data)

    async def check(self) -> AuthCheckResponse:
        data = await self._request("GET", "/auth/check", operation="check", allow_retry=False)
        return AuthCheckResponse.model_validate(data)

    async def logout(self) -> LogoutResponse:
        data = await self._request("POST", "/auth/logout", operation="logout")
        return LogoutResponse.model_validate(data)
