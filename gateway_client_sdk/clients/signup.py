from __future__ import annotations

from dataclasses import dataclass

from ..models import SignupResponse
from .base import BaseClient


@dataclass
class SignupClient(BaseClient):
    module: str = "signup"

    async def signup(self, username: str, email: str, password: str) -> SignupResponse:
        payload = {"username": username, "email": email, "password": password}
        data = await self._request("POST", "/signup", operation="signup", json_body=payload)
        return SignupResponse.model_validate(data)
