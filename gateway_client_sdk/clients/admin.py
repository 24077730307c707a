from __future__ import annotations

from dataclasses import dataclass

from ..models import LivenessResponse, OkResponse
from .base import BaseClient


@dataclass
class AdminClient(BaseClient):
    module: str = "admin"

    async def reload_config(self) -> OkResponse:
        data = await self._request("POST", "/admin/reload-config", operation="reload_config")
        return OkResponse.model_validate(data)

    async def restart(self) -> OkResponse:
        data = await self._request("POST", "/admin/restart", operation="restart")
        return OkResponse.model_validate(data)

    async def test_email(self, to: str) -> OkResponse:
        data = await self._request("POST", "/admin/test-email", operation="test_email", json_body={"to": to})
        return OkResponse.model_validate(data)

    async def test_sms(self, to: str) -> OkResponse:
        data = await self._request("POST", "/admin/test-sms", operation="test_sms", json_body={"to": to})
        return OkResponse.model_validate(data)

    async def status(self) -> LivenessResponse:
        data = await self._request("GET", "/admin/status", operation="status", allow_retry=False)
        return LivenessResponse.model_validate(data)
