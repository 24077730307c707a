from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    module: str = "gateway"

    async def _request(self, method: str, path: str, *, operation: str, **kwargs: Any) -> dict[str, Any]:
        return await self.http.request(method, path, module=self.module, operation=operation, **kwargs)
