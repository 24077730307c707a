from __future__ import annotations

from dataclasses import dataclass

from ..models import FeaturesResponse
from .base import BaseClient


@dataclass
class FeaturesClient(BaseClient):
    module: str = "features"

    async def features(self) -> FeaturesResponse:
        data = await self._request("GET", "/features", operation="features", allow_retry=False)
        return FeaturesResponse.model_validate(data)
