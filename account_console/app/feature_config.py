from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Protocol

import pydantic

from gateway_client_sdk.exceptions import ApiError
from gateway_client_sdk.models import FeaturesResponse

from account_console.app.infrastructure.logging.logger import get_logger, log_action

logger = get_logger(__name__)


class FeatureConfigNotLoaded(RuntimeError):
    pass


@dataclass(frozen=True)
class FeatureConfig:
    signup_enabled: bool = False
    sms_enabled: bool = False
    email_enabled: bool = False
    username_is_email: bool = False
    loaded: bool = False

    @classmethod
    def fallback(cls) -> "FeatureConfig":
        return cls(
            signup_enabled=True,
            sms_enabled=False,
            email_enabled=False,
            username_is_email=True,
            loaded=True,
        )

    @classmethod
    def from_response(cls, response: FeaturesResponse) -> "FeatureConfig":
        return cls(
            signup_enabled=response.signup_enabled,
            sms_enabled=response.sms_enabled,
            email_enabled=response.email_enabled,
            username_is_email=response.username_is_email,
            loaded=True,
        )

    @property
    def recovery_enabled(self) -> bool:
        return self.email_enabled or self.sms_enabled


class FeatureSource(Protocol):
    def features(self) -> Awaitable[FeaturesResponse]: ...


class FeatureConfigStore:
    """Server-advertised capability flags, fetched once per console session."""

    def __init__(self, source: FeatureSource) -> None:
        self._source = source
        self._config = FeatureConfig()
        self._pending: asyncio.Future[FeatureConfig] | None = None

    def current(self) -> FeatureConfig:
        return self._config

    def require_loaded(self) -> FeatureConfig:
        if not self._config.loaded:
            raise FeatureConfigNotLoaded("feature flags have not been loaded yet")
        return self._config

    async def load(self) -> FeatureConfig:
        if self._config.loaded:
            return self._config
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._fetch())
        return await asyncio.shield(self._pending)

    async def _fetch(self) -> FeatureConfig:
        try:
            return await self._fetch_once()
        finally:
            self._pending = None

    async def _fetch_once(self) -> FeatureConfig:
        try:
            response = await self._source.features()
        except (ApiError, pydantic.ValidationError) as error:
            config = FeatureConfig.fallback()
            log_action(logger, "features", "load", None, "fallback", error=type(error).__name__)
        else:
            config = FeatureConfig.from_response(response)
            log_action(
                logger,
                "features",
                "load",
                None,
                "success",
                signup=config.signup_enabled,
                sms=config.sms_enabled,
                email=config.email_enabled,
            )
        self._config = config
        return config
