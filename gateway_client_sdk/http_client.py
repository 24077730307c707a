from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx

from .config import ClientConfig
from .credential_store import CredentialStore
from .error_mapper import map_error
from .exceptions import TransportError

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    status_code: int | None


class HttpClient:
    def __init__(
        self,
        config: ClientConfig | None = None,
        credentials: CredentialStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.credentials = credentials or CredentialStore()
        self._client = client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            verify=self.config.verify_ssl,
        )
        self._retry_max_attempts = max(1, self.config.retry_max_attempts)
        self._retry_backoff_ms = max(0, self.config.retry_backoff_ms)
        self.last_operation: LastOperation | None = None

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        allow_retry: bool | None = None,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> dict[str, Any]:
        normalized_method = method.upper()
        request_headers = {"Accept": "application/json"}
        if normalized_method not in SAFE_METHODS:
            self.credentials.sync_from_cookies(self._client.cookies)
            request_headers.update(self.credentials.mutation_headers())
        if headers:
            request_headers.update(headers)

        url = self._build_path(path)
        if allow_retry is None:
            allow_retry = normalized_method == "GET"
        attempts = self._retry_max_attempts if allow_retry else 1

        started = time.monotonic()
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(
                    normalized_method,
                    url,
                    json=json_body,
                    params=params,
                    headers=request_headers,
                )
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    self._record_operation(module, operation, started, "network_error", None)
                    raise TransportError(
                        code="NETWORK_ERROR",
                        message="Network error while calling the gateway",
                        details={"type": type(exc).__name__, "reason": str(exc)},
                        status_code=0,
                    ) from exc
                await self._backoff(attempt)
                continue

            self.credentials.sync_from_cookies(self._client.cookies)
            if response.status_code >= 400:
                if self._is_retryable_status(response.status_code) and attempt < attempts:
                    await self._backoff(attempt)
                    continue
                self._record_operation(module, operation, started, "error", response.status_code)
                raise map_error(response.status_code, self._safe_json(response))

            self._record_operation(module, operation, started, "success", response.status_code)
            return self._safe_json(response)

        raise TransportError(code="NETWORK_ERROR", message="Network error while calling the gateway", details="retry exhausted")

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_path(self, path: str) -> str:
        normalized_path = path if path.startswith("/") else f"/{path}"
        return f"{self.config.api_prefix}{normalized_path}"

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep((self._retry_backoff_ms * attempt) / 1000)

    def _record_operation(
        self,
        module: str,
        operation: str,
        started: float,
        result: str,
        status_code: int | None,
    ) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            status_code=status_code,
        )

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return 500 <= status_code <= 599

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError:
            return {"message": response.text}
        return payload if isinstance(payload, dict) else {"data": payload}
