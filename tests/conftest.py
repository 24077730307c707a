from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from gateway_client_sdk.config import ClientConfig
from gateway_client_sdk.credential_store import CredentialStore
from gateway_client_sdk.http_client import HttpClient

BASE_URL = "https://gateway.example"
API = "/manage/api"

Handler = Callable[[httpx.Request], httpx.Response]


class GatewayStub:
    """Canned gateway answers keyed by method and path, recording every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Handler]] = {}
        self.calls: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        body = {"ok": True} if payload is None else payload

        def _respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json=body, headers=headers)

        self.add_handler(method, path, _respond)

    def add_handler(self, method: str, path: str, handler: Handler) -> None:
        self.routes.setdefault((method.upper(), f"{API}{path}"), []).append(handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        handler = queue.pop(0) if len(queue) > 1 else queue[0]
        return handler(request)

    def requested(self) -> list[str]:
        return [f"{request.method} {request.url.path.removeprefix(API)}" for request in self.calls]

    def body_of(self, path: str) -> dict[str, Any]:
        for request in reversed(self.calls):
            if request.url.path == f"{API}{path}":
                return json.loads(request.content or b"{}")
        raise AssertionError(f"no request recorded for {path}")


@pytest.fixture
def gateway() -> GatewayStub:
    return GatewayStub()


@pytest.fixture
def credentials() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def http(gateway: GatewayStub, credentials: CredentialStore) -> HttpClient:
    config = ClientConfig(base_url=BASE_URL, retry_max_attempts=3, retry_backoff_ms=0)
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(gateway.handler))
    return HttpClient(config=config, credentials=credentials, client=client)
