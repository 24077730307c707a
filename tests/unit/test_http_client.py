from __future__ import annotations

import httpx
import pytest

from gateway_client_sdk.config import ClientConfig
from gateway_client_sdk.credential_store import CSRF_HEADER_NAME
from gateway_client_sdk.exceptions import ServerError, TransportError, ValidationError
from gateway_client_sdk.http_client import HttpClient


@pytest.mark.asyncio
async def test_http_client_retries_get_not_post() -> None:
    call_log: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        call_log.append(f"{request.method}:{request.url.path}")
        if request.url.path == "/manage/api/features" and len(call_log) == 1:
            raise httpx.ReadTimeout("slow")
        if request.url.path == "/manage/api/features":
            return httpx.Response(200, json={"signupEnabled": True})
        raise httpx.ReadTimeout("write timeout")

    http = HttpClient(
        config=ClientConfig(base_url="https://gw.test", retry_max_attempts=3, retry_backoff_ms=0),
        client=httpx.AsyncClient(base_url="https://gw.test", transport=httpx.MockTransport(handler)),
    )

    assert (await http.request("GET", "/features"))["signupEnabled"] is True

    with pytest.raises(TransportError) as raised:
        await http.request("POST", "/account/change-password", json_body={"oldPassword": "a"})

    assert raised.value.code == "NETWORK_ERROR"
    assert call_log == [
        "GET:/manage/api/features",
        "GET:/manage/api/features",
        "POST:/manage/api/account/change-password",
    ]


@pytest.mark.asyncio
async def test_get_can_opt_out_of_retry(gateway, http) -> None:
    gateway.add("GET", "/admin/status", 502, {"error": "bad gateway"})

    with pytest.raises(ServerError):
        await http.request("GET", "/admin/status", allow_retry=False)

    assert gateway.requested() == ["GET /admin/status"]


@pytest.mark.asyncio
async def test_server_errors_on_get_are_retried_until_exhausted(gateway, http) -> None:
    gateway.add("GET", "/features", 503, {"error": "starting"})

    with pytest.raises(ServerError) as raised:
        await http.request("GET", "/features")

    assert raised.value.status_code == 503
    assert len(gateway.calls) == 3
    assert http.last_operation is not None
    assert http.last_operation.result == "error"


@pytest.mark.asyncio
async def test_csrf_cookie_is_echoed_on_mutations_only(gateway, http) -> None:
    gateway.add("GET", "/features", payload={}, headers={"Set-Cookie": "csrf_token=tok-123; Path=/"})
    gateway.add("POST", "/account/totp/setup", payload={"secret": "S", "otpUrl": "otpauth://x"})

    await http.request("GET", "/features")
    await http.request("POST", "/account/totp/setup")

    get_request, post_request = gateway.calls
    assert CSRF_HEADER_NAME not in get_request.headers
    assert post_request.headers[CSRF_HEADER_NAME] == "tok-123"
    assert http.credentials.get_csrf_token() == "tok-123"


@pytest.mark.asyncio
async def test_explicit_csrf_token_used_without_cookie(gateway, http, credentials) -> None:
    credentials.set_csrf_token("manual")
    gateway.add("POST", "/admin/restart")

    await http.request("POST", "/admin/restart")

    assert gateway.calls[0].headers[CSRF_HEADER_NAME] == "manual"


@pytest.mark.asyncio
async def test_error_body_is_mapped_to_typed_error(gateway, http) -> None:
    gateway.add("POST", "/password-reset/confirm", 400, {"error": "invalid or expired token"})

    with pytest.raises(ValidationError) as raised:
        await http.request("POST", "/password-reset/confirm", json_body={"token": "t"})

    assert raised.value.message == "invalid or expired token"
    assert raised.value.status_code == 400


@pytest.mark.asyncio
async def test_empty_and_non_object_bodies_are_normalized(gateway, http) -> None:
    gateway.add_handler("POST", "/admin/reload-config", lambda request: httpx.Response(204))
    gateway.add("GET", "/features", payload=[1, 2])

    assert await http.request("POST", "/admin/reload-config") == {}
    assert await http.request("GET", "/features") == {"data": [1, 2]}
