from __future__ import annotations

import httpx

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"


class CredentialStore:
    """Holds the anti-forgery token the gateway hands out as a readable cookie.

    The session itself rides on the cookie jar of the HTTP client; only the
    CSRF token has to be echoed back explicitly on mutating requests.
    """

    def __init__(self, csrf_token: str | None = None) -> None:
        self._csrf_token = csrf_token

    def set_csrf_token(self, token: str | None) -> None:
        self._csrf_token = token or None

    def get_csrf_token(self) -> str | None:
        return self._csrf_token

    def sync_from_cookies(self, cookies: httpx.Cookies) -> None:
        token = None
        for cookie in cookies.jar:
            if cookie.name == CSRF_COOKIE_NAME and cookie.value:
                token = cookie.value
        if token:
            self._csrf_token = token

    def mutation_headers(self) -> dict[str, str]:
        if not self._csrf_token:
            return {}
        return {CSRF_HEADER_NAME: self._csrf_token}

    def clear(self) -> None:
        self._csrf_token = None
