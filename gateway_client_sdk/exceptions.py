from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None = None
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.code}: {self.message}"


class AuthError(ApiError):
    """Session is missing or no longer accepted by the gateway."""


class PermissionDeniedError(ApiError):
    """Authenticated but not allowed, or anti-forgery token rejected."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    """The gateway rejected the request payload (wrong password, bad code, ...)."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""
