from __future__ import annotations

from typing import Any

from gateway_client_sdk.exceptions import (
    ApiError,
    AuthError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    TransportError,
)

NETWORK_MESSAGE = "Could not reach the gateway. Check your connection and try again."
SERVER_MESSAGE = "The gateway ran into an internal error. Try again shortly."
RATE_LIMIT_MESSAGE = "Too many attempts. Wait a minute before trying again."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Sign in again."
PERMISSION_MESSAGE = "You are not allowed to perform this action."
INVALID_RESPONSE_MESSAGE = "The gateway sent an unexpected response."
GENERIC_MESSAGE = "The request failed."


def build_error_payload(error: Exception) -> dict[str, Any]:
    if isinstance(error, ApiError):
        category = _classify_api_error(error)
        return {
            "category": category,
            "code": error.code,
            "message": user_message(error),
            "status_code": error.status_code,
            "action": _suggest_action(category),
        }
    return {
        "category": "internal",
        "code": "INTERNAL_ERROR",
        "message": INVALID_RESPONSE_MESSAGE,
        "status_code": None,
        "action": "Retry",
    }


def user_message(error: Exception) -> str:
    if isinstance(error, TransportError):
        return NETWORK_MESSAGE
    if isinstance(error, ServerError):
        return SERVER_MESSAGE
    if isinstance(error, RateLimitError):
        return RATE_LIMIT_MESSAGE
    if isinstance(error, AuthError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(error, PermissionDeniedError):
        return error.message if error.message != "Request failed" else PERMISSION_MESSAGE
    if isinstance(error, ApiError):
        return error.message or GENERIC_MESSAGE
    return INVALID_RESPONSE_MESSAGE


def print_error_banner(payload: dict[str, Any]) -> None:
    print(
        "[ERROR] "
        f"code={payload.get('code')} "
        f"message={payload.get('message')} "
        f"category={payload.get('category')} "
        f"action={payload.get('action')}"
    )


def _classify_api_error(error: ApiError) -> str:
    if isinstance(error, TransportError):
        return "network"
    if error.status_code == 401:
        return "401"
    if error.status_code == 403:
        return "403"
    if error.status_code == 429:
        return "429"
    if error.status_code >= 500:
        return "500"
    return "rejected"


def _suggest_action(category: str) -> str:
    if category in {"network", "500", "429", "rejected"}:
        return "Retry"
    if category == "401":
        return "Sign in"
    return "Contact an administrator"
