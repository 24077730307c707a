import json
import logging
from datetime import datetime, timezone
from typing import Any

SENSITIVE_KEY_MARKERS = ("token", "password", "secret", "code", "otp", "qr", "authorization", "csrf")


ROOT_LOGGER_NAME = "account_console"


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        get_logger(ROOT_LOGGER_NAME)
        return logger
    if level is not None:
        logger.setLevel(level)
    if logger.handlers:
        return logger
    if level is None:
        logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def sanitize(details: dict[str, Any]) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for key, value in details.items():
        if any(marker in key.lower() for marker in SENSITIVE_KEY_MARKERS):
            sanitized[key] = "***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize(value)
        else:
            sanitized[key] = value
    return sanitized


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    actor: str | None,
    outcome: str,
    **details: Any,
) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": "INFO",
        "module": module,
        "action": action,
        "actor": actor,
        "outcome": outcome,
    }
    if details:
        payload["details"] = sanitize(details)
    logger.info(json.dumps(payload))
