from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from gateway_client_sdk.config import ClientConfig, ConfigError, read_float, read_int

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(frozen=True)
class ConsoleConfig:
    client: ClientConfig = field(default_factory=ClientConfig)
    poll_interval_ms: int = 2000
    restart_timeout_seconds: float = 0.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: str | None = ".env") -> "ConsoleConfig":
        if env_file:
            load_dotenv(env_file)
        config = cls(
            client=ClientConfig.from_env(env_file=None),
            poll_interval_ms=read_int("ACCOUNT_CONSOLE_POLL_INTERVAL_MS", "2000"),
            restart_timeout_seconds=read_float("ACCOUNT_CONSOLE_RESTART_TIMEOUT_SECONDS", "0"),
            log_level=os.getenv("ACCOUNT_CONSOLE_LOG_LEVEL", "INFO").strip().upper(),
        )
        config.validate()
        return config

    @property
    def restart_timeout(self) -> float | None:
        return self.restart_timeout_seconds or None

    def validate(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ConfigError(f"Invalid ACCOUNT_CONSOLE_POLL_INTERVAL_MS: expected > 0, got {self.poll_interval_ms}")
        if self.restart_timeout_seconds < 0:
            raise ConfigError(
                f"Invalid ACCOUNT_CONSOLE_RESTART_TIMEOUT_SECONDS: expected >= 0, got {self.restart_timeout_seconds}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid ACCOUNT_CONSOLE_LOG_LEVEL: expected one of {sorted(LOG_LEVELS)}, got {self.log_level!r}")
