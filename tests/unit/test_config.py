from __future__ import annotations

import os

import pytest

from gateway_client_sdk.config import ClientConfig, ConfigError, normalize_api_prefix, parse_bool

from account_console.app.config import ConsoleConfig

ENV_KEYS = [
    "ACCOUNT_CONSOLE_BASE_URL",
    "ACCOUNT_CONSOLE_API_PREFIX",
    "ACCOUNT_CONSOLE_TIMEOUT_SECONDS",
    "ACCOUNT_CONSOLE_VERIFY_SSL",
    "ACCOUNT_CONSOLE_RETRY_MAX_ATTEMPTS",
    "ACCOUNT_CONSOLE_RETRY_BACKOFF_MS",
    "ACCOUNT_CONSOLE_POLL_INTERVAL_MS",
    "ACCOUNT_CONSOLE_RESTART_TIMEOUT_SECONDS",
    "ACCOUNT_CONSOLE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env():
    saved = {key: os.environ.pop(key) for key in ENV_KEYS if key in os.environ}
    yield
    for key in ENV_KEYS:
        os.environ.pop(key, None)
    os.environ.update(saved)


def test_client_config_defaults() -> None:
    config = ClientConfig.from_env(env_file=None)

    assert config.base_url == "http://localhost:8080"
    assert config.api_prefix == "/manage/api"
    assert config.timeout_seconds == 10
    assert config.verify_ssl is True
    assert config.retry_max_attempts == 3
    assert config.retry_backoff_ms == 150


def test_client_config_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCOUNT_CONSOLE_BASE_URL", " https://auth.example.com/ ")
    monkeypatch.setenv("ACCOUNT_CONSOLE_API_PREFIX", "api/v1/")
    monkeypatch.setenv("ACCOUNT_CONSOLE_VERIFY_SSL", "off")

    config = ClientConfig.from_env(env_file=None)

    assert config.base_url == "https://auth.example.com"
    assert config.api_prefix == "/api/v1"
    assert config.verify_ssl is False


def test_console_config_loads_dotenv_file(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("ACCOUNT_CONSOLE_POLL_INTERVAL_MS=500\nACCOUNT_CONSOLE_LOG_LEVEL=debug\n", encoding="utf-8")

    config = ConsoleConfig.from_env(env_file=str(env_file))

    assert config.poll_interval_ms == 500
    assert config.log_level == "DEBUG"
    assert config.restart_timeout is None


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("ACCOUNT_CONSOLE_TIMEOUT_SECONDS", "0"),
        ("ACCOUNT_CONSOLE_RETRY_MAX_ATTEMPTS", "0"),
        ("ACCOUNT_CONSOLE_RETRY_BACKOFF_MS", "-1"),
        ("ACCOUNT_CONSOLE_POLL_INTERVAL_MS", "0"),
        ("ACCOUNT_CONSOLE_RESTART_TIMEOUT_SECONDS", "-5"),
        ("ACCOUNT_CONSOLE_LOG_LEVEL", "chatty"),
        ("ACCOUNT_CONSOLE_RETRY_MAX_ATTEMPTS", "many"),
    ],
)
def test_console_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError, match=key):
        ConsoleConfig.from_env(env_file=None)


def test_parse_bool_and_prefix_helpers() -> None:
    assert parse_bool("YES") is True
    assert parse_bool("0") is False
    assert parse_bool("maybe", default=False) is False
    assert normalize_api_prefix("/") == ""
