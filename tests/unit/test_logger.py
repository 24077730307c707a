import json
import logging

import pytest

from account_console.app.infrastructure.logging.logger import ROOT_LOGGER_NAME, get_logger, log_action, sanitize


def test_sanitize_masks_secret_material_recursively() -> None:
    details = {
        "username": "alice",
        "new_password": "hunter2",
        "csrf_token": "abc",
        "nested": {"secret": "JBSW", "attempts": 2},
    }

    assert sanitize(details) == {
        "username": "alice",
        "new_password": "***",
        "csrf_token": "***",
        "nested": {"secret": "***", "attempts": 2},
    }


def test_log_action_emits_json_line(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger(f"{ROOT_LOGGER_NAME}.tests")

    with caplog.at_level(logging.INFO, logger=ROOT_LOGGER_NAME):
        log_action(logger, "totp", "submit", "alice", "rejected", phase_to="secret_issued", otp="123456")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["module"] == "totp"
    assert payload["actor"] == "alice"
    assert payload["outcome"] == "rejected"
    assert payload["details"] == {"phase_to": "secret_issued", "otp": "***"}


def test_child_loggers_share_the_root_handler() -> None:
    root = get_logger(ROOT_LOGGER_NAME, "WARNING")
    child = get_logger(f"{ROOT_LOGGER_NAME}.flows")

    assert len(root.handlers) == 1
    assert child.handlers == []
    assert child.getEffectiveLevel() == logging.WARNING

    get_logger(ROOT_LOGGER_NAME, "INFO")
