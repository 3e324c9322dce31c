# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Unit tests for logging infrastructure.

Assumptions:
- structlog is configured at import
- Secrets never reach log output
"""
import pytest
import structlog


@pytest.mark.unit
def test_get_logger_returns_structlog_logger():
    from boiler.logging_config import get_logger

    logger = get_logger("test")

    assert hasattr(logger, "info")
    assert hasattr(logger, "bind")


@pytest.mark.unit
def test_bind_and_clear_context():
    from boiler.logging_config import bind_context, clear_context

    clear_context()
    bind_context(account_id="acc-1", request_id="req-1")
    assert structlog.contextvars.get_contextvars() == {"account_id": "acc-1", "request_id": "req-1"}

    clear_context()
    assert structlog.contextvars.get_contextvars() == {}


@pytest.mark.unit
def test_sanitize_redacts_nested_secrets():
    from boiler.logging_utils import _sanitize_data

    data = {
        "email": "jane@example.com",
        "password": "hunter2",
        "nested": {"access_token": "at", "name": "Jane"},
        "items": [{"code": "otc"}, "plain"],
    }

    assert _sanitize_data(data) == {
        "email": "j***@example.com",
        "password": "[REDACTED]",
        "nested": {"access_token": "[REDACTED]", "name": "Jane"},
        "items": [{"code": "[REDACTED]"}, "plain"],
    }


class _Recorder:
    def __init__(self):
        self.calls = []

    def info(self, event, **kwargs):
        self.calls.append(("info", event, kwargs))

    def warning(self, event, **kwargs):
        self.calls.append(("warning", event, kwargs))


@pytest.mark.unit
def test_security_event_is_warning_without_secrets(monkeypatch):
    from boiler import logging_utils

    recorder = _Recorder()
    monkeypatch.setattr(logging_utils, "security_logger", recorder)

    logging_utils.log_security_event("authentication_failed", reason="wrong_password", password="hunter2")

    level, event, fields = recorder.calls[0]
    assert (level, event) == ("warning", "authentication_failed")
    assert fields["reason"] == "wrong_password"
    assert fields["password"] == "[REDACTED]"


@pytest.mark.unit
def test_audit_event_redacts_changes(monkeypatch):
    from boiler import logging_utils

    recorder = _Recorder()
    monkeypatch.setattr(logging_utils, "audit_logger", recorder)

    logging_utils.log_audit_event("acc-1", "password_changed", changes={"password_hash": "$2b$..."})

    level, event, fields = recorder.calls[0]
    assert (level, event) == ("info", "audit_event")
    assert fields["account_id"] == "acc-1"
    assert fields["changes"] == {"password_hash": "[REDACTED]"}


@pytest.mark.unit
@pytest.mark.parametrize("email,masked", [
    ("jane@example.com", "j***@example.com"),
    ("j@example.com", "*@example.com"),
    ("not-an-email", "***"),
])
def test_mask_email(email, masked):
    from boiler.logging_utils import mask_email

    assert mask_email(email) == masked


@pytest.mark.unit
def test_failed_login_logs_masked_email(db_session, monkeypatch):
    from boiler import logging_utils
    from boiler.auth.accounts import authenticate_account
    from boiler.auth.errors import InvalidCredentialsError

    recorder = _Recorder()
    monkeypatch.setattr(logging_utils, "security_logger", recorder)

    with pytest.raises(InvalidCredentialsError):
        authenticate_account(db_session, "jane@example.com", "pw")

    level, event, fields = recorder.calls[0]
    assert event == "authentication_failed"
    assert fields["email"] == "j***@example.com"
    assert "jane@example.com" not in repr(recorder.calls)
