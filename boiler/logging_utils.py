# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Logging helpers for Boiler.

Three categories:
- Application logs (operational)
- Audit logs (account changes)
- Security logs (failed logins, forged callbacks, link conflicts)

Assumptions:
- Passwords, tokens and handoff codes are never logged in clear
- Email addresses are logged masked (j***@example.com)
"""
from typing import Any, Dict, Optional

from boiler.logging_config import get_logger

app_logger = get_logger("boiler.application")
audit_logger = get_logger("boiler.audit")
security_logger = get_logger("boiler.security")

SENSITIVE_FIELDS = {
    "password", "password_hash", "secret", "token", "access_token", "code",
}

MASKED_FIELDS = {"email"}


def log_application_event(event: str, **kwargs: Any) -> None:
    """Log an operational event."""
    app_logger.info(event, **_sanitize_data(kwargs))


def log_audit_event(
    account_id: str,
    operation: str,
    changes: Optional[Dict[str, Any]] = None,
    **kwargs: Any
) -> None:
    """Log a change made to an account.

    Args:
        account_id: Account that was changed
        operation: What happened (account_created, oauth_linked, ...)
        changes: Changed fields; sensitive values are redacted
        **kwargs: Additional context
    """
    audit_logger.info(
        "audit_event",
        account_id=account_id,
        operation=operation,
        changes=_sanitize_data(changes) if changes else None,
        **_sanitize_data(kwargs)
    )


def log_security_event(
    event: str,
    account_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    reason: Optional[str] = None,
    **kwargs: Any
) -> None:
    """Log a security-relevant event.

    Args:
        event: Event type (authentication_failed, oauth_state_mismatch, ...)
        account_id: Account involved, if known
        ip_address: Client address, if known
        reason: Why the event was raised
        **kwargs: Additional context
    """
    security_logger.warning(
        event,
        account_id=account_id,
        ip_address=ip_address,
        reason=reason,
        **_sanitize_data(kwargs)
    )


def _sanitize_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of data with sensitive fields redacted (recursively)."""
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = "[REDACTED]"
        elif key.lower() in MASKED_FIELDS and isinstance(value, str):
            sanitized[key] = mask_email(value)
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_data(value)
        elif isinstance(value, list):
            sanitized[key] = [
                _sanitize_data(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def mask_email(email: str) -> str:
    """Mask an email for logs: john@example.com -> j***@example.com"""
    local, at, domain = email.rpartition("@")
    if not at:
        return "***"
    if len(local) <= 1:
        return f"*@{domain}"
    return f"{local[0]}***@{domain}"
