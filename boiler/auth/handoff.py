# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Handoff cache for finished Google round-trips.

The browser leg of OAuth ends on our callback, but the client that started
it talks to the API with its own cookie jar. The callback parks the fetched
identity under a one-time code; the client redeems the code through
POST /api/authOTC.

Assumptions:
- Codes are 32 bytes of URL-safe randomness
- A code is consumed by whichever request deletes its row first
- Records older than the TTL are treated as absent
- All records are purged when the application starts
"""
import secrets
from datetime import datetime, timedelta, UTC
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from boiler.auth.models import ExternalIdentity
from boiler.database.schema import HandoffRecord
from boiler.logging_utils import log_application_event, log_security_event


def store_handoff(session: Session, identity: ExternalIdentity) -> str:
    """Park an external identity and return its fresh one-time code."""
    code = secrets.token_urlsafe(32)
    session.add(HandoffRecord(
        code=code,
        provider_id=identity.provider_id,
        email=identity.email,
        name=identity.name,
        picture=identity.picture,
        access_token=identity.access_token,
    ))
    session.commit()
    return code


def redeem_handoff(session: Session, code: str, ttl: int) -> Optional[ExternalIdentity]:
    """Consume a code.

    Args:
        session: Database session
        code: One-time code from the callback redirect
        ttl: Maximum age in seconds

    Returns:
        ExternalIdentity if the code was valid, unexpired and not yet used;
        None otherwise
    """
    record = session.scalar(select(HandoffRecord).where(HandoffRecord.code == code))
    if record is None:
        log_security_event("handoff_code_rejected", reason="unknown_or_used")
        return None

    identity = ExternalIdentity(
        provider_id=record.provider_id,
        email=record.email,
        name=record.name,
        picture=record.picture,
        access_token=record.access_token,
    )
    created_at = record.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)

    # Only the request whose delete removes the row gets to use it.
    result = session.execute(delete(HandoffRecord).where(HandoffRecord.code == code))
    session.commit()
    if result.rowcount != 1:
        log_security_event("handoff_code_rejected", reason="concurrent_redemption")
        return None

    if datetime.now(UTC) - created_at > timedelta(seconds=ttl):
        log_security_event("handoff_code_rejected", reason="expired")
        return None

    return identity


def purge_handoffs(session: Session, older_than: Optional[int] = None) -> int:
    """Delete handoff records.

    Args:
        session: Database session
        older_than: Only delete records older than this many seconds;
            None deletes everything

    Returns:
        int: Number of records removed
    """
    stmt = delete(HandoffRecord)
    if older_than is not None:
        # Stored naive (SQLite); compare in the same form.
        cutoff = (datetime.now(UTC) - timedelta(seconds=older_than)).replace(tzinfo=None)
        stmt = stmt.where(HandoffRecord.created_at < cutoff)
    result = session.execute(stmt)
    session.commit()
    log_application_event("handoff_cache_purged", removed=result.rowcount)
    return result.rowcount
