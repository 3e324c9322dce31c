# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Unit tests for the handoff cache.

Assumptions:
- A code redeems exactly once
- Codes past the TTL never redeem
"""
from datetime import datetime, timedelta, UTC

import pytest

from boiler.auth.handoff import purge_handoffs, redeem_handoff, store_handoff
from boiler.database.schema import HandoffRecord
from tests.fixtures.google import make_identity


@pytest.mark.unit
def test_store_handoff_generates_unguessable_codes(db_session):
    identity = make_identity()

    code1 = store_handoff(db_session, identity)
    code2 = store_handoff(db_session, identity)

    assert code1 != code2
    assert len(code1) >= 40
    assert db_session.query(HandoffRecord).count() == 2


@pytest.mark.unit
def test_redeem_returns_identity_once(db_session):
    identity = make_identity()
    code = store_handoff(db_session, identity)

    assert redeem_handoff(db_session, code, ttl=300) == identity
    assert redeem_handoff(db_session, code, ttl=300) is None
    assert db_session.query(HandoffRecord).count() == 0


@pytest.mark.unit
def test_redeem_unknown_code(db_session):
    assert redeem_handoff(db_session, "no-such-code", ttl=300) is None


@pytest.mark.unit
def test_redeem_expired_code(db_session):
    code = store_handoff(db_session, make_identity())
    record = db_session.get(HandoffRecord, code)
    record.created_at = datetime.now(UTC) - timedelta(seconds=301)
    db_session.commit()

    assert redeem_handoff(db_session, code, ttl=300) is None
    # Expired codes are consumed as well
    assert db_session.get(HandoffRecord, code) is None


@pytest.mark.unit
def test_purge_handoffs_removes_everything(db_session):
    store_handoff(db_session, make_identity("g-1"))
    store_handoff(db_session, make_identity("g-2"))

    assert purge_handoffs(db_session) == 2
    assert db_session.query(HandoffRecord).count() == 0


@pytest.mark.unit
def test_purge_handoffs_older_than(db_session):
    old = store_handoff(db_session, make_identity("g-1"))
    fresh = store_handoff(db_session, make_identity("g-2"))
    db_session.get(HandoffRecord, old).created_at = datetime.now(UTC) - timedelta(hours=1)
    db_session.commit()

    assert purge_handoffs(db_session, older_than=300) == 1
    assert db_session.get(HandoffRecord, fresh) is not None
