# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Unit tests for database schema.

Assumptions:
- email and google_id are unique in the store itself
- Several accounts may have no Google binding (NULL google_id)
- Accounts start at version 1 with timestamps set
- Every UPDATE bumps version and is refused if the loaded version is stale
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from boiler.database.schema import Account, HandoffRecord, init_db


@pytest.mark.unit
def test_account_defaults(db_session):
    account = Account(email="a@x.com", password_hash="$2b$04$hash")
    db_session.add(account)
    db_session.commit()

    assert len(account.id) == 36
    assert account.version == 1
    assert account.created_at is not None
    assert account.updated_at is not None
    assert account.has_password is True
    assert account.has_oauth is False


@pytest.mark.unit
def test_account_email_is_unique(db_session):
    db_session.add(Account(email="a@x.com"))
    db_session.commit()

    db_session.add(Account(email="a@x.com"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


@pytest.mark.unit
def test_google_id_is_unique(db_session):
    db_session.add(Account(email="a@x.com", google_id="g-1"))
    db_session.commit()

    db_session.add(Account(email="b@x.com", google_id="g-1"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


@pytest.mark.unit
def test_many_accounts_without_google(db_session):
    db_session.add_all([Account(email="a@x.com"), Account(email="b@x.com")])
    db_session.commit()

    assert db_session.query(Account).filter(Account.google_id.is_(None)).count() == 2


@pytest.mark.unit
def test_google_only_account(db_session):
    """No password hash, bound to Google."""
    account = Account(email="g@x.com", google_id="g-1", google_access_token="at")
    db_session.add(account)
    db_session.commit()

    assert account.has_password is False
    assert account.has_oauth is True


@pytest.mark.unit
def test_handoff_record_timestamp(db_session):
    db_session.add(HandoffRecord(code="c", provider_id="g-1", email="a@x.com", access_token="at"))
    db_session.commit()

    assert db_session.get(HandoffRecord, "c").created_at is not None


@pytest.mark.unit
def test_each_update_bumps_version(db_session):
    account = Account(email="a@x.com")
    db_session.add(account)
    db_session.commit()

    account.profile_name = "Jane"
    db_session.commit()
    account.profile_name = "Jane D"
    db_session.commit()

    assert account.version == 3


@pytest.mark.unit
def test_stale_update_is_refused(tmp_path):
    """A write based on an old read must not overwrite a newer one."""
    engine = create_engine(f"sqlite:///{tmp_path / 'schema.db'}")
    init_db(engine)
    factory = sessionmaker(bind=engine)
    first, second = factory(), factory()
    try:
        account = Account(email="a@x.com")
        first.add(account)
        first.commit()
        assert account.version == 1

        second.get(Account, account.id).profile_name = "Second"
        second.commit()

        account.profile_name = "First"
        with pytest.raises(StaleDataError):
            first.commit()
        first.rollback()

        first.refresh(account)
        assert account.profile_name == "Second"
        assert account.version == 2
    finally:
        first.close()
        second.close()
        engine.dispose()
