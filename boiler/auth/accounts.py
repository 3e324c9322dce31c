# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Account management: registration, password login and password changes.

Assumptions:
- Functional style, every function takes the database session first
- Email is matched exactly as stored (case-sensitive)
- Login failures are indistinguishable: same error, same message
- Uniqueness is enforced by the store, so a lost race surfaces as a conflict
"""
from datetime import datetime, UTC
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from boiler.auth.errors import BadRequestError, ConflictError, InvalidCredentialsError
from boiler.auth.password import burn_verification, hash_password, verify_password
from boiler.database.schema import Account
from boiler.logging_utils import log_audit_event, log_security_event

DUPLICATE_EMAIL_MSG = "An user with that email already exists!"
INVALID_LOGIN_MSG = "Invalid login details!"
WRONG_OLD_PASSWORD_MSG = "Wrong old password!"
CONCURRENT_UPDATE_MSG = "The account was changed by another request. Please try again."


def get_account_by_id(session: Session, account_id: str) -> Optional[Account]:
    return session.get(Account, account_id)


def get_account_by_email(session: Session, email: str) -> Optional[Account]:
    return session.scalar(select(Account).where(Account.email == email))


def get_account_by_google_id(session: Session, google_id: str) -> Optional[Account]:
    """Find the account bound to a Google identity, if any."""
    return session.scalar(select(Account).where(Account.google_id == google_id))


def register_account(session: Session, email: str, password: str, rounds: Optional[int] = None) -> Account:
    """Create a password account.

    Args:
        session: Database session
        email: Email address (must not be registered yet)
        password: Plain text password (hashed before storage)
        rounds: bcrypt cost factor (defaults to settings.bcrypt_rounds)

    Returns:
        Account: The new account, with no Google binding

    Raises:
        ConflictError: If an account with this email already exists
    """
    if get_account_by_email(session, email) is not None:
        log_security_event("registration_rejected", reason="duplicate_email", email=email)
        raise ConflictError(DUPLICATE_EMAIL_MSG)

    account = Account(email=email, password_hash=hash_password(password, rounds=rounds))
    session.add(account)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        log_security_event("registration_rejected", reason="duplicate_email_race", email=email)
        raise ConflictError(DUPLICATE_EMAIL_MSG)
    session.refresh(account)

    log_audit_event(account.id, "account_created", method="password")
    return account


def authenticate_account(session: Session, email: str, password: str, rounds: Optional[int] = None) -> Account:
    """Check an email/password pair.

    Every failure runs one bcrypt comparison, so timing does not tell an
    unknown email from a Google-only account or a wrong password.

    Raises:
        InvalidCredentialsError: Unknown email, no password set, or wrong
            password (always the same message)
    """
    account = get_account_by_email(session, email)

    if account is None:
        burn_verification(password, rounds)
        log_security_event("authentication_failed", reason="unknown_email", email=email)
        raise InvalidCredentialsError(INVALID_LOGIN_MSG)

    if not account.has_password:
        burn_verification(password, rounds)
        log_security_event("authentication_failed", account_id=account.id, reason="no_password")
        raise InvalidCredentialsError(INVALID_LOGIN_MSG)

    if not verify_password(password, account.password_hash):
        log_security_event("authentication_failed", account_id=account.id, reason="wrong_password")
        raise InvalidCredentialsError(INVALID_LOGIN_MSG)

    return account


def change_password(
    session: Session,
    account_id: str,
    old_password: str,
    new_password: str,
    rounds: Optional[int] = None
) -> None:
    """Replace an account's password after checking the current one.

    Raises:
        InvalidCredentialsError: If the account is gone or old_password is wrong
        ConflictError: If the account was changed by another request meanwhile
    """
    account = get_account_by_id(session, account_id)

    if account is None:
        log_security_event("password_change_failed", account_id=account_id, reason="no_account")
        raise InvalidCredentialsError(INVALID_LOGIN_MSG)

    if not verify_password(old_password, account.password_hash):
        log_security_event("password_change_failed", account_id=account_id, reason="wrong_old_password")
        raise InvalidCredentialsError(WRONG_OLD_PASSWORD_MSG)

    _store_password(session, account, new_password, rounds)
    log_audit_event(account.id, "password_changed")


def set_password(session: Session, account_id: str, new_password: str, rounds: Optional[int] = None) -> Account:
    """Give a Google-only account its first password.

    Raises:
        InvalidCredentialsError: If the account is gone
        BadRequestError: If the account already has a password
        ConflictError: If the account was changed by another request meanwhile
    """
    account = get_account_by_id(session, account_id)

    if account is None:
        raise InvalidCredentialsError(INVALID_LOGIN_MSG)

    if account.has_password:
        raise BadRequestError("A password is already set. Use change password instead.")

    _store_password(session, account, new_password, rounds)
    log_audit_event(account.id, "password_set")
    return account


def _store_password(session: Session, account: Account, password: str, rounds: Optional[int]) -> None:
    account.password_hash = hash_password(password, rounds=rounds)
    account.updated_at = datetime.now(UTC)
    try:
        session.commit()
    except StaleDataError:
        # The version check failed: another request updated the row first.
        session.rollback()
        log_security_event("password_change_failed", account_id=account.id, reason="concurrent_update")
        raise ConflictError(CONCURRENT_UPDATE_MSG)
