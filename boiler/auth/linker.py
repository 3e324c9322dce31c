# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Identity linker: decides what a redeemed Google identity means for the caller.

Rules, applied in order:
1. The handoff code must exist, be unexpired and unused
2. Identity already bound to an account:
   - anonymous caller: log in as that account
   - logged-in caller: conflict, whichever account it is bound to
3. Not bound, logged-in caller: link it to the caller's account
4. Not bound, anonymous caller:
   - email already has an account: conflict (log in with password, then link)
   - otherwise create a Google-only account and log in

Unlinking is refused while the account has no password, so every account
keeps at least one way to sign in.

Assumptions:
- No cross-row transaction; unique constraints on email and google_id
  make concurrent redemptions for one identity collapse to a single account;
  account updates are version-checked, so a lost update becomes a conflict
- Session capsule mutations happen only after the store write succeeded
"""
from datetime import datetime, UTC

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from boiler.auth.accounts import (
    CONCURRENT_UPDATE_MSG, get_account_by_email, get_account_by_google_id, get_account_by_id,
)
from boiler.auth.errors import BadRequestError, ConflictError, IdentityLinkError, InternalError
from boiler.auth.handoff import redeem_handoff
from boiler.auth.models import ExternalIdentity, LinkOutcome
from boiler.auth.session import SessionCapsule
from boiler.config import OAuthConfig
from boiler.database.schema import Account
from boiler.logging_utils import log_application_event, log_audit_event, log_security_event

ALREADY_LINKED_MSG = "This Google account is already linked."
EMAIL_TAKEN_MSG = "There is already an account associated with this email address."
LINK_FAILED_MSG = "OAuth link failed. Internal server error."


def resolve_oauth_handoff(
    session: Session,
    config: OAuthConfig,
    code: str,
    capsule: SessionCapsule
) -> LinkOutcome:
    """Redeem a handoff code and log in, link or register accordingly.

    Args:
        session: Database session
        config: Process OAuth configuration (handoff TTL)
        code: One-time code returned by the callback redirect
        capsule: Caller's session; updated on success

    Returns:
        LinkOutcome: LOGGED_IN, LINKED or REGISTERED

    Raises:
        IdentityLinkError: Code unknown, expired or already used
        ConflictError: Identity already linked, or email already registered
        InternalError: The link could not be written
    """
    identity = redeem_handoff(session, code, config.handoff_ttl)
    if identity is None:
        raise IdentityLinkError()

    bound = get_account_by_google_id(session, identity.provider_id)
    if bound is not None:
        if capsule.authenticated:
            log_security_event(
                "oauth_link_conflict",
                account_id=capsule.account_id,
                reason="identity_already_linked",
                bound_account_id=bound.id,
            )
            raise ConflictError(ALREADY_LINKED_MSG)
        capsule.authenticate(bound.id, has_password=bound.has_password, has_oauth=True)
        log_application_event("oauth_login", account_id=bound.id)
        return LinkOutcome.LOGGED_IN

    if capsule.authenticated:
        _link_to_current(session, capsule, identity)
        return LinkOutcome.LINKED

    if get_account_by_email(session, identity.email) is not None:
        log_security_event("oauth_link_conflict", reason="email_has_account", email=identity.email)
        raise ConflictError(EMAIL_TAKEN_MSG)

    account = _create_oauth_account(session, identity)
    capsule.authenticate(account.id, has_password=False, has_oauth=True)
    return LinkOutcome.REGISTERED


def unlink_oauth(session: Session, capsule: SessionCapsule) -> None:
    """Remove the Google binding from the caller's account.

    The profile is kept.

    Raises:
        BadRequestError: Not logged in, not linked, or no password to fall
            back on
        ConflictError: The account was changed by another request meanwhile
        InternalError: The account vanished or could not be written
    """
    if not capsule.authenticated or not capsule.has_oauth:
        raise BadRequestError("Google is not linked to this account.")

    account = get_account_by_id(session, capsule.account_id)
    if account is None:
        raise InternalError()

    if not account.has_password:
        raise BadRequestError("Set a password before unlinking Google.")

    account.google_id = None
    account.google_access_token = None
    account.updated_at = datetime.now(UTC)
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        raise ConflictError(CONCURRENT_UPDATE_MSG)
    except SQLAlchemyError as exc:
        session.rollback()
        raise InternalError() from exc

    capsule.set_has_oauth(False)
    log_audit_event(account.id, "oauth_unlinked", provider="google")


def _link_to_current(session: Session, capsule: SessionCapsule, identity: ExternalIdentity) -> None:
    account = get_account_by_id(session, capsule.account_id)
    if account is None:
        raise InternalError(LINK_FAILED_MSG)

    account.google_id = identity.provider_id
    account.google_access_token = identity.access_token
    account.profile_name = identity.name
    account.profile_picture = identity.picture
    account.updated_at = datetime.now(UTC)
    try:
        session.commit()
    except IntegrityError:
        # Another request bound this identity between our lookup and write.
        session.rollback()
        log_security_event("oauth_link_conflict", account_id=account.id, reason="identity_link_race")
        raise ConflictError(ALREADY_LINKED_MSG)
    except StaleDataError:
        session.rollback()
        raise ConflictError(CONCURRENT_UPDATE_MSG)
    except SQLAlchemyError as exc:
        session.rollback()
        raise InternalError(LINK_FAILED_MSG) from exc

    capsule.set_has_oauth(True)
    log_audit_event(account.id, "oauth_linked", provider="google")


def _create_oauth_account(session: Session, identity: ExternalIdentity) -> Account:
    account = Account(
        email=identity.email,
        google_id=identity.provider_id,
        google_access_token=identity.access_token,
        profile_name=identity.name,
        profile_picture=identity.picture,
    )
    session.add(account)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        if get_account_by_google_id(session, identity.provider_id) is not None:
            raise ConflictError(ALREADY_LINKED_MSG)
        raise ConflictError(EMAIL_TAKEN_MSG)
    session.refresh(account)

    log_audit_event(account.id, "account_created", method="google")
    return account
