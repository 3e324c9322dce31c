# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Authentication API endpoints.

Password register/login/logout, session status, and the Google flow:
browser legs (/auth/google, /callback/google) plus the handoff redemption
and unlink endpoints used by the client.

Assumptions:
- JSON bodies use capitalised keys (Email, Password, Success, Msg, ...)
- Errors are raised as BoilerError and rendered by boiler.api.errors
- Access-control rejections are 400, as the existing clients expect
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from boiler.api.dependencies import (
    get_db, get_oauth_broker, get_oauth_config, get_session_capsule, get_settings,
    require_authenticated, require_unauthenticated,
)
from boiler.api.errors import failure
from boiler.auth.accounts import authenticate_account, change_password, register_account, set_password
from boiler.auth.errors import StateMismatchError
from boiler.auth.linker import resolve_oauth_handoff, unlink_oauth
from boiler.auth.oauth2 import OAuthBroker
from boiler.auth.session import SessionCapsule
from boiler.config import OAuthConfig, Settings
from boiler.logging_utils import log_application_event


# Request/Response models
class Credentials(BaseModel):
    """Email/password pair for login and registration."""
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(alias="Email", min_length=1)
    password: str = Field(alias="Password", min_length=1)


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(alias="OldPassword")
    new_password: str = Field(alias="NewPassword", min_length=1)


class PasswordSet(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_password: str = Field(alias="NewPassword", min_length=1)


class HandoffClaim(BaseModel):
    """One-time code from the Google callback redirect."""
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(alias="Code")


class ApiResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(alias="Success")
    msg: str = Field(alias="Msg")


class SessionResponse(BaseModel):
    """What the client may know about its session."""
    model_config = ConfigDict(populate_by_name=True)

    auth: bool = Field(alias="Auth")
    has_password: bool = Field(alias="HasPassword")
    google: bool = Field(alias="Google")


router = APIRouter(tags=["authentication"])


@router.get("/api/session", response_model=SessionResponse)
def fetch_session(capsule: SessionCapsule = Depends(get_session_capsule)):
    """Report the caller's session state (all False when anonymous)."""
    data = capsule.read()
    return SessionResponse(auth=data.authenticated, has_password=data.has_password, google=data.has_oauth)


@router.post("/api/register", response_model=ApiResponse)
def register(
    credentials: Credentials,
    capsule: SessionCapsule = Depends(require_unauthenticated),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Create a password account and log the caller in.

    Raises:
        ConflictError: 400 if the email is already registered
    """
    account = register_account(db, credentials.email, credentials.password, rounds=app_settings.bcrypt_rounds)
    capsule.authenticate(account.id, has_password=True, has_oauth=False)
    log_application_event("account_registered", account_id=account.id)
    return ApiResponse(success=True, msg="Successfully registered!")


@router.post("/api/auth", response_model=ApiResponse)
def login(
    credentials: Credentials,
    capsule: SessionCapsule = Depends(require_unauthenticated),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Log in with email and password.

    Raises:
        InvalidCredentialsError: 401, same body for unknown email and wrong
            password
    """
    account = authenticate_account(db, credentials.email, credentials.password, rounds=app_settings.bcrypt_rounds)
    capsule.authenticate(account.id, has_password=account.has_password, has_oauth=account.has_oauth)
    log_application_event("password_login", account_id=account.id)
    return ApiResponse(success=True, msg="Successfully logged in!")


@router.post("/api/changePassword", response_model=ApiResponse)
def change_password_endpoint(
    change: PasswordChange,
    capsule: SessionCapsule = Depends(require_authenticated),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Change the caller's password (401 if the old one is wrong)."""
    change_password(
        db, capsule.account_id, change.old_password, change.new_password, rounds=app_settings.bcrypt_rounds
    )
    return ApiResponse(success=True, msg="Password successfully changed!")


@router.post("/api/setPassword", response_model=ApiResponse)
def set_password_endpoint(
    payload: PasswordSet,
    capsule: SessionCapsule = Depends(require_authenticated),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Add a first password to a Google-only account."""
    set_password(db, capsule.account_id, payload.new_password, rounds=app_settings.bcrypt_rounds)
    capsule.set_has_password(True)
    return ApiResponse(success=True, msg="Password successfully set!")


@router.post("/api/logout", response_model=ApiResponse)
def logout(capsule: SessionCapsule = Depends(require_authenticated)):
    """Clear the session; the cookie is expired on the response."""
    account_id = capsule.account_id
    capsule.clear()
    log_application_event("logout", account_id=account_id)
    return ApiResponse(success=True, msg="Successfully logged out!")


@router.post("/api/authOTC", response_model=ApiResponse)
def redeem_handoff_code(
    claim: HandoffClaim,
    capsule: SessionCapsule = Depends(get_session_capsule),
    config: OAuthConfig = Depends(get_oauth_config),
    db: Session = Depends(get_db)
):
    """Redeem a Google handoff code: log in, link, or register.

    Raises:
        ConflictError: 400 if the identity is linked already or the email
            belongs to another account
        IdentityLinkError: 500 if the code is unknown, expired or used
    """
    outcome = resolve_oauth_handoff(db, config, claim.code, capsule)
    return ApiResponse(success=True, msg=outcome.message)


@router.delete("/api/google", response_model=ApiResponse)
def unlink_google(
    capsule: SessionCapsule = Depends(require_authenticated),
    db: Session = Depends(get_db)
):
    """Unlink Google from the caller's account (400 if not linked)."""
    unlink_oauth(db, capsule)
    return ApiResponse(success=True, msg="Successfully unlinked Google!")


@router.get("/auth/google", response_model=None)
def google_redirect(
    redirect_url: Optional[str] = Query(default=None, alias="redirectUrl"),
    broker: OAuthBroker = Depends(get_oauth_broker)
):
    """Send the browser to Google's consent page."""
    if not redirect_url:
        return failure(status.HTTP_400_BAD_REQUEST, "Redirection URL is missing.")
    url = broker.build_authorization_url(redirect_url)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/callback/google", response_model=None)
def google_callback(
    state: Optional[str] = None,
    code: Optional[str] = None,
    broker: OAuthBroker = Depends(get_oauth_broker),
    config: OAuthConfig = Depends(get_oauth_config),
    db: Session = Depends(get_db)
):
    """Finish the provider leg and hand a one-time code back to the client.

    A forged or stale state silently lands on the neutral failure page.
    """
    try:
        target = broker.handle_provider_callback(db, state, code)
    except StateMismatchError:
        return RedirectResponse(config.failure_redirect, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
