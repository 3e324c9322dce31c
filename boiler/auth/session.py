# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Session capsule: the typed view over the signed session cookie.

The cookie itself (signing, expiry, HttpOnly) is handled by Starlette's
SessionMiddleware. This module decides what is stored in it.

Assumptions:
- account_id is set if and only if authenticated is True
- Missing values read as False / None
- Every mutation writes through to the underlying session mapping
"""
from dataclasses import dataclass, field
from typing import Any, MutableMapping, Optional

from fastapi import Depends, Request

from boiler.auth.errors import BadRequestError
from boiler.logging_config import bind_context

AUTH_KEY = "auth"
ID_KEY = "id"
HAS_PASSWORD_KEY = "hasPassword"
OAUTH_KEY = "google"


@dataclass
class SessionData:
    """Snapshot returned to clients by GET /api/session."""
    authenticated: bool = False
    has_password: bool = False
    has_oauth: bool = False


@dataclass
class SessionCapsule:
    authenticated: bool = False
    account_id: Optional[str] = None
    has_password: bool = False
    has_oauth: bool = False
    _store: MutableMapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def attach(cls, store: MutableMapping[str, Any]) -> "SessionCapsule":
        """Build a capsule backed by a session mapping."""
        account_id = store.get(ID_KEY)
        authenticated = store.get(AUTH_KEY) is True and isinstance(account_id, str) and bool(account_id)
        return cls(
            authenticated=authenticated,
            account_id=account_id if authenticated else None,
            has_password=store.get(HAS_PASSWORD_KEY) is True,
            has_oauth=store.get(OAUTH_KEY) is True,
            _store=store,
        )

    def authenticate(self, account_id: str, has_password: bool, has_oauth: bool) -> None:
        """Mark the session as logged in to account_id."""
        self.authenticated = True
        self.account_id = account_id
        self.has_password = has_password
        self.has_oauth = has_oauth
        self._flush()
        bind_context(account_id=account_id)

    def set_has_password(self, value: bool) -> None:
        self.has_password = value
        self._flush()

    def set_has_oauth(self, value: bool) -> None:
        self.has_oauth = value
        self._flush()

    def clear(self) -> None:
        """Forget everything; the middleware then expires the cookie."""
        self.authenticated = False
        self.account_id = None
        self.has_password = False
        self.has_oauth = False
        self._store.clear()

    def read(self) -> SessionData:
        return SessionData(self.authenticated, self.has_password, self.has_oauth)

    def _flush(self) -> None:
        self._store[AUTH_KEY] = self.authenticated
        if self.account_id is None:
            self._store.pop(ID_KEY, None)
        else:
            self._store[ID_KEY] = self.account_id
        self._store[HAS_PASSWORD_KEY] = self.has_password
        self._store[OAUTH_KEY] = self.has_oauth


def get_session_capsule(request: Request) -> SessionCapsule:
    """FastAPI dependency: the caller's session capsule."""
    capsule = SessionCapsule.attach(request.session)
    if capsule.authenticated:
        bind_context(account_id=capsule.account_id)
    return capsule


def require_authenticated(capsule: SessionCapsule = Depends(get_session_capsule)) -> SessionCapsule:
    """Reject callers without an authenticated session (400)."""
    if not capsule.authenticated:
        raise BadRequestError("You must be logged in.")
    return capsule


def require_unauthenticated(capsule: SessionCapsule = Depends(get_session_capsule)) -> SessionCapsule:
    """Reject callers who are already logged in (400)."""
    if capsule.authenticated:
        raise BadRequestError("You are already logged in.")
    return capsule
