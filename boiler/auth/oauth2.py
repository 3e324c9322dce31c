# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
OAuth2 broker for Google sign-in.

Drives the three legs of the authorization-code flow:
1. build the consent URL, carrying "<nonce>|<return target>" as state
2. on callback, check the nonce, exchange the code and fetch the profile
3. park the profile in the handoff cache and send the browser back to the
   client with a one-time code

Assumptions:
- One nonce per process (from OAuthConfig), compared on every callback
- Provider calls are synchronous httpx requests with an explicit timeout
- Tokens and codes are never logged
"""
from typing import Optional
from urllib.parse import urlencode

import httpx
from sqlalchemy.orm import Session

from boiler.auth.errors import ExchangeError, StateMismatchError
from boiler.auth.handoff import store_handoff
from boiler.auth.models import ExternalIdentity
from boiler.config import OAuthConfig
from boiler.logging_utils import log_application_event, log_security_event


class OAuth2Provider:
    """Base class for OAuth2 providers."""

    name = "oauth"

    def __init__(self, config: OAuthConfig, transport: Optional[httpx.BaseTransport] = None):
        """Initialize OAuth2 provider.

        Args:
            config: Process OAuth configuration
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self.transport = transport

    def get_authorization_url(self, state: str) -> str:
        raise NotImplementedError

    def exchange_code_for_token(self, code: str) -> str:
        """Exchange an authorization code for an access token."""
        raise NotImplementedError

    def get_user_info(self, access_token: str) -> ExternalIdentity:
        """Fetch and normalise the profile behind an access token."""
        raise NotImplementedError

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.config.timeout, transport=self.transport)


class GoogleOAuth2Provider(OAuth2Provider):
    """Google OAuth2 provider (userinfo v2 endpoint)."""

    name = "google"

    def get_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_url,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "state": state,
            "access_type": "online",
        }
        return f"{self.config.auth_url}?{urlencode(params)}"

    def exchange_code_for_token(self, code: str) -> str:
        data = {
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.config.redirect_url,
            "grant_type": "authorization_code",
        }
        try:
            with self._client() as client:
                response = client.post(self.config.token_url, data=data)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExchangeError() from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise ExchangeError()
        return access_token

    def get_user_info(self, access_token: str) -> ExternalIdentity:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            with self._client() as client:
                response = client.get(self.config.userinfo_url, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExchangeError() from exc

        if not isinstance(payload, dict) or not payload.get("id") or not payload.get("email"):
            raise ExchangeError()

        return ExternalIdentity(
            provider_id=str(payload["id"]),
            email=payload["email"],
            access_token=access_token,
            name=payload.get("name"),
            picture=payload.get("picture"),
        )


class OAuthBroker:
    """Builds consent redirects and turns provider callbacks into handoff codes."""

    def __init__(self, config: OAuthConfig, provider: OAuth2Provider):
        self.config = config
        self.provider = provider

    def build_authorization_url(self, return_target: str) -> str:
        """Consent URL whose state is "<nonce><delimiter><return_target>"."""
        state = f"{self.config.state_nonce}{self.config.delimiter}{return_target}"
        return self.provider.get_authorization_url(state)

    def parse_state(self, state: Optional[str]) -> str:
        """Validate the nonce and return the client's return target.

        Raises:
            StateMismatchError: Wrong nonce or no return target
        """
        nonce, delimiter, return_target = (state or "").partition(self.config.delimiter)
        if nonce != self.config.state_nonce or not delimiter or not return_target:
            log_security_event("oauth_state_mismatch", provider=self.provider.name)
            raise StateMismatchError()
        return return_target

    def handle_provider_callback(self, session: Session, state: Optional[str], code: Optional[str]) -> str:
        """Finish the provider leg.

        Args:
            session: Database session (for the handoff cache)
            state: state query parameter from the provider
            code: authorization code from the provider

        Returns:
            str: URL to send the browser back to, carrying the handoff code

        Raises:
            StateMismatchError: If the state was not issued by this process
            ExchangeError: If the provider rejected the code or the profile
                could not be read
        """
        return_target = self.parse_state(state)
        if not code:
            raise ExchangeError()

        access_token = self.provider.exchange_code_for_token(code)
        identity = self.provider.get_user_info(access_token)
        handoff_code = store_handoff(session, identity)

        log_application_event("oauth_callback_completed", provider=self.provider.name)
        return append_query(return_target, {
            "provider": self.provider.name,
            "success": "true",
            "code": handoff_code,
        })


def append_query(target: str, params: dict[str, str]) -> str:
    """Append params to target, adding "?" or "&" only when needed."""
    query = urlencode(params)
    if target.endswith(("?", "&")):
        return target + query
    separator = "&" if "?" in target else "?"
    return f"{target}{separator}{query}"
