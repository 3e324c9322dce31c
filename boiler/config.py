# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Configuration management for Boiler.

Settings come from environment variables (or a .env file). OAuth values that
must stay fixed for the lifetime of the process are frozen into an
OAuthConfig when the application starts.

Assumptions:
- Environment variables override defaults
- The anti-forgery nonce is generated once per process, never rotated
- OAuthConfig is never mutated after build_oauth_config returns
"""
import secrets
from dataclasses import dataclass, field

from pydantic_settings import BaseSettings, SettingsConfigDict


GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)

STATE_DELIMITER = "|"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Assumptions:
    - SESSION_SECRET must be overridden outside development
    - Session lifetime defaults to 8 hours (sliding)
    - bcrypt cost defaults to 12
    """

    # Database
    database_url: str = "sqlite:///./boiler.db"

    # Session cookie
    session_secret: str = "change-me"
    session_cookie: str = "boiler-session"
    session_max_age: int = 3600 * 8
    session_https_only: bool = False

    # Passwords
    bcrypt_rounds: int = 12

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_url: str = "http://localhost:8000/callback/google"
    google_auth_url: str = GOOGLE_AUTH_URL
    google_token_url: str = GOOGLE_TOKEN_URL
    google_userinfo_url: str = GOOGLE_USERINFO_URL
    oauth_timeout: float = 10.0
    oauth_failure_redirect: str = "/"

    # Handoff codes
    handoff_ttl: int = 300

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )


@dataclass(frozen=True)
class OAuthConfig:
    """Process-wide OAuth configuration.

    Built once at startup and shared (read-only) by the OAuth broker and
    the identity linker.
    """
    client_id: str
    client_secret: str
    redirect_url: str
    auth_url: str
    token_url: str
    userinfo_url: str
    state_nonce: str
    scopes: tuple[str, ...] = GOOGLE_SCOPES
    timeout: float = 10.0
    handoff_ttl: int = 300
    failure_redirect: str = "/"
    delimiter: str = field(default=STATE_DELIMITER)


def build_oauth_config(source: "Settings | None" = None) -> OAuthConfig:
    """Freeze the OAuth-related settings and mint the anti-forgery nonce.

    Args:
        source: Settings to read from (defaults to the module settings)

    Returns:
        OAuthConfig: Immutable configuration for this process
    """
    source = source or settings
    return OAuthConfig(
        client_id=source.google_client_id,
        client_secret=source.google_client_secret,
        redirect_url=source.google_redirect_url,
        auth_url=source.google_auth_url,
        token_url=source.google_token_url,
        userinfo_url=source.google_userinfo_url,
        state_nonce=secrets.token_urlsafe(30)[:30],
        timeout=source.oauth_timeout,
        handoff_ttl=source.handoff_ttl,
        failure_redirect=source.oauth_failure_redirect,
    )


settings = Settings()
