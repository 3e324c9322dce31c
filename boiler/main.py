# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Main FastAPI application entry point.

Assumptions:
- The session cookie is signed by Starlette's SessionMiddleware, HttpOnly,
  and re-issued on every response (sliding 8 hour expiry)
- OAuth configuration (including the anti-forgery nonce) is built once here
- Leftover handoff codes are purged at startup
"""
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from boiler import __version__
from boiler.api.auth import router as auth_router
from boiler.api.errors import register_error_handlers
from boiler.api.people import router as people_router
from boiler.auth.handoff import purge_handoffs
from boiler.auth.oauth2 import GoogleOAuth2Provider, OAuth2Provider, OAuthBroker
from boiler.config import Settings, build_oauth_config, settings as default_settings
from boiler.database.session import SessionLocal, build_engine, build_session_factory, init_db
from boiler.database.session import engine as default_engine
from boiler.logging_config import bind_context, clear_context
from boiler.logging_utils import log_application_event


def create_app(
    settings: Optional[Settings] = None,
    oauth_provider: Optional[OAuth2Provider] = None,
    init_database: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment-loaded ones);
            database, bcrypt cost, session cookie and OAuth all follow them
        oauth_provider: Provider override (tests pass a stub)
        init_database: Create tables and purge handoff codes on the
            engine for settings.database_url

    Returns:
        FastAPI: Configured application
    """
    settings = settings or default_settings

    if settings is default_settings:
        engine, session_factory = default_engine, SessionLocal
    else:
        engine = build_engine(settings.database_url)
        session_factory = build_session_factory(engine)

    if init_database:
        init_db(engine)
        with session_factory() as db:
            purge_handoffs(db)

    app = FastAPI(
        title="Boiler",
        description="Email/password and Google sign-in with session cookies",
        version=__version__,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory

    oauth_config = build_oauth_config(settings)
    app.state.oauth_config = oauth_config
    app.state.oauth_broker = OAuthBroker(
        oauth_config,
        oauth_provider or GoogleOAuth2Provider(oauth_config),
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_context()
        bind_context(request_id=request.headers.get("X-Request-ID") or str(uuid4()))
        return await call_next(request)

    register_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "This is the index page."

    @app.get("/api/health")
    async def health_check():
        return {"service": "boiler", "version": __version__, "status": "running"}

    app.include_router(auth_router)
    app.include_router(people_router)

    log_application_event("app_created", version=__version__)
    return app


def cli() -> None:
    """Run the server with uvicorn (console script boiler-server)."""
    import uvicorn

    uvicorn.run(
        "boiler.main:create_app",
        factory=True,
        host=default_settings.api_host,
        port=default_settings.api_port,
    )


if __name__ == "__main__":
    cli()
