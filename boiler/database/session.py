# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Database session management.

Provides the engine factory, the default session factory and the get_db
dependency.

Assumptions:
- The default engine is built from the environment-loaded settings
- An application created with other settings carries its own session
  factory on app.state, and get_db uses it
"""
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from boiler.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine for database_url."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=3600,  # Recycle connections after 1 hour
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = build_engine(settings.database_url)

SessionLocal = build_session_factory(engine)


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting a database session.

    Yields:
        Session: Database session, closed when the request ends
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create missing tables on bind (the default engine if omitted)."""
    from boiler.database.schema import init_db as create_schema
    create_schema(bind or engine)
