# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Database schema for Boiler using SQLAlchemy.

Assumptions:
- Account ids are UUID strings, generated on insert and never changed
- Email is unique and stored exactly as given (case-sensitive)
- google_id is unique so one Google identity binds to at most one account
- An account holds a password hash, a Google binding, or both
- Handoff codes are single-use and short-lived
"""
from datetime import datetime, UTC
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class TimestampMixin:
    """created_at set on insert, updated_at refreshed on every change."""
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC), nullable=False)


class Account(Base, TimestampMixin):
    """User account.

    Assumptions:
    - version is maintained by the mapper: 1 on insert, +1 on every UPDATE,
      and an UPDATE whose loaded version is stale raises StaleDataError
    - password_hash is None for accounts created through Google
    - google_id/google_access_token are both set (linked) or both None
    - profile_* come from Google and survive an unlink
    """
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    google_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    google_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def has_oauth(self) -> bool:
        return self.google_id is not None


class HandoffRecord(Base):
    """A finished Google round-trip waiting to be claimed by the client.

    Assumptions:
    - code is random and unguessable
    - Deleted when redeemed; rows older than the TTL are never honoured
    """
    __tablename__ = "handoff_codes"

    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC), nullable=False, index=True)


def init_db(engine=None):
    """Create all tables (no-op for tables that already exist).

    Args:
        engine: SQLAlchemy engine (optional, creates default if not provided)

    Returns:
        Engine: The engine the schema was created on
    """
    if engine is None:
        from boiler.config import settings
        engine = create_engine(settings.database_url)

    Base.metadata.create_all(engine)
    return engine
