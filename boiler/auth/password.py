# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Password hashing and verification using bcrypt.

Assumptions:
- Each hash carries its own random salt
- Cost factor comes from the caller, else settings (12 unless overridden)
- Accounts without a password (Google-only) never verify
"""
from functools import lru_cache
from typing import Optional

import bcrypt

from boiler.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (defaults to settings.bcrypt_rounds)

    Returns:
        str: Salted hash, safe to store
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash.

    Returns False when there is no hash or the hash is malformed.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return hash_password("boiler-timing-equaliser", rounds=rounds)


def burn_verification(password: str, rounds: Optional[int] = None) -> None:
    """Run a throwaway bcrypt comparison at the configured cost.

    Called when there is no hash to check against (unknown email, or a
    Google-only account) so a miss costs as much as a hit.
    """
    verify_password(password, _dummy_hash(rounds or settings.bcrypt_rounds))


def _encode(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes; newer releases reject longer input.
    return password.encode("utf-8")[:72]
