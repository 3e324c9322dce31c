# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""Value types shared by the OAuth broker, handoff cache and identity linker."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ExternalIdentity:
    """A Google profile normalised for account linking."""
    provider_id: str
    email: str
    access_token: str
    name: Optional[str] = None
    picture: Optional[str] = None


class LinkOutcome(str, Enum):
    """How a redeemed handoff code was resolved."""
    LOGGED_IN = "logged_in"
    LINKED = "linked"
    REGISTERED = "registered"

    @property
    def message(self) -> str:
        if self is LinkOutcome.LINKED:
            return "Successfully linked!"
        return "Successfully logged in!"
