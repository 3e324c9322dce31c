# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Error taxonomy for the authentication flows.

Every error carries the HTTP status it maps to and the message that is safe
to show a client. Internal causes are logged by the raiser, never put in
the message.
"""


class BoilerError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Internal error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(BoilerError):
    """Duplicate email, identity already linked, email already has an account."""
    status_code = 400
    default_message = "Conflict."


class InvalidCredentialsError(BoilerError):
    """Unknown email, wrong password or wrong old password."""
    status_code = 401
    default_message = "Invalid login details!"


class BadRequestError(BoilerError):
    """Request not allowed in the caller's current state."""
    status_code = 400
    default_message = "Bad request."


class InternalError(BoilerError):
    """Store failure or another condition the client cannot fix."""
    status_code = 500


class IdentityLinkError(InternalError):
    """Handoff code missing, expired or already redeemed."""


class ExchangeError(InternalError):
    """The OAuth provider rejected the code or returned an unusable profile."""


class StateMismatchError(BoilerError):
    """OAuth callback carried a state this process did not issue.

    Never rendered as an error response; the callback redirects to a
    neutral page instead.
    """
    status_code = 400
    default_message = "Invalid OAuth state."
