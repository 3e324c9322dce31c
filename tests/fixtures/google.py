# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Stand-in Google provider and helpers for driving the OAuth round trip.

Assumptions:
- Tests register the profile a code should resolve to before the callback
- Unknown codes fail the exchange, like a real provider would
"""
from urllib.parse import parse_qs, urlsplit

from boiler.auth.errors import ExchangeError
from boiler.auth.models import ExternalIdentity
from boiler.auth.oauth2 import GoogleOAuth2Provider


class StubGoogleProvider(GoogleOAuth2Provider):
    """Google provider whose code exchange and profile fetch are local."""

    def __init__(self, config):
        super().__init__(config)
        self.profiles: dict[str, dict] = {}

    def expect(self, code: str, provider_id: str, email: str, name: str = "Jane Doe",
               picture: str = "https://example.com/jane.png") -> None:
        """Make `code` exchange to the given profile."""
        self.profiles[code] = {
            "provider_id": provider_id,
            "email": email,
            "name": name,
            "picture": picture,
        }

    def exchange_code_for_token(self, code: str) -> str:
        if code not in self.profiles:
            raise ExchangeError()
        return f"token-{code}"

    def get_user_info(self, access_token: str) -> ExternalIdentity:
        profile = self.profiles[access_token.removeprefix("token-")]
        return ExternalIdentity(access_token=access_token, **profile)


def make_identity(provider_id: str = "g-100", email: str = "jane@example.com",
                  name: str = "Jane Doe", picture: str = "https://example.com/jane.png") -> ExternalIdentity:
    return ExternalIdentity(
        provider_id=provider_id,
        email=email,
        access_token=f"token-{provider_id}",
        name=name,
        picture=picture,
    )


def google_round_trip(client, provider, provider_id: str, email: str,
                      redirect_url: str = "myapp://oauth?") -> str:
    """Run /auth/google then /callback/google and return the handoff code."""
    response = client.get("/auth/google", params={"redirectUrl": redirect_url})
    assert response.status_code == 307
    state = parse_qs(urlsplit(response.headers["location"]).query)["state"][0]

    auth_code = f"auth-{provider_id}-{len(provider.profiles)}"
    provider.expect(auth_code, provider_id=provider_id, email=email)

    response = client.get("/callback/google", params={"state": state, "code": auth_code})
    assert response.status_code == 307
    location = response.headers["location"]
    params = parse_qs(urlsplit(location).query)
    assert params["provider"] == ["google"]
    assert params["success"] == ["true"]
    return params["code"][0]
