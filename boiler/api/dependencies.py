# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""
Dependency injection utilities for FastAPI endpoints.

The settings, OAuth configuration and broker are fixed in create_app and
kept on app.state; these dependencies hand them to the endpoints.
"""
from fastapi import Request

from boiler.auth.oauth2 import OAuthBroker
from boiler.auth.session import get_session_capsule, require_authenticated, require_unauthenticated
from boiler.config import OAuthConfig, Settings
from boiler.database.session import get_db

__all__ = [
    'get_db',
    'get_oauth_config',
    'get_oauth_broker',
    'get_settings',
    'get_session_capsule',
    'require_authenticated',
    'require_unauthenticated',
]


def get_oauth_config(request: Request) -> OAuthConfig:
    return request.app.state.oauth_config


def get_oauth_broker(request: Request) -> OAuthBroker:
    return request.app.state.oauth_broker


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings
