# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""Boiler: email/password and Google OAuth authentication service."""

__version__ = "1.0.0"
