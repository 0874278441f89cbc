# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Errors raised by the account and profile services.

Every error carries a message that is safe to show to the user. Route
handlers render it back into the page the request came from.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for user-facing account errors."""

    default_message = "Something went wrong."
    status_code = 400

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccountError):
    """Missing or conflicting registration data."""

    default_message = "Invalid registration data."
    status_code = 400


class AuthenticationError(AccountError):
    """Unknown user or wrong password."""

    default_message = "Invalid credentials."
    status_code = 401


class NotFoundError(AccountError):
    """The requested account does not exist (anymore)."""

    default_message = "User not found!"
    status_code = 404


class InfrastructureError(AccountError):
    """The database could not be reached or failed mid-request."""

    default_message = "Service unavailable, please try again later."
    status_code = 503
