# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed request payloads and view models, one per route."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def _clean(value: Optional[str]) -> str:
    return str(value or "").strip()


@dataclass(frozen=True)
class RegisterForm:
    username: str
    email: str
    password: str

    @classmethod
    def build(cls, username: Optional[str], email: Optional[str], password: Optional[str]) -> "RegisterForm":
        # Passwords are taken verbatim.
        return cls(username=_clean(username), email=_clean(email), password=password or "")


@dataclass(frozen=True)
class LoginForm:
    username: str
    password: str

    @classmethod
    def build(cls, username: Optional[str], password: Optional[str]) -> "LoginForm":
        return cls(username=_clean(username), password=password or "")


@dataclass(frozen=True)
class ProfileForm:
    """Full replacement of the editable profile fields. None means cleared."""

    firstname: Optional[str] = None
    lastname: Optional[str] = None
    bio: Optional[str] = None


@dataclass(frozen=True)
class ProfileView:
    username: str
    firstname: str
    lastname: Optional[str]
    bio: Optional[str]
