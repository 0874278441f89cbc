# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Iterator, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from hashchanges.auth.session import SessionData, SessionStore
from hashchanges.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def load_session_from_request(request: Request) -> Optional[SessionData]:
    settings = get_settings(request)
    token = request.cookies.get(settings.cookie_name, "")
    return get_session_store(request).resolve(token)


def current_session_optional(request: Request) -> Optional[SessionData]:
    sess = getattr(request.state, "session", None)
    if sess is not None:
        return sess
    return load_session_from_request(request)


def require_session(request: Request) -> SessionData:
    sess = current_session_optional(request)
    if sess:
        return sess
    raise HTTPException(status_code=303, headers={"Location": "/login"})


def require_anonymous(request: Request) -> None:
    """Logged-in users never see the login or register pages again."""
    if current_session_optional(request):
        raise HTTPException(status_code=303, headers={"Location": "/dashboard"})


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure}
