# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from markupsafe import Markup
from sqlalchemy.orm import Session

from hashchanges.auth.session import SessionData
from hashchanges.errors import AccountError
from hashchanges.forms import LoginForm, ProfileForm, RegisterForm
from hashchanges.models import User
from hashchanges.permissions import (
    cookie_settings,
    current_session_optional,
    get_db,
    get_session_store,
    get_settings,
    require_anonymous,
    require_session,
)
from hashchanges.services import accounts, profiles

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()

PROFILE_UPDATED = "Profile updated successfully"


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, status_code: int = 200):
    """TemplateResponse wrapper injecting the current session."""
    base_ctx = {"current_session": current_session_optional(request), "msg": ""}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


async def _payload(request: Request) -> Dict[str, Optional[str]]:
    """Submitted fields from an HTML form or a JSON object."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            return {}
        return {str(k): _text(v) for k, v in data.items()}
    form = await request.form()
    # Uploaded files are not accepted anywhere.
    return {str(k): (v if isinstance(v, str) else None) for k, v in form.items()}


async def register_form(request: Request) -> RegisterForm:
    data = await _payload(request)
    return RegisterForm.build(data.get("username"), data.get("email"), data.get("password"))


async def login_form(request: Request) -> LoginForm:
    data = await _payload(request)
    return LoginForm.build(data.get("username"), data.get("password"))


async def profile_form(request: Request) -> ProfileForm:
    data = await _payload(request)
    return ProfileForm(firstname=data.get("firstname"), lastname=data.get("lastname"), bio=data.get("bio"))


def _start_session(request: Request, user: User) -> RedirectResponse:
    settings = get_settings(request)
    _, cookie_value = get_session_store(request).create(user.id, user.username)
    resp = RedirectResponse(url="/dashboard", status_code=303)
    resp.set_cookie(
        settings.cookie_name,
        cookie_value,
        max_age=settings.session_max_age,
        **cookie_settings(settings),
    )
    return resp


# ------------------ Routes ------------------


@router.get("/")
def index(request: Request):
    if current_session_optional(request):
        return RedirectResponse(url="/dashboard", status_code=303)
    return RedirectResponse(url="/login", status_code=303)


@router.get("/register", response_class=HTMLResponse)
def register_get(request: Request, _=Depends(require_anonymous)):
    return _render(request, "register.html")


@router.post("/register")
def register_post(
    request: Request,
    _=Depends(require_anonymous),
    form: RegisterForm = Depends(register_form),
    db: Session = Depends(get_db),
):
    try:
        user = accounts.register(db, form, hasher=request.app.state.hasher)
    except AccountError as e:
        return _render(
            request,
            "register.html",
            {"msg": e.message, "username": form.username, "email": form.email},
            status_code=e.status_code,
        )
    return _start_session(request, user)


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, _=Depends(require_anonymous)):
    return _render(request, "login.html")


@router.post("/login")
def login_post(
    request: Request,
    _=Depends(require_anonymous),
    form: LoginForm = Depends(login_form),
    db: Session = Depends(get_db),
):
    try:
        user = accounts.authenticate(db, form, hasher=request.app.state.hasher)
    except AccountError as e:
        return _render(request, "login.html", {"msg": e.message, "username": form.username}, status_code=e.status_code)
    logger.info("User id=%s logged in", user.id)
    return _start_session(request, user)


@router.post("/logout")
def logout_post(request: Request):
    settings = get_settings(request)
    get_session_store(request).destroy(request.cookies.get(settings.cookie_name, ""))
    resp = RedirectResponse(url="/login", status_code=303)
    resp.delete_cookie(settings.cookie_name)
    return resp


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, sess: SessionData = Depends(require_session)):
    return _render(request, "dashboard.html", {"username": sess.username})


@router.get("/profile/{username}", response_class=HTMLResponse)
def profile(
    request: Request,
    username: str,
    sess: SessionData = Depends(require_session),
    db: Session = Depends(get_db),
):
    try:
        view = profiles.public_profile(db, username)
    except AccountError as e:
        return _render(request, "profile.html", {"msg": e.message}, status_code=e.status_code)
    return _render(
        request,
        "profile.html",
        {
            "username": view.username,
            # Already reduced to the whitelist
            "firstname": Markup(view.firstname),
            "lastname": view.lastname,
            "bio": view.bio,
        },
    )


@router.get("/editprofile", response_class=HTMLResponse)
def editprofile_get(
    request: Request,
    sess: SessionData = Depends(require_session),
    db: Session = Depends(get_db),
):
    try:
        current = profiles.editable_profile(db, sess.user_id)
    except AccountError as e:
        return _render(
            request, "editprofile.html", {"username": sess.username, "msg": e.message}, status_code=e.status_code
        )
    return _render(request, "editprofile.html", {"username": sess.username, "profile": current})


@router.post("/editprofile", response_class=HTMLResponse)
def editprofile_post(
    request: Request,
    sess: SessionData = Depends(require_session),
    form: ProfileForm = Depends(profile_form),
    db: Session = Depends(get_db),
):
    try:
        profiles.update_profile(db, sess.user_id, form)
    except AccountError as e:
        return _render(
            request,
            "editprofile.html",
            {"username": sess.username, "profile": form, "msg": e.message},
            status_code=e.status_code,
        )
    return _render(request, "editprofile.html", {"username": sess.username, "profile": form, "msg": PROFILE_UPDATED})
