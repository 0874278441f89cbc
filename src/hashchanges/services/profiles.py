# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hashchanges.errors import InfrastructureError, NotFoundError
from hashchanges.forms import ProfileForm, ProfileView
from hashchanges.models import User
from hashchanges.sanitizer import sanitize
from hashchanges.services.accounts import get_by_id, get_by_username

logger = logging.getLogger(__name__)


def public_profile(db: Session, username: str) -> ProfileView:
    """Profile as shown to any logged-in user.

    firstname is rendered as markup and therefore sanitized here; lastname
    and bio are returned as stored and escaped by the template.
    """
    user = get_by_username(db, username)
    if user is None:
        raise NotFoundError()
    return ProfileView(
        username=user.username,
        firstname=sanitize(user.firstname),
        lastname=user.lastname,
        bio=user.bio,
    )


def editable_profile(db: Session, user_id: int) -> ProfileForm:
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFoundError()
    return ProfileForm(firstname=user.firstname, lastname=user.lastname, bio=user.bio)


def update_profile(db: Session, user_id: int, form: ProfileForm) -> User:
    """Overwrite firstname, lastname and bio of the given user.

    This is a full replacement: fields left out of ``form`` are cleared.
    """
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFoundError()

    user.firstname = form.firstname
    user.lastname = form.lastname
    user.bio = form.bio
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Profile update failed for id=%s", user_id)
        raise InfrastructureError() from e

    logger.info("Updated profile of user id=%s", user_id)
    return user
