# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Registration and login against the users table."""

from __future__ import annotations

import logging
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import HashingError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hashchanges.auth.passwords import hash_password, verify_password
from hashchanges.errors import AuthenticationError, InfrastructureError, ValidationError
from hashchanges.forms import LoginForm, RegisterForm
from hashchanges.models import User

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Username, email and password are required."
ALREADY_REGISTERED = "Username or email is already registered."
USER_NOT_FOUND = "User not found!"
INVALID_PASSWORD = "Invalid password!"


def register(db: Session, form: RegisterForm, *, hasher: Optional[PasswordHasher] = None) -> User:
    """Create an account.

    Duplicates are detected by the unique constraints on insert, never by a
    lookup beforehand, so two racing registrations cannot both succeed.
    """
    if not form.username or not form.email or not form.password:
        raise ValidationError(MISSING_FIELDS)

    try:
        password_hash = hash_password(form.password, hasher=hasher)
    except HashingError as e:
        logger.exception("Password hashing failed for %s", form.username)
        raise InfrastructureError() from e

    user = User(username=form.username, email=form.email, password_hash=password_hash)
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        logger.info("Registration rejected, username or email taken: %s", form.username)
        raise ValidationError(ALREADY_REGISTERED)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Registration failed for %s", form.username)
        raise InfrastructureError() from e

    logger.info("Registered user id=%s username=%s", user.id, user.username)
    return user


def get_by_username(db: Session, username: str) -> Optional[User]:
    try:
        return db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        logger.exception("User lookup failed for %s", username)
        raise InfrastructureError() from e


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as e:
        logger.exception("User lookup failed for id=%s", user_id)
        raise InfrastructureError() from e


def authenticate(db: Session, form: LoginForm, *, hasher: Optional[PasswordHasher] = None) -> User:
    """Return the user matching the credentials.

    Unknown users and wrong passwords are reported with different messages.
    """
    user = get_by_username(db, form.username) if form.username else None
    if user is None:
        logger.info("Login failed, unknown user: %s", form.username)
        raise AuthenticationError(USER_NOT_FOUND)
    if not verify_password(user.password_hash, form.password, hasher=hasher):
        logger.info("Login failed, wrong password: %s", form.username)
        raise AuthenticationError(INVALID_PASSWORD)
    return user
