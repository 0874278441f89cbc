#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from hashchanges.auth.passwords import make_hasher
from hashchanges.config import Settings
from hashchanges.db import init_db, make_engine, make_session_factory
from hashchanges.errors import AccountError
from hashchanges.forms import RegisterForm
from hashchanges.services.accounts import register


def main() -> None:
    settings = Settings.from_env()
    engine = make_engine(settings.database_url)
    if not init_db(engine):
        raise SystemExit("Database not reachable")

    username = input("Username: ").strip()
    email = input("Email: ").strip()
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    db = make_session_factory(engine)()
    try:
        user = register(
            db,
            RegisterForm.build(username, email, pw1),
            hasher=make_hasher(settings.argon2_time_cost, settings.argon2_memory_cost),
        )
    except AccountError as e:
        raise SystemExit(e.message)
    finally:
        db.close()
    print(f"OK -> id={user.id} username={user.username}")


if __name__ == "__main__":
    main()
