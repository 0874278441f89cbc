import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hashchanges.app import create_app
from hashchanges.auth.passwords import make_hasher
from hashchanges.config import Settings
from hashchanges.db import init_db, make_engine, make_session_factory

# Cheap argon2 parameters, the production defaults take tens of ms per hash.
TEST_TIME_COST = 1
TEST_MEMORY_COST = 1024


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        argon2_time_cost=TEST_TIME_COST,
        argon2_memory_cost=TEST_MEMORY_COST,
    )


@pytest.fixture()
def engine(settings):
    eng = make_engine(settings.database_url)
    assert init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def hasher():
    return make_hasher(TEST_TIME_COST, TEST_MEMORY_COST)


@pytest.fixture()
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


def register_via_http(client, username="alice", email=None, password="s3cret!"):
    return client.post(
        "/register",
        data={"username": username, "email": email or f"{username}@example.org", "password": password},
        follow_redirects=False,
    )
