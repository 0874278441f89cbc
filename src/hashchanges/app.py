# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine

from hashchanges import __version__
from hashchanges.auth.passwords import make_hasher
from hashchanges.auth.session import SessionStore
from hashchanges.config import Settings
from hashchanges.db import init_db, make_engine, make_session_factory
from hashchanges.permissions import load_session_from_request
from hashchanges.routes import BASE_DIR, router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the application with its engine and session store.

    Everything request handlers share lives on ``app.state``.
    """
    settings = settings or Settings.from_env()

    engine = engine or make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        yield
        engine.dispose()

    app = FastAPI(title="hashchanges", version=__version__, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.session_store = session_store or SessionStore(max_age=settings.session_max_age)
    app.state.hasher = make_hasher(settings.argon2_time_cost, settings.argon2_memory_cost)

    @app.middleware("http")
    async def _session_middleware(request: Request, call_next):
        request.state.session = load_session_from_request(request)
        return await call_next(request)

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    app.include_router(router)

    logger.info("Application created, database %s", engine.url.render_as_string(hide_password=True))
    return app
