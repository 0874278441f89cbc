# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "y"}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    database_url: str = "sqlite:///./data/hashchanges.db"
    cookie_name: str = "connect.sid"
    session_max_age: int = 28800  # 8 hours
    cookie_secure: bool = False
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HASHCHANGES_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            reload=_flag("HASHCHANGES_RELOAD"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./data/hashchanges.db"),
            cookie_name=os.getenv("HASHCHANGES_COOKIE_NAME", "connect.sid"),
            session_max_age=int(os.getenv("HASHCHANGES_SESSION_MAX_AGE", "28800")),
            cookie_secure=_flag("HASHCHANGES_COOKIE_SECURE"),
            argon2_time_cost=int(os.getenv("HASHCHANGES_ARGON2_TIME_COST", "3")),
            argon2_memory_cost=int(os.getenv("HASHCHANGES_ARGON2_MEMORY_COST", "65536")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
