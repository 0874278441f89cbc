# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side session store.

The cookie only carries an opaque random token, signed with a secret that is
drawn once per store. The identity bound to the token lives in process
memory, so restarting the process logs everybody out.
"""

from __future__ import annotations

import base64
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from itsdangerous import BadSignature, URLSafeSerializer

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 28800  # 8 hours
TOKEN_BYTES = 32
SECRET_BYTES = 32
SALT = "hashchanges.session.v1"


@dataclass(frozen=True)
class SessionData:
    token: str
    user_id: int
    username: str
    created_at: float


class SessionStore:
    """Maps opaque session tokens to ``SessionData``.

    ``randomness`` returns ``n`` random bytes and ``clock`` returns the
    current time in seconds; both are injectable for tests.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        *,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
        randomness: Callable[[int], bytes] = secrets.token_bytes,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._randomness = randomness
        self._clock = clock
        self.max_age = max_age
        self._serializer = URLSafeSerializer(
            secret_key=secret or self._random_string(SECRET_BYTES),
            salt=SALT,
        )
        self._sessions: Dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def _random_string(self, n: int) -> str:
        return base64.urlsafe_b64encode(self._randomness(n)).decode("ascii").rstrip("=")

    def _expired(self, data: SessionData, now: float) -> bool:
        return now - data.created_at >= self.max_age

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, user_id: int, username: str) -> Tuple[SessionData, str]:
        """Start a session and return it together with the cookie value."""
        data = SessionData(
            token=self._random_string(TOKEN_BYTES),
            user_id=int(user_id),
            username=str(username),
            created_at=self._clock(),
        )
        with self._lock:
            self._purge_locked(data.created_at)
            self._sessions[data.token] = data
        logger.debug("Created session for user_id=%s", data.user_id)
        return data, self._serializer.dumps(data.token)

    def _token_from_cookie(self, cookie_value: str) -> Optional[str]:
        if not cookie_value:
            return None
        try:
            token = self._serializer.loads(cookie_value)
        except BadSignature:
            return None
        return token if isinstance(token, str) and token else None

    def resolve(self, cookie_value: str) -> Optional[SessionData]:
        """Return the live session behind a cookie value, or None."""
        token = self._token_from_cookie(cookie_value)
        if token is None:
            return None
        now = self._clock()
        with self._lock:
            data = self._sessions.get(token)
            if data is None:
                return None
            if self._expired(data, now):
                del self._sessions[token]
                return None
            return data

    def destroy(self, cookie_value: str) -> None:
        token = self._token_from_cookie(cookie_value)
        if token is None:
            return
        with self._lock:
            data = self._sessions.pop(token, None)
        if data is not None:
            logger.debug("Destroyed session for user_id=%s", data.user_id)

    def _purge_locked(self, now: float) -> int:
        stale = [t for t, d in self._sessions.items() if self._expired(d, now)]
        for t in stale:
            del self._sessions[t]
        return len(stale)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._clock())
