"""
Session Manager
===============
Connection state + current identity, bound to one ``CookieJar``.

State machine::

    disconnected ──► connecting ──► connected
                          │
                          └──────► error

``set_user()`` is the only way into ``connected``.  ``reset()`` and
``fail()`` drop the user *and* the jar's cookies: cookies are never reused
across identities.

Persisted form (``serialize()``)::

    {"user": {...}, "cookies": "<CookieJar.serialize() JSON>", "timestamp": <epoch ms>}
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Optional

from ..cookies import CookieJar
from ..errors import SessionStateError
from ..models import User

logger = logging.getLogger(__name__)

DEFAULT_SESSION_MAX_AGE = 24 * 60 * 60  # seconds


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class SessionManager:

    def __init__(self, jar: CookieJar):
        self._jar = jar
        self._state = SessionState.DISCONNECTED
        self._user: Optional[User] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def jar(self) -> CookieJar:
        return self._jar

    def set_state(self, state: SessionState) -> None:
        if state is SessionState.CONNECTED and self._user is None:
            raise SessionStateError("Cannot mark session connected without a user.")
        logger.debug(f"[SESSION] {self._state.value} -> {state.value}")
        self._state = state

    def set_user(self, user: User) -> None:
        self._user = user
        self.set_state(SessionState.CONNECTED)

    def reset(self) -> None:
        """Back to ``disconnected``; identity and cookies are dropped."""
        self._clear()
        self.set_state(SessionState.DISCONNECTED)

    def fail(self) -> None:
        """Enter ``error``; identity and cookies are dropped."""
        self._clear()
        self.set_state(SessionState.ERROR)

    def _clear(self) -> None:
        self._user = None
        self._jar.clear()

    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED and self._user is not None

    # ── Persistence ───────────────────────────────────────────────

    def serialize(self) -> str:
        if not self.is_connected():
            raise SessionStateError("Cannot serialize session: not connected or user is null.")
        return json.dumps({
            "user": self._user.to_dict(),
            "cookies": self._jar.serialize(),
            "timestamp": int(time.time() * 1000),
        })

    @classmethod
    def deserialize(cls, data: str, jar: CookieJar) -> "SessionManager":
        """Restore a session into *jar* in place.

        The returned manager shares *jar*, so an ``HttpClient`` already bound
        to it sees the restored cookies immediately.
        """
        session = json.loads(data)
        restored = CookieJar.deserialize(session["cookies"])
        jar.update(restored)

        manager = cls(jar)
        manager.set_user(User.from_dict(session["user"]))
        logger.debug(f"[SESSION] Restored {len(restored)} cookie(s)")
        return manager

    @staticmethod
    def is_session_valid(data: str, max_age: float = DEFAULT_SESSION_MAX_AGE) -> bool:
        """Staleness check on the persisted timestamp (seconds of age allowed).

        Says nothing about whether the server still accepts the cookies.
        """
        try:
            timestamp = json.loads(data)["timestamp"]
            age_ms = time.time() * 1000 - float(timestamp)
        except (TypeError, ValueError, KeyError):
            return False
        return age_ms < max_age * 1000
