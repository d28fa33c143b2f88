"""
Ypareo Client
=============
Facade wiring one cookie jar to an ``HttpClient`` and a ``SessionManager``,
with an ``AuthManager`` and an ``EventManager`` on top.

Usage::

    async with YpareoClient(ClientConfig.from_env()) as client:
        client.on("error", lambda exc: print("failed:", exc))
        user = await client.login()
        saved = client.save_session()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .auth.auth_manager import AuthManager
from .auth.session_manager import SessionManager
from .config import ClientConfig
from .constants import DEFAULT_HEADERS, DEFAULT_URLS, YpareoUrls
from .cookies import CookieJar
from .errors import SessionStateError
from .events import EventManager
from .http_client import HttpClient
from .models import User

logger = logging.getLogger(__name__)


class YpareoClient:

    def __init__(self, config: ClientConfig, urls: YpareoUrls = DEFAULT_URLS):
        self.config = config
        self.urls = urls

        jar = CookieJar()
        self.http = HttpClient(
            jar=jar,
            base_url=config.base_url,
            user_agent=config.user_agent,
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            timeout=config.timeout,
            headers=DEFAULT_HEADERS,
            retry=config.retry_options(),
        )
        self.session = SessionManager(jar)
        self.events = EventManager(debug=config.debug)
        self.auth = AuthManager(
            self.http,
            self.session,
            self.events,
            config.username,
            config.password,
            urls=urls,
            session_max_age=config.session_max_age,
        )
        self._pending: Optional[asyncio.Task] = None

    # ── Events ────────────────────────────────────────────────────

    def on(self, event: str, listener: Callable[..., None]) -> "YpareoClient":
        self.events.on(event, listener)
        return self

    def once(self, event: str, listener: Callable[..., None]) -> "YpareoClient":
        self.events.once(event, listener)
        return self

    def off(self, event: str, listener: Callable[..., None]) -> "YpareoClient":
        self.events.off(event, listener)
        return self

    # ── Session lifecycle ─────────────────────────────────────────

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected()

    async def login(self) -> User:
        return await self.auth.login()

    def start_login(self) -> asyncio.Task:
        """Log in in the background.

        Failures surface only through the ``error`` event; await ``login()``
        when the caller needs the exception.
        """
        self._pending = asyncio.ensure_future(self.auth.login())
        self._pending.add_done_callback(_consume_failure)
        return self._pending

    async def restore_session(self, data: str, auto_relogin: bool = True) -> User:
        return await self.auth.restore_session(data, auto_relogin)

    def save_session(self) -> str:
        if not self.session.is_connected():
            raise SessionStateError("No active session to save")
        return self.session.serialize()

    async def logout(self) -> None:
        await self.auth.logout()

    def clear_password(self) -> None:
        self.auth.clear_password()

    # ── Resources ─────────────────────────────────────────────────

    async def close(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        await self.http.close()

    async def __aenter__(self) -> "YpareoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _consume_failure(task: asyncio.Task) -> None:
    # Already reported on the error event
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"[CLIENT] Background login failed: {task.exception()}")
