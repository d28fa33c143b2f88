"""
Auth Manager
============
Login, session restoration and logout on top of ``HttpClient`` and
``SessionManager``.

Login flow:
    1. GET the login page (picks up the session cookie and, if present, the
       ``token_csrf`` hidden field).
    2. POST the credentials as a urlencoded form.
    3. A final URL still on the login endpoint means the portal rejected the
       login; its suffix tells which way (see ``login_errors``).
    4. Parse the identity from the landing page, mark the session connected,
       forget the password.

Every terminal failure is emitted on the ``error`` event before it is
raised, so listeners see it even when nobody awaits the call.

Security:
    - The password is held only through ``PasswordManager``.
    - Credentials are never logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from multidict import MultiDict

from ..constants import DEFAULT_URLS, HTTP_OK, YpareoUrls
from ..errors import (
    AuthenticationError,
    LoginError,
    SessionExpiredError,
    SessionStateError,
    YpareoError,
)
from ..events import EventManager
from ..http_client import HttpClient
from ..models import User
from ..parsers import extract_csrf_token, parse_user
from .login_errors import parse_login_error
from .password_manager import PasswordManager
from .session_manager import DEFAULT_SESSION_MAX_AGE, SessionManager, SessionState

logger = logging.getLogger(__name__)

# Form fields a desktop browser submits alongside the credentials
_SCREEN_WIDTH = "1920"
_SCREEN_HEIGHT = "1080"


class AuthManager:

    def __init__(
        self,
        http: HttpClient,
        session: SessionManager,
        events: EventManager,
        username: str,
        password: str,
        urls: YpareoUrls = DEFAULT_URLS,
        session_max_age: float = DEFAULT_SESSION_MAX_AGE,
    ):
        self.http = http
        self.session = session
        self.events = events
        self.urls = urls
        self.username = username
        self.session_max_age = session_max_age
        self._passwords = PasswordManager(username, password)

    # ── Public API ────────────────────────────────────────────────

    def clear_password(self) -> None:
        self._passwords.clear()

    def has_password(self) -> bool:
        return self._passwords.has_password()

    def is_connected(self) -> bool:
        return self.session.is_connected()

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    async def login(self) -> User:
        """Log in with the held credential.

        Raises:
            SessionStateError: The credential was already used or cleared.
            AuthenticationError: The portal rejected the credentials.
            LoginError: Any other failure during the flow.
        """
        if self.session.is_connected():
            self.events.emit("ready")
            return self.session.user

        password = self._passwords.decrypt()
        if not password:
            error = SessionStateError("Password has been cleared. Cannot login.")
            self.events.emit("error", error)
            raise error

        self.session.set_state(SessionState.CONNECTING)
        logger.info(f"[AUTH] Logging in to {self.http.base_url}")

        try:
            user = await self._perform_login(password)
        except Exception as exc:
            self.session.fail()
            error = _login_failure(exc)
            logger.error(f"[AUTH] {error}")
            self.events.emit("error", error)
            raise error from exc

        self.session.set_user(user)
        self.clear_password()
        logger.info(f"[AUTH] Logged in as {user}")

        self.events.emit("login", user)
        self.events.emit("ready")
        return user

    async def restore_session(self, data: str, auto_relogin: bool = True) -> User:
        """Resume a session saved with ``SessionManager.serialize()``.

        Cookies are restored into the client's live jar (replacing whatever
        it held), then checked against the server by loading the home page.
        """
        try:
            if not SessionManager.is_session_valid(data, self.session_max_age):
                if auto_relogin:
                    logger.info("[AUTH] Saved session is stale - logging in again")
                    return await self.login()
                raise SessionExpiredError("Session expired")

            self.session.reset()
            restored = SessionManager.deserialize(data, self.http.jar)
            self.session.set_user(restored.user)

            home = await self.http.get(
                self.urls.home,
                headers={
                    "Origin": self.http.base_url,
                    "Referer": self.http.base_url + self.urls.home,
                },
                throw_on_http_error=False,
            )

            result = parse_login_error(home)
            if home.status != HTTP_OK or result.login_error:
                if auto_relogin:
                    logger.info("[AUTH] Saved session rejected by server - logging in again")
                    self.session.reset()
                    return await self.login()
                raise SessionExpiredError(f"Session invalid on server: {result.message}")

            user = self.session.user
            logger.info(f"[AUTH] Session restored for {user}")
            self.events.emit("session_restored", user)
            return user

        except (LoginError, SessionStateError):
            # Already emitted by login()
            self.session.reset()
            raise
        except Exception as exc:
            if auto_relogin and self._passwords.has_password():
                self.session.reset()
                try:
                    return await self.login()
                except YpareoError as login_exc:
                    error = LoginError(f"Session restore and auto re-login failed: {login_exc}")
                    self.events.emit("error", error)
                    raise error from login_exc

            self.session.reset()
            error = SessionExpiredError(f"Session restore failed: {exc}")
            logger.error(f"[AUTH] {error}")
            self.events.emit("error", error)
            raise error from exc

    async def logout(self) -> None:
        """Drop identity and cookies. The portal is not contacted."""
        if not self.session.is_connected():
            return
        self.session.reset()
        logger.info("[AUTH] Logged out")
        self.events.emit("logout")

    # ── Internal ──────────────────────────────────────────────────

    async def _perform_login(self, password: str) -> User:
        base_url = self.http.base_url

        login_page = await self.http.get(
            self.urls.login,
            headers={"Origin": base_url},
            throw_on_http_error=False,
        )
        if login_page.status != HTTP_OK:
            raise LoginError(f"Failed to load login page. Status: {login_page.status}")

        token = extract_csrf_token(login_page.data)
        if token:
            self.events.emit_debug(f"CSRF token extracted: {token[:8]}...")

        form = MultiDict([
            ("login", self.username),
            ("password", password),
            ("btnSeConnecter", "Se connecter"),
            ("screenWidth", _SCREEN_WIDTH),
            ("screenHeight", _SCREEN_HEIGHT),
        ])
        if token:
            form.add("token_csrf", token)

        auth = await self.http.post(
            self.urls.auth,
            form,
            headers={
                "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                "Referer": base_url + self.urls.login,
                "Origin": base_url,
            },
            throw_on_http_error=False,
        )
        if auth.status != HTTP_OK:
            raise LoginError(f"Authentication failed. Status: {auth.status}")

        result = parse_login_error(auth)
        if result.login_error:
            raise result.to_exception()

        return parse_user(auth.data, self.username)


def _login_failure(exc: BaseException) -> LoginError:
    """Normalize any login-flow exception under a ``Login failed:`` prefix."""
    if isinstance(exc, AuthenticationError):
        return AuthenticationError(f"Login failed: {exc}", kind=exc.kind, code=exc.code)
    return LoginError(f"Login failed: {exc}")
