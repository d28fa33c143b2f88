"""
Authentication Module
=====================
Session lifecycle for the portal.

Architecture:
    - ``SessionManager``   - connection state + identity, bound to a cookie jar
    - ``PasswordManager``  - keeps the credential encrypted until it is used
    - ``AuthManager``      - login / restore_session / logout state machine
    - ``SessionStore``     - saves the serialized session between runs

Usage::

    from ypareo.auth import AuthManager, SessionManager

    session = SessionManager(http.jar)
    auth = AuthManager(http, session, events, username, password)
    user = await auth.login()
    SessionStore("session.json").save(session.serialize())
"""

from .auth_manager import AuthManager
from .login_errors import LOGIN_ERROR_CODES, LOGIN_ERROR_MESSAGES, LoginErrorResult, parse_login_error
from .password_manager import PasswordManager
from .session_manager import DEFAULT_SESSION_MAX_AGE, SessionManager, SessionState
from .session_store import SessionStore

__all__ = [
    "AuthManager",
    "PasswordManager",
    "SessionManager",
    "SessionState",
    "SessionStore",
    "DEFAULT_SESSION_MAX_AGE",
    "LOGIN_ERROR_CODES",
    "LOGIN_ERROR_MESSAGES",
    "LoginErrorResult",
    "parse_login_error",
]
