"""
Ypareo Client Package
Stateful async HTTP client for session-cookie portals (Ypareo student space).

Components:
    - ``CookieJar`` / ``Cookie``   - single-site cookie store
    - ``HttpClient``               - redirects, retries, timeouts, cookie capture
    - ``ypareo.auth``              - session state machine, login, restore
    - ``YpareoClient``             - facade wiring them together

CLI Usage:
    python -m ypareo [--base-url URL] [--session-file PATH] [--force-login]
"""

from .client import YpareoClient
from .config import ClientConfig
from .cookies import Cookie, CookieJar
from .errors import (
    AuthenticationError,
    HttpError,
    HttpStatusError,
    LoginError,
    LoginErrorKind,
    SessionExpiredError,
    SessionStateError,
    TooManyRedirects,
    TransportError,
    YpareoError,
)
from .events import EventManager
from .http_client import HttpClient, HttpResponse, RequestConfig, ResponseType, RetryOptions
from .models import Registration, User

__all__ = [
    'YpareoClient',
    'ClientConfig',
    'Cookie',
    'CookieJar',
    'HttpClient',
    'HttpResponse',
    'RequestConfig',
    'ResponseType',
    'RetryOptions',
    'EventManager',
    'User',
    'Registration',
    # Errors
    'YpareoError',
    'HttpError',
    'TransportError',
    'HttpStatusError',
    'TooManyRedirects',
    'SessionStateError',
    'SessionExpiredError',
    'LoginError',
    'LoginErrorKind',
    'AuthenticationError',
]

__version__ = '1.0.0'
