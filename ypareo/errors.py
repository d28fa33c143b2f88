"""
Error Taxonomy
==============
Every exception raised by the client derives from ``YpareoError``.

Transport and HTTP failures share one kind (``HttpError``) and are told apart
by ``status``: it is ``None`` for timeouts and network failures.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .http_client import HttpResponse, RequestConfig


class YpareoError(Exception):
    """Base class for all client errors."""


# ---------------------------------------------------------------------------
# HTTP engine
# ---------------------------------------------------------------------------

class HttpError(YpareoError):
    """A request failed, either on the wire or on status validation."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        response: Optional["HttpResponse"] = None,
        config: Optional["RequestConfig"] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_text = status_text
        self.response = response
        self.config = config

    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return self.status is not None and self.status >= 500

    def __str__(self) -> str:
        if self.status:
            status = f"{self.status} {self.status_text}" if self.status_text else str(self.status)
            return f"{self.message} ({status})"
        return self.message


class TransportError(HttpError):
    """Timeout or low-level network failure. Never carries a status."""


class HttpStatusError(HttpError):
    """The server answered but the status did not pass validation."""


class TooManyRedirects(HttpError):
    """The redirect chain exceeded the configured hop limit."""


# ---------------------------------------------------------------------------
# Session / auth
# ---------------------------------------------------------------------------

class SessionStateError(YpareoError):
    """Operation is not valid for the current session state."""


class SessionExpiredError(YpareoError):
    """A persisted session is too old or was rejected by the server."""


class LoginErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    UNKNOWN = "unknown"


class LoginError(YpareoError):
    """The login flow did not complete."""


class AuthenticationError(LoginError):
    """The portal rejected the credentials.

    ``code`` is the raw suffix the portal appended to the login URL, ``kind``
    its interpretation.
    """

    def __init__(
        self,
        message: str,
        kind: LoginErrorKind = LoginErrorKind.UNKNOWN,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.code = code
