"""
Login error detection.

After a failed login the portal redirects back to its login page with a short
numeric suffix, e.g. ``/index.php/login/4`` for a locked account.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from ..errors import AuthenticationError, LoginErrorKind
from ..http_client import HttpResponse

LOGIN_ERROR_CODES = MappingProxyType({
    "2": LoginErrorKind.INVALID_CREDENTIALS,
    "4": LoginErrorKind.ACCOUNT_LOCKED,
})

LOGIN_ERROR_MESSAGES = MappingProxyType({
    LoginErrorKind.INVALID_CREDENTIALS: "Invalid credentials.",
    LoginErrorKind.ACCOUNT_LOCKED: "Account disabled.",
    LoginErrorKind.UNKNOWN: "Unknown error.",
})


@dataclass(frozen=True)
class LoginErrorResult:
    login_error: bool
    kind: Optional[LoginErrorKind] = None
    code: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return LOGIN_ERROR_MESSAGES[self.kind] if self.kind else None

    def to_exception(self, prefix: str = "Authentication failed: ") -> AuthenticationError:
        return AuthenticationError(f"{prefix}{self.message}", kind=self.kind, code=self.code)


def parse_login_error(response: HttpResponse) -> LoginErrorResult:
    """Inspect the final URL of *response* for the login-error convention."""
    url = response.config.url
    if "login" not in url:
        return LoginErrorResult(login_error=False)

    code = url[-2:].replace("/", "")
    kind = LOGIN_ERROR_CODES.get(code, LoginErrorKind.UNKNOWN)
    return LoginErrorResult(login_error=True, kind=kind, code=code)
