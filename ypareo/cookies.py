"""
Cookies
=======
A single-site cookie store.

``Cookie`` parses ``Set-Cookie`` values and answers "does this cookie go
with that URL?".  ``CookieJar`` keeps at most one cookie per
``domain|path|key`` identity and sweeps expired entries before every read.

Only the subset of RFC 6265 the portal actually relies on is implemented.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import urlparse

from .constants import DELETED_COOKIE_VALUE

logger = logging.getLogger(__name__)

_SAME_SITE_VALUES = ("Strict", "Lax", "None")


def _now() -> datetime:
    """Current UTC time truncated to milliseconds (the persisted precision)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_expires(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Cookie:
    """One cookie record."""

    key: str
    value: str
    domain: Optional[str] = None
    path: str = "/"
    expires: Optional[datetime] = None
    max_age: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = None
    creation: datetime = field(default_factory=_now)
    last_accessed: datetime = field(default_factory=_now)

    # ── Parsing ───────────────────────────────────────────────────

    @classmethod
    def parse(cls, header: str, request_url: str) -> Optional["Cookie"]:
        """Build a cookie from one ``Set-Cookie`` value.

        Returns None when the first segment has no ``=`` or the request URL
        has no hostname.
        """
        parts = [part.strip() for part in header.split(";")]
        key_value, attributes = parts[0], parts[1:]

        if not key_value or "=" not in key_value:
            return None

        try:
            hostname = urlparse(request_url).hostname
        except ValueError:
            return None
        if not hostname:
            return None

        key, _, value = key_value.partition("=")
        cookie = cls(key=key.strip(), value=value.strip())

        for attr in attributes:
            if "=" in attr:
                attr_key, _, attr_value = attr.partition("=")
                attr_key = attr_key.strip().lower()
                attr_value = attr_value.strip()
            else:
                attr_key, attr_value = attr.lower(), None

            if attr_key == "domain":
                domain = (attr_value or hostname).lower()
                cookie.domain = domain if domain.startswith(".") else f".{domain}"
            elif attr_key == "path":
                cookie.path = attr_value or "/"
            elif attr_key == "expires":
                cookie.expires = _parse_expires(attr_value) if attr_value else None
            elif attr_key == "max-age":
                try:
                    cookie.max_age = int(attr_value) if attr_value else None
                except ValueError:
                    cookie.max_age = None
            elif attr_key == "secure":
                cookie.secure = True
            elif attr_key == "httponly":
                cookie.http_only = True
            elif attr_key == "samesite":
                if attr_value in _SAME_SITE_VALUES:
                    cookie.same_site = attr_value

        if not cookie.domain:
            cookie.domain = f".{hostname}"
        return cookie

    # ── Matching / expiry ─────────────────────────────────────────

    def matches(self, url: str) -> bool:
        """True if the cookie should be sent with a request to *url*."""
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except ValueError:
            return False
        if not parsed.scheme or not hostname:
            return False

        if self.domain:
            cookie_domain = self.domain[1:] if self.domain.startswith(".") else self.domain
            cookie_domain = cookie_domain.lower()
            if hostname != cookie_domain and not hostname.endswith(f".{cookie_domain}"):
                return False

        if self.path and not (parsed.path or "/").startswith(self.path):
            return False
        if self.secure and parsed.scheme.lower() != "https":
            return False
        return True

    def is_expired(self) -> bool:
        if self.value == DELETED_COOKIE_VALUE or self.max_age == 0:
            return True

        now = datetime.now(timezone.utc)
        if self.max_age is not None:
            return (now - self.creation).total_seconds() > self.max_age
        if self.expires is not None:
            return now > self.expires
        return False

    def touch(self) -> None:
        self.last_accessed = _now()

    @property
    def identity(self) -> str:
        """Deduplication key: ``domain|path|key``."""
        return _identity(self.key, self.domain, self.path)

    def __str__(self) -> str:
        return f"{self.key}={self.value}"

    # ── Persistence ───────────────────────────────────────────────

    def serialize(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": _to_iso(self.expires) if self.expires else None,
            "maxAge": self.max_age,
            "secure": self.secure,
            "httpOnly": self.http_only,
            "sameSite": self.same_site,
            "creation": _to_iso(self.creation),
            "lastAccessed": _to_iso(self.last_accessed),
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def deserialize(cls, data: Dict[str, Any]) -> "Cookie":
        cookie = cls(
            key=data["key"],
            value=data["value"],
            domain=data.get("domain"),
            path=data.get("path") or "/",
            expires=_from_iso(data["expires"]) if data.get("expires") else None,
            max_age=data.get("maxAge"),
            secure=bool(data.get("secure", False)),
            http_only=bool(data.get("httpOnly", False)),
            same_site=data.get("sameSite"),
        )
        cookie.creation = _from_iso(data["creation"])
        cookie.last_accessed = _from_iso(data["lastAccessed"])
        return cookie


def _identity(key: str, domain: Optional[str] = None, path: Optional[str] = None) -> str:
    return f"{domain or ''}|{path or '/'}|{key}"


class CookieJar:
    """Cookie store owned by one ``HttpClient`` at a time."""

    def __init__(self, cookies: Optional[Iterable[Cookie]] = None):
        self._cookies: Dict[str, Cookie] = {}
        for cookie in cookies or ():
            self.set_cookie(cookie)

    def set_cookie(self, cookie: Union[Cookie, str], request_url: str = "") -> None:
        """Store a cookie, or delete its identity if it is already expired.

        Raw ``Set-Cookie`` strings are parsed against *request_url*; a value
        that does not parse is ignored.
        """
        parsed = Cookie.parse(cookie, request_url) if isinstance(cookie, str) else cookie
        if parsed is None:
            return

        if parsed.is_expired():
            if self._cookies.pop(parsed.identity, None) is not None:
                logger.debug(f"[COOKIES] Deleted {parsed.key} ({parsed.domain})")
            return
        self._cookies[parsed.identity] = parsed

    def get_cookies(self, request_url: str) -> List[Cookie]:
        self._remove_expired()
        matching = []
        for cookie in self._cookies.values():
            if cookie.matches(request_url):
                cookie.touch()
                matching.append(cookie)
        return matching

    def get_cookie_string(self, request_url: str) -> str:
        """Value for the ``Cookie`` request header."""
        return "; ".join(str(c) for c in self.get_cookies(request_url))

    def get_all_cookies(self) -> List[Cookie]:
        self._remove_expired()
        return list(self._cookies.values())

    def update(self, other: "CookieJar") -> None:
        """Copy every live cookie of *other* into this jar."""
        for cookie in other.get_all_cookies():
            self.set_cookie(cookie)

    def remove_cookie(self, cookie: Cookie) -> None:
        self._cookies.pop(cookie.identity, None)

    def remove_cookie_by_key(self, key: str, domain: Optional[str] = None, path: Optional[str] = None) -> None:
        self._cookies.pop(_identity(key, domain, path), None)

    def has_cookie(self, cookie: Cookie) -> bool:
        return cookie.identity in self._cookies

    def has_cookie_by_key(self, key: str, domain: Optional[str] = None, path: Optional[str] = None) -> bool:
        return _identity(key, domain, path) in self._cookies

    def clear(self) -> None:
        self._cookies.clear()

    def __len__(self) -> int:
        self._remove_expired()
        return len(self._cookies)

    def _remove_expired(self) -> None:
        expired = [ident for ident, c in self._cookies.items() if c.is_expired()]
        for ident in expired:
            del self._cookies[ident]

    # ── Persistence ───────────────────────────────────────────────

    def serialize(self) -> str:
        self._remove_expired()
        return json.dumps([c.serialize() for c in self._cookies.values()], indent=2)

    @classmethod
    def deserialize(cls, data: str) -> "CookieJar":
        """Rebuild a jar from ``serialize()`` output.

        Cookies already expired are dropped; malformed input gives an empty
        jar.
        """
        jar = cls()
        try:
            records = json.loads(data)
            cookies = [Cookie.deserialize(record) for record in records]
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            logger.warning(f"[COOKIES] Could not load cookie jar: {exc}")
            return jar

        for cookie in cookies:
            if not cookie.is_expired():
                jar._cookies[cookie.identity] = cookie
        return jar
