"""
HTTP Client
===========
Async request engine on top of aiohttp, driving a ``CookieJar``.

Responsibilities:
    1. Resolve request URLs against the instance base URL.
    2. Build headers (defaults < client headers < per-call headers) and
       inject the ``Cookie`` header from the jar.
    3. Encode the body according to its type.
    4. Follow redirects by hand so every hop's ``Set-Cookie`` lands in the
       jar (301/302/303 are replayed as a body-less GET).
    5. Retry failed attempts with exponential backoff (opt-in).
    6. Validate the final status and decode the body per ``ResponseType``.

aiohttp is given a ``DummyCookieJar``: this module's jar is the only
cookie store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode, urljoin

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy, MultiDict, MultiDictProxy

from .constants import (
    BASE_HEADERS,
    DEFAULT_RETRY_STATUSES,
    DEFAULT_USER_AGENT,
    DOWNGRADE_STATUSES,
    HTTP_NO_CONTENT,
    REDIRECT_STATUSES,
)
from .cookies import CookieJar
from .errors import HttpError, HttpStatusError, TooManyRedirects, TransportError

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)

# A comma starts a new cookie only when a ``name=`` follows it; commas inside
# Expires dates do not.
_SET_COOKIE_SPLIT = re.compile(r",(?=\s*\w+=)")

RequestBody = Union[str, bytes, bytearray, memoryview, MultiDict, aiohttp.FormData, Mapping[str, Any], list, None]


class ResponseType(str, Enum):
    """How the response body is decoded."""

    TEXT = "text"
    JSON = "json"
    BYTES = "bytes"


def _exponential_delay(attempt: int) -> float:
    return float(2 ** attempt)


def _is_success(status: int) -> bool:
    return 200 <= status < 300


# ---------------------------------------------------------------------------
# Request / response types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetryOptions:
    """Retry policy for one request.

    ``retry_delay(attempt)`` returns seconds; ``should_retry(error, attempt)``
    replaces the default status/transport rule when given.
    """

    enabled: bool = False
    max_retries: int = 3
    retry_delay: Callable[[int], float] = _exponential_delay
    retry_on: FrozenSet[int] = DEFAULT_RETRY_STATUSES
    should_retry: Optional[Callable[[BaseException, int], bool]] = None

    def merged(self, overrides: Union["RetryOptions", Mapping[str, Any], None]) -> "RetryOptions":
        """Return a copy with *overrides* applied field by field.

        A ``RetryOptions`` override contributes only the fields it sets away
        from their defaults; pass a mapping to force a field back to its
        default value.
        """
        if overrides is None:
            return self
        if isinstance(overrides, RetryOptions):
            defaults = RetryOptions()
            overrides = {
                f.name: getattr(overrides, f.name)
                for f in fields(overrides)
                if getattr(overrides, f.name) != getattr(defaults, f.name)
            }
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        values = {k: v for k, v in overrides.items() if v is not None}
        if "retry_on" in values:
            values["retry_on"] = frozenset(values["retry_on"])
        return replace(self, **values)

    def allows_retry(self, error: BaseException) -> bool:
        """Default rule: a retryable status, or a transport-level failure."""
        if isinstance(error, HttpStatusError) and error.status:
            return error.status in self.retry_on
        return isinstance(error, TransportError)


@dataclass
class RequestConfig:
    """Fully resolved description of one hop."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: RequestBody = None
    timeout: float = 30.0
    follow_redirects: bool = True
    retry: RetryOptions = field(default_factory=RetryOptions)
    validate_status: Callable[[int], bool] = _is_success
    response_type: ResponseType = ResponseType.TEXT
    throw_on_http_error: bool = True


@dataclass
class HttpResponse:
    status: int
    status_text: str
    headers: CIMultiDictProxy
    data: Any
    url: str
    redirected: bool
    config: RequestConfig

    @property
    def ok(self) -> bool:
        return _is_success(self.status)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class HttpClient:
    """Cookie-aware async HTTP client.

    Usage::

        async with HttpClient(base_url="https://portal.example.com/app") as http:
            res = await http.get("/index.php/login")
            print(res.status, http.jar.get_cookie_string(res.url))
    """

    def __init__(
        self,
        *,
        jar: Optional[CookieJar] = None,
        base_url: str = "",
        user_agent: str = DEFAULT_USER_AGENT,
        follow_redirects: bool = True,
        max_redirects: int = 10,
        timeout: float = 30.0,
        headers: Optional[Mapping[str, str]] = None,
        retry: Union[RetryOptions, Mapping[str, Any], None] = None,
        validate_status: Optional[Callable[[int], bool]] = None,
        throw_on_http_error: bool = True,
    ):
        """
        Args:
            jar: Cookie jar to read from and write to (a new one if omitted).
            base_url: Prefix for relative request paths.
            user_agent: ``User-Agent`` sent on every request.
            follow_redirects: Default redirect policy.
            max_redirects: Maximum hops per request.
            timeout: Per-attempt timeout in seconds.
            headers: Client-level default headers.
            retry: Default retry policy (retries stay disabled unless enabled).
            validate_status: Status predicate; defaults to 2xx.
            throw_on_http_error: Raise ``HttpStatusError`` on failed validation.
        """
        self._jar = jar if jar is not None else CookieJar()
        self._base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.follow_redirects = follow_redirects
        self.max_redirects = max_redirects
        self.timeout = timeout
        self._default_headers: Dict[str, str] = dict(headers or {})
        self.retry = RetryOptions().merged(retry)
        self.validate_status = validate_status or _is_success
        self.throw_on_http_error = throw_on_http_error
        self._session: Optional[aiohttp.ClientSession] = None

    # ── Lifecycle ─────────────────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar())
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ── Accessors ─────────────────────────────────────────────────

    @property
    def jar(self) -> CookieJar:
        return self._jar

    @jar.setter
    def jar(self, jar: CookieJar) -> None:
        # Do not swap while requests are in flight against the old jar
        self._jar = jar

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._base_url = value.rstrip("/")

    @property
    def default_headers(self) -> Dict[str, str]:
        return dict(self._default_headers)

    def set_default_header(self, key: str, value: str) -> None:
        self._default_headers[key] = value

    def remove_default_header(self, key: str) -> None:
        self._default_headers.pop(key, None)

    # ── Verb helpers ──────────────────────────────────────────────

    async def get(self, path: str, **options) -> HttpResponse:
        return await self.request("GET", path, None, **options)

    async def post(self, path: str, body: RequestBody = None, **options) -> HttpResponse:
        return await self.request("POST", path, body, **options)

    async def put(self, path: str, body: RequestBody = None, **options) -> HttpResponse:
        return await self.request("PUT", path, body, **options)

    async def delete(self, path: str, body: RequestBody = None, **options) -> HttpResponse:
        return await self.request("DELETE", path, body, **options)

    async def patch(self, path: str, body: RequestBody = None, **options) -> HttpResponse:
        return await self.request("PATCH", path, body, **options)

    async def head(self, path: str, **options) -> HttpResponse:
        return await self.request("HEAD", path, None, **options)

    async def options(self, path: str, **options) -> HttpResponse:
        return await self.request("OPTIONS", path, None, **options)

    # ── Core ──────────────────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        body: RequestBody = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        follow_redirects: Optional[bool] = None,
        retry: Union[RetryOptions, Mapping[str, Any], None] = None,
        validate_status: Optional[Callable[[int], bool]] = None,
        response_type: Union[ResponseType, str] = ResponseType.TEXT,
        throw_on_http_error: Optional[bool] = None,
    ) -> HttpResponse:
        """Perform a request, following redirects and retrying per policy.

        Raises:
            TransportError: Timeout or network failure (after retries).
            HttpStatusError: Final status failed validation (after retries).
            TooManyRedirects: More than ``max_redirects`` hops.
        """
        config = RequestConfig(
            method=method.upper(),
            url=self.build_url(path),
            headers=dict(headers or {}),
            body=body,
            timeout=self.timeout if timeout is None else timeout,
            follow_redirects=self.follow_redirects if follow_redirects is None else follow_redirects,
            retry=self.retry.merged(retry),
            validate_status=validate_status or self.validate_status,
            response_type=ResponseType(response_type),
            throw_on_http_error=self.throw_on_http_error if throw_on_http_error is None else throw_on_http_error,
        )
        options = config.retry

        attempt = 0
        while True:
            try:
                return await self._execute(config)
            except HttpError as exc:
                can_retry = options.enabled and attempt < options.max_retries
                if options.should_retry is not None:
                    wanted = options.should_retry(exc, attempt)
                else:
                    wanted = options.allows_retry(exc)
                if not (can_retry and wanted):
                    raise

                delay = options.retry_delay(attempt)
                logger.warning(
                    f"[HTTP] Attempt {attempt + 1} failed: {exc}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _execute(self, config: RequestConfig, redirect_count: int = 0) -> HttpResponse:
        """Run one attempt, recursing once per redirect hop."""
        if config.follow_redirects and redirect_count > self.max_redirects:
            raise TooManyRedirects(f"Max redirects exceeded: {self.max_redirects}", config=config)

        headers = self._build_headers(config.url, config.headers)
        data, headers = self._prepare_body(config.body, headers)
        logger.debug(f"[HTTP] {config.method} {config.url}")

        next_config: Optional[RequestConfig] = None
        try:
            async with self._get_session().request(
                config.method,
                config.url,
                headers=headers,
                data=data,
                allow_redirects=False,
                timeout=aiohttp.ClientTimeout(total=config.timeout),
            ) as resp:
                self._extract_cookies(resp, config.url)
                logger.debug(f"[HTTP] {resp.status} {resp.reason} <- {config.url}")

                if config.follow_redirects and resp.status in REDIRECT_STATUSES:
                    location = resp.headers.get("Location")
                    if not location:
                        raise HttpStatusError(
                            "Redirect location header missing",
                            resp.status, resp.reason, config=config,
                        )
                    target = urljoin(config.url, location)
                    logger.debug(f"[HTTP] Redirect {resp.status} -> {target}")
                    next_config = self._redirect_config(config, resp.status, target)
                else:
                    response = HttpResponse(
                        status=resp.status,
                        status_text=resp.reason or "",
                        headers=CIMultiDictProxy(CIMultiDict(resp.headers)),
                        data=await self._parse_response(resp, config.response_type),
                        url=str(resp.url),
                        redirected=redirect_count > 0,
                        config=config,
                    )
        except asyncio.TimeoutError:
            raise TransportError(f"Request timed out after {config.timeout}s", config=config) from None
        except aiohttp.ClientError as exc:
            raise TransportError(f"Network error: {exc}", config=config) from exc

        if next_config is not None:
            return await self._execute(next_config, redirect_count + 1)

        if config.throw_on_http_error and not config.validate_status(response.status):
            raise HttpStatusError(
                f"Request failed with status code {response.status}",
                response.status, response.status_text, response, config,
            )
        return response

    # ── Helpers ───────────────────────────────────────────────────

    def build_url(self, path: str) -> str:
        if _ABSOLUTE_URL.match(path) or not self._base_url:
            return path
        return f"{self._base_url}{path if path.startswith('/') else '/' + path}"

    def _build_headers(self, url: str, custom: Mapping[str, str]) -> CIMultiDict:
        headers = CIMultiDict(BASE_HEADERS)
        headers["User-Agent"] = self.user_agent
        headers.update(self._default_headers)
        headers.update(custom)

        cookie_header = self._jar.get_cookie_string(url)
        if cookie_header:
            headers["Cookie"] = cookie_header
        if self._base_url and "Referer" not in headers:
            headers["Referer"] = self._base_url
        return headers

    @staticmethod
    def _prepare_body(body: RequestBody, headers: CIMultiDict) -> Tuple[Any, CIMultiDict]:
        if body is None or (isinstance(body, (str, bytes)) and not body):
            return None, headers

        if isinstance(body, aiohttp.FormData):
            # aiohttp writes the multipart boundary itself
            headers.popall("Content-Type", None)
            return body, headers
        if isinstance(body, (bytes, bytearray, memoryview)):
            headers.setdefault("Content-Type", "application/octet-stream")
            return bytes(body), headers
        if isinstance(body, (MultiDict, MultiDictProxy)):
            headers.setdefault("Content-Type", "application/x-www-form-urlencoded;charset=UTF-8")
            return urlencode(list(body.items())), headers
        if isinstance(body, str):
            headers.setdefault("Content-Type", "text/plain;charset=UTF-8")
            return body, headers

        headers.setdefault("Content-Type", "application/json;charset=UTF-8")
        return json.dumps(body), headers

    @staticmethod
    def _redirect_config(config: RequestConfig, status: int, url: str) -> RequestConfig:
        if status not in DOWNGRADE_STATUSES:
            return replace(config, url=url)
        headers = {k: v for k, v in config.headers.items() if k.lower() != "content-type"}
        return replace(config, method="GET", url=url, body=None, headers=headers)

    @staticmethod
    async def _parse_response(resp: aiohttp.ClientResponse, response_type: ResponseType) -> Any:
        if resp.status == HTTP_NO_CONTENT or resp.headers.get("Content-Length") == "0":
            return None

        if response_type is ResponseType.JSON:
            try:
                return await resp.json(content_type=None)
            except ValueError:
                return None
        if response_type is ResponseType.BYTES:
            return await resp.read()
        return await resp.text(errors="replace")

    def _extract_cookies(self, resp: aiohttp.ClientResponse, request_url: str) -> None:
        for header in resp.headers.getall("Set-Cookie", []):
            for piece in _SET_COOKIE_SPLIT.split(header):
                cookie = piece.strip()
                lowered = cookie.lower()
                if not cookie or "=deleted;" in lowered or "=deleted " in lowered:
                    continue
                self._jar.set_cookie(cookie, request_url)
