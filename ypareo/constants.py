"""
Static Tables
=============
Read-only configuration data loaded once at import: portal endpoints,
browser-like default headers and the status-code sets used by the HTTP engine.
"""

from dataclasses import dataclass, field
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Portal endpoints (relative to the instance base URL)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanningUrls:
    default: str = "/index.php/apprenant/planning/courant"
    pdf: str = "/index.php/apprenant/planning/hebdo/pdf"


@dataclass(frozen=True)
class GradesUrls:
    default: str = "/index.php/apprenant/bulletin"
    api: str = "/index.php/apprenant/bulletin/api"


@dataclass(frozen=True)
class YpareoUrls:
    login: str = "/index.php/login"
    auth: str = "/index.php/authentication"
    home: str = "/index.php/apprenant/accueil"
    planning: PlanningUrls = field(default_factory=PlanningUrls)
    attendance: str = "/index.php/apprenant/assiduite"
    grades: GradesUrls = field(default_factory=GradesUrls)


DEFAULT_URLS = YpareoUrls()

# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
)

# Sent on every request before client and per-call headers
BASE_HEADERS = MappingProxyType({
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Connection": "keep-alive",
})

# Navigation headers the portal expects from a real browser
DEFAULT_HEADERS = MappingProxyType({
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "max-age=0",
    "Sec-Ch-Ua": '"Not.A/Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"macOS"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "same-origin",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
})

# ---------------------------------------------------------------------------
# Status codes
# ---------------------------------------------------------------------------

HTTP_OK = 200
HTTP_NO_CONTENT = 204

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

# Redirects replayed as a body-less GET
DOWNGRADE_STATUSES = frozenset({301, 302, 303})

DEFAULT_RETRY_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

# Value the portal uses in Set-Cookie to clear a cookie
DELETED_COOKIE_VALUE = "deleted"
