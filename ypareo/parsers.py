"""
Page Parsers
============
The markup boundary of the client: raw HTML in, identity data out.
Only what the login flow needs lives here (CSRF token, user identity).
"""

import logging
import re
from typing import List, Optional, Set

from bs4 import BeautifulSoup

from .models import Registration, User

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"

_CSRF_FIELD = "token_csrf"

# Report links look like /bulletin/<learner>/<registration>/
_REPORT_LINK = re.compile(r"/(\d{7})/(\d{7})/")
_ACADEMIC_YEAR = re.compile(r"\((\d{4}-\d{4})\)")
_LEARNER_CODE = re.compile(r"codeApprenant\s*=\s*(\d+)")

_REGISTRATION_SELECTORS = [
    'select[name="codeInscription"] option',
    'a[href*="/bulletin/"]',
    'a[href*="/assiduite/"]',
    'a[href*="/calendrier/"]',
]


def normalize_text(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace runs; None for empty input."""
    if not text:
        return None
    return re.sub(r"\s+", " ", text).strip()


def extract_csrf_token(html: Optional[str]) -> Optional[str]:
    """Return the login form's CSRF token, or None when the page has none."""
    if not html:
        return None
    soup = BeautifulSoup(html, _BS_PARSER)
    field = soup.find("input", attrs={"name": _CSRF_FIELD})
    if field is None:
        return None
    return field.get("value") or None


def parse_user(html: Optional[str], username: str) -> User:
    """Build the ``User`` shown on an authenticated page."""
    soup = BeautifulSoup(html or "", _BS_PARSER)

    full_name = None
    label = soup.select_one(".user-info-label")
    if label is not None:
        # Own text only; child elements hold badges and icons
        own_text = "".join(label.find_all(string=True, recursive=False))
        full_name = normalize_text(own_text)

    return User(
        username=username,
        full_name=full_name,
        registrations=_parse_registrations(soup),
    )


def _parse_registrations(soup: BeautifulSoup) -> List[Registration]:
    registrations: List[Registration] = []
    seen: Set[int] = set()

    for selector in _REGISTRATION_SELECTORS:
        for elem in soup.select(selector):
            code = None
            name = ""

            if selector.startswith("select"):
                try:
                    code = int(elem.get("value") or 0)
                except ValueError:
                    code = None
                name = elem.get_text(strip=True)
            else:
                match = _REPORT_LINK.search(elem.get("href") or "")
                if match:
                    code = int(match.group(2))
                    block = elem.find_parent(class_="block")
                    title = block.select_one(".block-toolbar h3, .category-header-title") if block else None
                    name = title.get_text(strip=True) if title else ""

            year_match = _ACADEMIC_YEAR.search(name)
            year = year_match.group(1) if year_match else ""

            if code and code not in seen:
                seen.add(code)
                registrations.append(Registration(code, name or f"Inscription {code}", year))

    if not registrations:
        scripts = " ".join(s.get_text() for s in soup.find_all("script"))
        match = _LEARNER_CODE.search(scripts)
        if match:
            code = int(match.group(1))
            registrations.append(Registration(code, f"Inscription {code}", ""))

    logger.debug(f"[PARSER] Found {len(registrations)} registration(s)")
    return registrations
