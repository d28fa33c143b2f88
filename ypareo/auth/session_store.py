"""
Session Store
=============
Persists the serialized session between runs.

Responsibilities:
    1. Save the ``SessionManager.serialize()`` string to disk
    2. Load it back for ``AuthManager.restore_session()``
    3. Validate freshness (age, cookie presence) before a restore is attempted

Security:
    - The file holds live session cookies: keep it out of version control.
    - The file is written with owner-only permissions where the OS allows it.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .session_manager import DEFAULT_SESSION_MAX_AGE, SessionManager

logger = logging.getLogger(__name__)

_DEFAULT_STATE_PATH = "ypareo_session.json"


class SessionStore:
    """File-backed storage for one serialized session."""

    def __init__(
        self,
        path: Union[str, Path] = _DEFAULT_STATE_PATH,
        *,
        max_age: float = DEFAULT_SESSION_MAX_AGE,
        force_login: bool = False,
    ):
        """
        Args:
            path:        File the session JSON is written to.
            max_age:     Maximum age (seconds) of a reusable session.
            force_login: If True, never report a saved session as valid.
        """
        self.path = Path(path)
        self.max_age = max_age
        self.force_login = force_login

    def save(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(data, encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError as exc:
            logger.debug(f"[SESSION] Could not restrict permissions on {self.path}: {exc}")
        logger.info(f"[SESSION] Session saved to {self.path}")

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning(f"[SESSION] Could not read session file: {exc}")
            return None

    def has_valid_session(self) -> bool:
        """Check that a saved session exists and is worth restoring.

        Validates:
            - File exists and is readable JSON
            - Contains at least one cookie
            - Is not older than ``max_age``
        """
        if self.force_login:
            logger.info("[SESSION] force_login=True - ignoring saved session")
            return False

        data = self.load()
        if data is None:
            logger.info("[SESSION] No saved session file found")
            return False

        try:
            cookies = json.loads(json.loads(data).get("cookies") or "[]")
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning(f"[SESSION] Corrupt session file: {exc}")
            return False

        if not cookies:
            logger.info("[SESSION] Session file has no cookies - stale")
            return False

        if not SessionManager.is_session_valid(data, self.max_age):
            logger.info(f"[SESSION] Session is older than {self.max_age / 3600:.1f}h - expired")
            return False

        logger.info(f"[SESSION] Valid session: {len(cookies)} cookies")
        return True

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"[SESSION] Removed {self.path}")
