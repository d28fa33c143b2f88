"""
Client Configuration
====================
Single source of truth for client defaults.

Populate via:
  - ``ClientConfig(base_url=..., username=..., password=...)``
  - ``ClientConfig.from_env()``          → YPAREO_* environment variables
  - ``ClientConfig.from_cli_args(ns)``   → argparse Namespace (``__main__.py``)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .auth.session_manager import DEFAULT_SESSION_MAX_AGE
from .constants import DEFAULT_USER_AGENT
from .http_client import RetryOptions

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "timeout": 30.0,                 # seconds per attempt
    "max_redirects": 10,
    "follow_redirects": True,
    "user_agent": DEFAULT_USER_AGENT,
    "retry_enabled": False,          # retries are opt-in
    "max_retries": 3,
    "session_max_age": DEFAULT_SESSION_MAX_AGE,
    "session_file": "ypareo_session.json",
    "debug": False,
}

_ENV_PREFIX = "YPAREO"


@dataclass
class ClientConfig:
    """Connection settings for one portal account."""

    # ---- Portal + credentials ----
    base_url: str = ""
    username: str = ""
    password: str = ""

    # ---- HTTP engine ----
    timeout: float = _DEFAULTS["timeout"]
    max_redirects: int = _DEFAULTS["max_redirects"]
    follow_redirects: bool = _DEFAULTS["follow_redirects"]
    user_agent: str = _DEFAULTS["user_agent"]
    retry_enabled: bool = _DEFAULTS["retry_enabled"]
    max_retries: int = _DEFAULTS["max_retries"]

    # ---- Session ----
    session_max_age: float = _DEFAULTS["session_max_age"]
    session_file: str = _DEFAULTS["session_file"]

    debug: bool = _DEFAULTS["debug"]

    @property
    def is_configured(self) -> bool:
        """True if enough config is present to attempt login."""
        return bool(self.base_url and self.username and self.password)

    def resolve_credentials(self) -> None:
        """Fill blank fields from ``YPAREO_BASE_URL`` / ``YPAREO_USERNAME`` /
        ``YPAREO_PASSWORD``."""
        if not self.base_url:
            self.base_url = os.environ.get(f"{_ENV_PREFIX}_BASE_URL", "")
        if not self.username:
            self.username = os.environ.get(f"{_ENV_PREFIX}_USERNAME", "")
        if not self.password:
            self.password = os.environ.get(f"{_ENV_PREFIX}_PASSWORD", "")

    def retry_options(self) -> RetryOptions:
        return RetryOptions(enabled=self.retry_enabled, max_retries=self.max_retries)

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        cfg = cls(**overrides)
        cfg.resolve_credentials()
        return cfg

    @classmethod
    def from_cli_args(cls, args) -> "ClientConfig":
        """Build config from an argparse Namespace (``__main__.py``)."""
        cfg = cls(
            base_url=getattr(args, "base_url", None) or "",
            username=getattr(args, "username", None) or "",
            password=getattr(args, "password", None) or "",
            timeout=getattr(args, "timeout", None) or _DEFAULTS["timeout"],
            retry_enabled=getattr(args, "retry", False),
            max_retries=getattr(args, "max_retries", None) or _DEFAULTS["max_retries"],
            session_file=getattr(args, "session_file", None) or _DEFAULTS["session_file"],
            debug=getattr(args, "debug", False),
        )
        cfg.resolve_credentials()
        return cfg

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a summary to the logger. The password is never printed."""
        logger.info("=" * 60)
        logger.info("YPAREO CLIENT CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Base URL:         {self.base_url or '(not set)'}")
        logger.info(f"  Username:         {self.username or '(not set)'}")
        logger.info(f"  Password:         {'set' if self.password else '(not set)'}")
        logger.info(f"  Timeout:          {self.timeout}s per attempt")
        logger.info(f"  Retries:          {self.max_retries if self.retry_enabled else 'disabled'}")
        logger.info(f"  Session file:     {self.session_file}")
        logger.info("=" * 60)
