#!/usr/bin/env python3
"""
Command-line entry point
========================
Opens an authenticated session and keeps it on disk for the next run.

Flow:
    1. Load ``.env`` (credentials), then CLI flags override.
    2. Reuse the saved session when it is fresh and the server accepts it.
    3. Otherwise log in and save the new session.

Run with: python -m ypareo --base-url https://portal.example.com/netypareo
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .auth.session_store import SessionStore
from .client import YpareoClient
from .config import ClientConfig
from .errors import YpareoError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m ypareo",
        description="Log in to a Ypareo portal and persist the session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ypareo                                   # everything from .env / YPAREO_* vars
  python -m ypareo --base-url https://host/netypareo --username jdoe
  python -m ypareo --force-login --session-file ~/.ypareo/session.json
        """,
    )
    parser.add_argument("--base-url", type=str, help="Portal base URL (or YPAREO_BASE_URL)")
    parser.add_argument("--username", type=str, help="Login username (or YPAREO_USERNAME)")
    parser.add_argument("--password", type=str, help="Login password (or YPAREO_PASSWORD)")
    parser.add_argument("--session-file", type=str, metavar="PATH",
                        help="Where the session is saved (default: ypareo_session.json)")
    parser.add_argument("--force-login", action="store_true",
                        help="Ignore the saved session and log in again")
    parser.add_argument("--no-auto-relogin", action="store_true",
                        help="Fail instead of logging in when the saved session is rejected")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default: 30)")
    parser.add_argument("--retry", action="store_true", help="Retry transient failures")
    parser.add_argument("--max-retries", type=int, help="Retries per request when --retry is set (default: 3)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


async def run(cfg: ClientConfig, store: SessionStore, auto_relogin: bool = True) -> int:
    async with YpareoClient(cfg) as client:
        client.on("error", lambda exc: logger.error(f"[CLI] {exc}"))
        try:
            if store.has_valid_session():
                user = await client.restore_session(store.load(), auto_relogin=auto_relogin)
            else:
                user = await client.login()
        except YpareoError:
            return 1

        store.save(client.save_session())

    print(f"Connected as {user}")
    for registration in user.registrations:
        print(f"  - {registration} [{registration.code}]")
    return 0


def main(argv=None) -> int:
    load_dotenv(Path.cwd() / ".env")
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    cfg = ClientConfig.from_cli_args(args)
    if not cfg.is_configured:
        logger.error("Base URL, username and password are required (flags or YPAREO_* env vars)")
        return 2
    cfg.log_summary()

    store = SessionStore(cfg.session_file, max_age=cfg.session_max_age, force_login=args.force_login)
    return asyncio.run(run(cfg, store, auto_relogin=not args.no_auto_relogin))


if __name__ == "__main__":
    sys.exit(main())
