"""Shared fixtures: a local aiohttp app that behaves like the portal's login pages."""

from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

GOOD_PASSWORD = "secret"
LOCKED_USER = "locked"

HOME_HTML = """
<html><body>
  <div class="user-info">
    <span class="user-info-label">DUPONT  Jean <i class="badge">3</i></span>
  </div>
  <select name="codeInscription">
    <option value="1234567">BTS SIO (2024-2025)</option>
    <option value="7654321">Licence Pro (2025-2026)</option>
  </select>
</body></html>
"""


def login_html(token: Optional[str]) -> str:
    field = f'<input type="hidden" name="token_csrf" value="{token}">' if token else ""
    return f"""
<html><body>
  <form action="/index.php/authentication" method="post">
    {field}
    <input name="login"><input name="password" type="password">
  </form>
</body></html>
"""


class FakePortal:
    """In-memory portal: login page, credential check, authenticated home page."""

    def __init__(self, csrf_token: Optional[str] = None, login_status: int = 200):
        self.csrf_token = csrf_token
        self.login_status = login_status
        self.auth_forms: List[Dict[str, str]] = []
        self.home_cookies: List[str] = []

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/index.php/login", self.login_page)
        app.router.add_get("/index.php/login/{code}", self.login_page)
        app.router.add_post("/index.php/authentication", self.authenticate)
        app.router.add_get("/index.php/apprenant/accueil", self.home)
        return app

    async def login_page(self, request: web.Request) -> web.Response:
        resp = web.Response(
            text=login_html(self.csrf_token),
            content_type="text/html",
            status=self.login_status,
        )
        resp.set_cookie("PHPSESSID", "anon", path="/")
        return resp

    async def authenticate(self, request: web.Request) -> web.Response:
        form = dict(await request.post())
        self.auth_forms.append(form)

        if form.get("login") == LOCKED_USER:
            return _redirect("/index.php/login/4")
        if form.get("password") != GOOD_PASSWORD:
            return _redirect("/index.php/login/2")

        resp = _redirect("/index.php/apprenant/accueil")
        resp.set_cookie("auth", "ok", path="/")
        return resp

    async def home(self, request: web.Request) -> web.Response:
        cookie_header = request.headers.get("Cookie", "")
        self.home_cookies.append(cookie_header)
        if "auth=ok" not in cookie_header:
            return _redirect("/index.php/login")
        return web.Response(text=HOME_HTML, content_type="text/html")


def _redirect(location: str) -> web.Response:
    return web.Response(status=302, headers={"Location": location})


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()


@pytest_asyncio.fixture
async def portal_server(portal: FakePortal) -> AsyncGenerator[Tuple[FakePortal, str], None]:
    """Start the fake portal and yield it with its base URL."""
    async with TestServer(portal.make_app()) as server:
        yield portal, str(server.make_url("/")).rstrip("/")
