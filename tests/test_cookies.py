"""
Tests for cookies.py.

Covers:
  1. Set-Cookie parsing (attributes, defaults, rejects)
  2. URL matching (domain suffix, path prefix, secure)
  3. Expiry rules (max-age, expires, "deleted" sentinel)
  4. CookieJar identity, sweeping and persistence
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from ypareo.cookies import Cookie, CookieJar

URL = "https://portal.example.com/netypareo/index.php"


# ====================================================================
# 1. Parsing
# ====================================================================

class TestParse:

    def test_all_attributes(self):
        cookie = Cookie.parse(
            "sid=abc123; Domain=Example.COM; Path=/netypareo; Max-Age=3600; "
            "Secure; HttpOnly; SameSite=Lax",
            URL,
        )
        assert cookie.key == "sid"
        assert cookie.value == "abc123"
        assert cookie.domain == ".example.com"
        assert cookie.path == "/netypareo"
        assert cookie.max_age == 3600
        assert cookie.secure is True
        assert cookie.http_only is True
        assert cookie.same_site == "Lax"

    def test_defaults_from_request_url(self):
        """No Domain/Path: domain is the request host with a leading dot, path is /."""
        cookie = Cookie.parse("sid=abc", URL)
        assert cookie.domain == ".portal.example.com"
        assert cookie.path == "/"
        assert cookie.expires is None
        assert cookie.max_age is None

    def test_value_may_contain_equals(self):
        cookie = Cookie.parse("data=a=b=c; Path=/", URL)
        assert cookie.key == "data"
        assert cookie.value == "a=b=c"

    def test_expires_date(self):
        cookie = Cookie.parse("sid=abc; Expires=Wed, 21 Oct 2037 07:28:00 GMT", URL)
        assert cookie.expires == datetime(2037, 10, 21, 7, 28, tzinfo=timezone.utc)

    def test_invalid_attributes_are_dropped(self):
        cookie = Cookie.parse("sid=abc; Max-Age=soon; Expires=whenever; SameSite=Sometimes", URL)
        assert cookie.max_age is None
        assert cookie.expires is None
        assert cookie.same_site is None

    @pytest.mark.parametrize("header, url", [
        ("no-equals-sign", URL),
        ("", URL),
        ("sid=abc", "not a url"),
        ("sid=abc", "http://[bad"),
    ])
    def test_rejects(self, header, url):
        assert Cookie.parse(header, url) is None


# ====================================================================
# 2. Matching
# ====================================================================

class TestMatches:

    def test_domain_suffix(self):
        cookie = Cookie.parse("sid=abc; Domain=example.com", URL)
        assert cookie.matches("https://example.com/")
        assert cookie.matches("https://portal.example.com/")
        assert not cookie.matches("https://badexample.com/")
        assert not cookie.matches("https://example.org/")

    def test_path_prefix(self):
        cookie = Cookie.parse("sid=abc; Path=/netypareo", URL)
        assert cookie.matches("https://portal.example.com/netypareo/index.php")
        assert not cookie.matches("https://portal.example.com/other")

    def test_secure_needs_https(self):
        cookie = Cookie.parse("sid=abc; Secure", URL)
        assert cookie.matches("https://portal.example.com/")
        assert not cookie.matches("http://portal.example.com/")

    def test_unparseable_url(self):
        cookie = Cookie.parse("sid=abc", URL)
        assert not cookie.matches("/relative/only")


# ====================================================================
# 3. Expiry
# ====================================================================

class TestExpiry:

    def test_session_cookie_never_expires(self):
        assert not Cookie.parse("sid=abc", URL).is_expired()

    def test_max_age_zero(self):
        assert Cookie.parse("sid=abc; Max-Age=0", URL).is_expired()

    def test_max_age_elapsed(self):
        cookie = Cookie.parse("sid=abc; Max-Age=10", URL)
        cookie.creation = datetime.now(timezone.utc) - timedelta(seconds=11)
        assert cookie.is_expired()

    def test_max_age_wins_over_expires(self):
        cookie = Cookie.parse("sid=abc; Max-Age=3600; Expires=Thu, 01 Jan 1970 00:00:00 GMT", URL)
        assert not cookie.is_expired()

    def test_past_expires(self):
        assert Cookie.parse("sid=abc; Expires=Thu, 01 Jan 1970 00:00:00 GMT", URL).is_expired()

    def test_deleted_sentinel(self):
        assert Cookie.parse("sid=deleted", URL).is_expired()


# ====================================================================
# 4. CookieJar
# ====================================================================

class TestCookieJar:

    def test_one_cookie_per_identity(self):
        jar = CookieJar()
        jar.set_cookie("sid=first", URL)
        jar.set_cookie("sid=second", URL)
        jar.set_cookie("sid=other-path; Path=/netypareo", URL)
        assert len(jar) == 2
        assert jar.get_cookie_string(URL) in ("sid=second; sid=other-path", "sid=other-path; sid=second")

    def test_expired_set_cookie_deletes_existing(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc", URL)
        jar.set_cookie("sid=abc; Max-Age=0", URL)
        assert len(jar) == 0

    def test_unparseable_value_is_ignored(self):
        jar = CookieJar()
        jar.set_cookie("garbage", URL)
        jar.set_cookie("sid=abc", "http://[bad")
        assert len(jar) == 0

    def test_reads_sweep_expired_cookies(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc; Max-Age=10", URL)
        jar.get_all_cookies()[0].creation -= timedelta(seconds=30)
        assert jar.get_cookies(URL) == []
        assert len(jar) == 0

    def test_get_cookies_touches_last_accessed(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc", URL)
        cookie = jar.get_all_cookies()[0]
        cookie.last_accessed -= timedelta(hours=1)
        before = cookie.last_accessed
        jar.get_cookies(URL)
        assert cookie.last_accessed > before

    def test_only_matching_cookies_are_sent(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc", URL)
        jar.set_cookie("tracker=x", "https://ads.example.org/")
        assert jar.get_cookie_string(URL) == "sid=abc"
        assert jar.get_cookie_string("https://unrelated.test/") == ""

    def test_remove_and_has(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc", URL)
        cookie = jar.get_all_cookies()[0]
        assert jar.has_cookie(cookie)
        assert jar.has_cookie_by_key("sid", ".portal.example.com", "/")
        assert not jar.has_cookie_by_key("sid", ".portal.example.com", "/other")

        jar.remove_cookie_by_key("sid", ".portal.example.com")
        assert not jar.has_cookie(cookie)

        jar.set_cookie(cookie)
        jar.remove_cookie(cookie)
        assert len(jar) == 0

    def test_update_copies_live_cookies(self):
        source = CookieJar()
        source.set_cookie("sid=abc", URL)
        target = CookieJar()
        target.set_cookie("lang=fr", URL)
        target.update(source)
        assert sorted(c.key for c in target.get_all_cookies()) == ["lang", "sid"]

    def test_clear(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc", URL)
        jar.clear()
        assert len(jar) == 0


class TestJarPersistence:

    def test_serialized_record_shape(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc; HttpOnly; Max-Age=3600", URL)
        records = json.loads(jar.serialize())
        assert len(records) == 1
        record = records[0]
        assert record["key"] == "sid"
        assert record["domain"] == ".portal.example.com"
        assert record["maxAge"] == 3600
        assert record["httpOnly"] is True
        assert "expires" not in record
        assert record["creation"].endswith("Z")

    def test_restore_keeps_attributes_and_timestamps(self):
        jar = CookieJar()
        jar.set_cookie("sid=abc; Path=/netypareo; Secure; SameSite=Strict; Expires=Wed, 21 Oct 2037 07:28:00 GMT", URL)
        original = jar.get_all_cookies()[0]

        restored = CookieJar.deserialize(jar.serialize()).get_all_cookies()[0]
        assert restored.identity == original.identity
        assert restored.secure and restored.same_site == "Strict"
        assert restored.expires == original.expires
        assert restored.creation == original.creation

    def test_expired_records_are_dropped(self):
        records = [
            {
                "key": "old", "value": "1", "domain": ".portal.example.com", "path": "/",
                "expires": "2001-01-01T00:00:00.000Z",
                "creation": "2000-01-01T00:00:00.000Z", "lastAccessed": "2000-01-01T00:00:00.000Z",
            },
            {
                "key": "new", "value": "2", "domain": ".portal.example.com", "path": "/",
                "creation": "2000-01-01T00:00:00.000Z", "lastAccessed": "2000-01-01T00:00:00.000Z",
            },
        ]
        jar = CookieJar.deserialize(json.dumps(records))
        assert [c.key for c in jar.get_all_cookies()] == ["new"]

    @pytest.mark.parametrize("data", ["{not json", "42", '[{"value": "no key"}]', '[{"key": "k", "value": "v"}]'])
    def test_malformed_input_gives_empty_jar(self, data):
        assert len(CookieJar.deserialize(data)) == 0
