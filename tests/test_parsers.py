"""Tests for parsers.py."""

from ypareo.parsers import extract_csrf_token, normalize_text, parse_user


class TestCsrfToken:

    def test_token_present(self):
        html = '<form><input type="hidden" name="token_csrf" value="abc123"></form>'
        assert extract_csrf_token(html) == "abc123"

    def test_token_absent(self):
        assert extract_csrf_token("<form><input name='login'></form>") is None
        assert extract_csrf_token("") is None
        assert extract_csrf_token(None) is None

    def test_empty_value(self):
        assert extract_csrf_token('<input name="token_csrf" value="">') is None


class TestParseUser:

    def test_full_name_ignores_child_elements(self):
        html = '<span class="user-info-label">\n  DUPONT   Jean <i class="badge">3</i></span>'
        user = parse_user(html, "jdupont")
        assert user.username == "jdupont"
        assert user.full_name == "DUPONT Jean"
        assert user.first_name == "DUPONT"
        assert user.last_name == "Jean"

    def test_registrations_from_select(self):
        html = """
        <select name="codeInscription">
          <option value="1234567">BTS SIO (2024-2025)</option>
          <option value="1234567">BTS SIO (2024-2025)</option>
          <option value="0">Choose</option>
        </select>
        """
        user = parse_user(html, "jdupont")
        assert len(user.registrations) == 1
        reg = user.default_registration
        assert reg.code == 1234567
        assert reg.year == "2024-2025"

    def test_registrations_from_links(self):
        html = """
        <div class="block">
          <div class="block-toolbar"><h3>Licence Pro (2025-2026)</h3></div>
          <a href="/index.php/apprenant/bulletin/7000001/7654321/">Bulletin</a>
        </div>
        """
        user = parse_user(html, "jdupont")
        assert [(r.code, r.name, r.year) for r in user.registrations] == [
            (7654321, "Licence Pro (2025-2026)", "2025-2026"),
        ]

    def test_learner_code_fallback(self):
        html = "<script>var codeApprenant = 42;</script>"
        user = parse_user(html, "jdupont")
        assert user.registrations[0].code == 42
        assert user.registrations[0].name == "Inscription 42"

    def test_anonymous_page(self):
        user = parse_user("<html></html>", "jdupont")
        assert user.full_name is None
        assert user.registrations == []
        assert str(user) == "jdupont"


def test_normalize_text():
    assert normalize_text("  a \n\t b  ") == "a b"
    assert normalize_text("") is None
