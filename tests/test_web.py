"""Tests for locale path helpers, the login redirect middleware and password hashing."""

import pytest
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.testclient import TestClient

from boardroom.core.locale import localize_path, split_locale, switch_locale
from boardroom.core.middleware import LoginRedirectMiddleware
from boardroom.core.security import BcryptPasswordHasher, verify_password


# =============================================================================
# LOCALE
# =============================================================================


class TestLocale:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/", "/ru"),
            ("/organizations", "/ru/organizations"),
            ("/en/organizations", "/en/organizations"),
            ("/ru", "/ru"),
            ("/english", "/ru/english"),
        ],
    )
    def test_localize_path(self, path, expected):
        assert localize_path(path) == expected

    def test_localize_path_with_locale(self):
        assert localize_path("/login", "en") == "/en/login"

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/ru/organizations/1", "/en/organizations/1"),
            ("/en", "/en"),
            ("/organizations", "/en/organizations"),
            # Only the leading prefix is replaced
            ("/ru/docs/ru/page", "/en/docs/ru/page"),
        ],
    )
    def test_switch_locale(self, path, expected):
        assert switch_locale(path, "en") == expected

    def test_switch_to_unknown_locale(self):
        with pytest.raises(ValueError):
            switch_locale("/ru/x", "de")

    def test_split_locale(self):
        assert split_locale("/en/boards") == ("en", "/boards")
        assert split_locale("/boards") == (None, "/boards")


# =============================================================================
# LOGIN REDIRECT
# =============================================================================


def _app(valid_sessions: set[str]) -> FastAPI:
    async def checker(session_id: str) -> bool:
        return session_id in valid_sessions

    app = FastAPI()
    app.add_middleware(LoginRedirectMiddleware, session_checker=checker)

    @app.get("/{path:path}", response_class=HTMLResponse)
    async def page(path: str):
        return "<html>ok</html>"

    return app


HTML = {"accept": "text/html,application/xhtml+xml"}


class TestLoginRedirect:
    def test_page_without_session_redirects_to_login(self):
        client = TestClient(_app(set()))

        response = client.get("/en/organizations", headers=HTML, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/en/login?redirect=%2Fen%2Forganizations"

    def test_unprefixed_page_uses_default_locale(self):
        client = TestClient(_app(set()))

        response = client.get("/dashboard", headers=HTML, follow_redirects=False)

        assert response.headers["location"].startswith("/ru/login?")

    def test_valid_session_passes(self):
        client = TestClient(_app({"good"}), cookies={"session": "good"})

        response = client.get("/ru/organizations", headers=HTML, follow_redirects=False)

        assert response.status_code == 200

    def test_unknown_session_redirects(self):
        client = TestClient(_app({"good"}), cookies={"session": "stale"})

        response = client.get("/ru/organizations", headers=HTML, follow_redirects=False)

        assert response.status_code == 307

    @pytest.mark.parametrize("path", ["/", "/ru", "/en/login", "/ru/register"])
    def test_public_pages(self, path):
        client = TestClient(_app(set()))

        response = client.get(path, headers=HTML, follow_redirects=False)

        assert response.status_code == 200

    def test_api_and_non_html_requests_pass(self):
        client = TestClient(_app(set()))

        assert client.get("/api/v1/me", headers=HTML, follow_redirects=False).status_code == 200
        assert client.get("/ru/organizations", headers={"accept": "application/json"}).status_code == 200


# =============================================================================
# PASSWORD HASHING
# =============================================================================


class TestBcryptPasswordHasher:
    async def test_hash_and_verify(self):
        hasher = BcryptPasswordHasher()

        password_hash = await hasher.hash("password123")

        assert password_hash != "password123"
        assert password_hash.startswith("$2")
        assert await hasher.verify("password123", password_hash)
        assert not await hasher.verify("password124", password_hash)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("password123", "not-a-hash") is False
