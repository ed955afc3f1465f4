"""
Integration tests for the /auth endpoints, including the Google OAuth flow
with the SSO client mocked out.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from fastapi.responses import RedirectResponse

from app.api.endpoints.auth import get_google_sso
from app.core.config import settings
from app.main import app
from app.models.user import User
from tests.async_test_utils import AsyncDatabaseTestUtils


def _mock_google_sso(google_user=None, error=None):
    sso = MagicMock()
    sso.__aenter__ = AsyncMock(return_value=sso)
    sso.__aexit__ = AsyncMock(return_value=None)
    sso.get_login_redirect = AsyncMock(
        return_value=RedirectResponse("https://accounts.google.com/o/oauth2/v2/auth?client_id=test")
    )
    sso.verify_and_process = AsyncMock(return_value=google_user, side_effect=error)
    return sso


@pytest.fixture
def use_google_sso():
    """Install a mocked Google SSO client for the duration of a test."""
    def install(sso):
        app.dependency_overrides[get_google_sso] = lambda: sso
        return sso
    yield install
    app.dependency_overrides.pop(get_google_sso, None)


def _callback_params(response):
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == f"{settings.FRONTEND_URL}/auth/callback"
    return {key: values[0] for key, values in parse_qs(location.query).items()}


def _token_subject(token):
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])["sub"]


class TestRegister:
    async def test_register_returns_token_and_sanitized_user(self, async_client):
        response = await async_client.post(
            "/auth/register", json={"email": "new@example.com", "password": "password123"}
        )

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"accessToken", "user"}
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["authProvider"] == "local"
        assert set(body["user"]) == {
            "id", "email", "name", "profilePicture", "authProvider", "createdAt", "updatedAt"
        }
        assert _token_subject(body["accessToken"]) == body["user"]["id"]

    async def test_duplicate_email_conflicts(self, async_client, async_db_session):
        payload = {"email": "dup@example.com", "password": "password123"}
        await async_client.post("/auth/register", json=payload)

        response = await async_client.post("/auth/register", json=payload)

        assert response.status_code == 409
        body = response.json()
        assert body["statusCode"] == 409
        assert body["message"] == "Email already registered"
        assert body["path"] == "/auth/register"
        assert "timestamp" in body
        await AsyncDatabaseTestUtils(async_db_session).assert_record_count(User, 1, email="dup@example.com")

    @pytest.mark.parametrize("payload", [
        {"email": "not-an-email", "password": "password123"},
        {"email": "short@example.com", "password": "short"},
        {"email": "missing-password@example.com"},
    ])
    async def test_invalid_payload_is_rejected(self, async_client, payload):
        response = await async_client.post("/auth/register", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["statusCode"] == 400
        assert isinstance(body["message"], list) and body["message"]


class TestLogin:
    async def test_login_after_register(self, async_client):
        await async_client.post("/auth/register", json={"email": "me@example.com", "password": "password123"})

        response = await async_client.post("/auth/login", json={"email": "me@example.com", "password": "password123"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "me@example.com"

    async def test_wrong_password_is_unauthorized(self, async_client, test_user):
        response = await async_client.post(
            "/auth/login", json={"email": test_user.email, "password": "not-the-password"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    async def test_oauth_only_account_cannot_password_login(self, async_client, factory):
        await factory.create_oauth_user(email="oauth-only@example.com")

        response = await async_client.post(
            "/auth/login", json={"email": "oauth-only@example.com", "password": "password123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestGoogleLogin:
    async def test_unconfigured_google_is_unavailable(self, async_client, use_google_sso):
        use_google_sso(None)

        response = await async_client.get("/auth/google")

        assert response.status_code == 503

    async def test_redirects_to_google(self, async_client, use_google_sso):
        sso = use_google_sso(_mock_google_sso())

        response = await async_client.get("/auth/google")

        assert response.status_code == 307
        assert response.headers["location"].startswith("https://accounts.google.com/")
        sso.get_login_redirect.assert_awaited_once()

    async def test_callback_creates_user_and_redirects_with_token(self, async_client, async_db_session, use_google_sso):
        use_google_sso(_mock_google_sso(SimpleNamespace(
            id="google-42", email="g@example.com", display_name="G User", picture="https://img/g.png"
        )))

        response = await async_client.get("/auth/google/callback?code=abc&state=xyz")

        params = _callback_params(response)
        assert "token" in params
        user = await AsyncDatabaseTestUtils(async_db_session).get_record_by_field(User, "email", "g@example.com")
        assert user is not None
        assert user.hashed_password is None
        assert _token_subject(params["token"]) == str(user.id)

    async def test_callback_without_display_name_uses_email_as_name(
        self, async_client, async_db_session, use_google_sso
    ):
        use_google_sso(_mock_google_sso(SimpleNamespace(
            id="google-44", email="plain@example.com", display_name=None, picture=None
        )))

        response = await async_client.get("/auth/google/callback?code=abc")

        assert "token" in _callback_params(response)
        user = await AsyncDatabaseTestUtils(async_db_session).get_record_by_field(User, "email", "plain@example.com")
        assert user.name == "plain@example.com"

    async def test_callback_without_email_redirects_with_error(self, async_client, use_google_sso):
        use_google_sso(_mock_google_sso(SimpleNamespace(id="google-43", email=None, display_name=None, picture=None)))

        response = await async_client.get("/auth/google/callback?code=abc")

        params = _callback_params(response)
        assert "token" not in params
        assert params["error"]

    async def test_callback_failure_redirects_with_error(self, async_client, use_google_sso):
        use_google_sso(_mock_google_sso(error=RuntimeError("state mismatch")))

        response = await async_client.get("/auth/google/callback?code=abc")

        assert _callback_params(response) == {"error": "authentication_failed"}

    async def test_linking_keeps_password_login_and_identity(self, async_client, use_google_sso):
        registered = await async_client.post(
            "/auth/register", json={"email": "both@example.com", "password": "password123"}
        )
        user_id = registered.json()["user"]["id"]
        use_google_sso(_mock_google_sso(SimpleNamespace(
            id="google-77", email="both@example.com", display_name="Both", picture=None
        )))

        first = _callback_params(await async_client.get("/auth/google/callback?code=one"))
        password_login = await async_client.post(
            "/auth/login", json={"email": "both@example.com", "password": "password123"}
        )
        second = _callback_params(await async_client.get("/auth/google/callback?code=two"))

        assert _token_subject(first["token"]) == user_id
        assert password_login.status_code == 200
        assert password_login.json()["user"]["id"] == user_id
        assert password_login.json()["user"]["authProvider"] == "google"
        assert _token_subject(second["token"]) == user_id
