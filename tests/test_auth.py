from urllib.parse import parse_qs
from urllib.parse import urlparse

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moodgarden.core.security import decode_session_token
from moodgarden.models import Plant
from moodgarden.models import User
from tests.conftest import TEST_SECRET


def test_github_login_redirects_to_authorize_url(db_client: TestClient) -> None:
    response = db_client.get("/auth/github", follow_redirects=False)

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.netloc == "github.com"
    assert location.path == "/login/oauth/authorize"
    assert parse_qs(location.query) == {
        "client_id": ["client-id"],
        "redirect_uri": ["http://localhost:8000/auth/github/callback"],
        "scope": ["read:user user:email"],
    }


def test_github_callback_requires_code(db_client: TestClient) -> None:
    response = db_client.get("/auth/github/callback", follow_redirects=False)

    assert response.status_code == 400
    assert response.json() == {"detail": "No code provided"}


def test_github_callback_creates_user_and_redirects_with_session_token(
    monkeypatch: pytest.MonkeyPatch, db_client: TestClient, db_session: Session
) -> None:
    def fake_exchange(code: str, client_id: str, client_secret: str) -> str:
        assert (code, client_id, client_secret) == (
            "oauth-code",
            "client-id",
            "client-secret",
        )
        return "gho_fresh"

    def fake_fetch_user(token: str) -> dict[str, str | int]:
        assert token == "gho_fresh"
        return {"id": 583231, "login": "octocat", "avatar_url": "https://a.test/o"}

    monkeypatch.setattr(
        "moodgarden.api.routes.auth.exchange_code_for_token", fake_exchange
    )
    monkeypatch.setattr(
        "moodgarden.api.routes.auth.fetch_authenticated_user", fake_fetch_user
    )

    response = db_client.get(
        "/auth/github/callback?code=oauth-code", follow_redirects=False
    )

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}" == "http://frontend.test"
    token = parse_qs(location.query)["token"][0]

    user = db_session.scalars(select(User)).one()
    assert decode_session_token(token, TEST_SECRET) == user.id
    assert user.github_id == "583231"
    assert user.access_token == "gho_fresh"

    plant = db_session.scalars(select(Plant)).one()
    assert (plant.type, plant.stage, plant.health) == ("sunflower", "seedling", 100)


def test_github_callback_returns_401_without_access_token(
    monkeypatch: pytest.MonkeyPatch, db_client: TestClient
) -> None:
    monkeypatch.setattr(
        "moodgarden.api.routes.auth.exchange_code_for_token",
        lambda code, client_id, client_secret: None,
    )

    response = db_client.get("/auth/github/callback?code=bad", follow_redirects=False)

    assert response.status_code == 401
    assert response.json() == {"detail": "Failed to obtain access token from GitHub"}


def test_github_callback_returns_500_when_github_fails(
    monkeypatch: pytest.MonkeyPatch, db_client: TestClient
) -> None:
    def fake_exchange(code: str, client_id: str, client_secret: str) -> str:
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(
        "moodgarden.api.routes.auth.exchange_code_for_token", fake_exchange
    )

    response = db_client.get("/auth/github/callback?code=x", follow_redirects=False)

    assert response.status_code == 500
    assert response.json() == {"detail": "Authentication failed"}


def test_github_callback_returns_500_when_signup_races(
    monkeypatch: pytest.MonkeyPatch, db_client: TestClient
) -> None:
    """A duplicate github_id insert fails the login cleanly."""

    def fake_find_or_create_user(db, profile, access_token):
        raise IntegrityError(
            "INSERT INTO users", {}, Exception("UNIQUE constraint failed")
        )

    monkeypatch.setattr(
        "moodgarden.api.routes.auth.exchange_code_for_token",
        lambda code, client_id, client_secret: "gho_fresh",
    )
    monkeypatch.setattr(
        "moodgarden.api.routes.auth.fetch_authenticated_user",
        lambda token: {"id": 583231, "login": "octocat", "avatar_url": None},
    )
    monkeypatch.setattr(
        "moodgarden.api.routes.auth.find_or_create_user", fake_find_or_create_user
    )

    response = db_client.get("/auth/github/callback?code=x", follow_redirects=False)

    assert response.status_code == 500
    assert response.json() == {"detail": "Authentication failed"}
