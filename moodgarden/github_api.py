from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

import httpx


GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
OAUTH_SCOPE = "read:user user:email"
USER_AGENT = "mood-garden"

CONTRIBUTION_CALENDAR_QUERY = """
query {
  viewer {
    login
    contributionsCollection {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
          }
        }
      }
    }
  }
}
"""


def build_authorize_url(client_id: str, callback_url: str) -> str:
    """Return the GitHub OAuth authorize URL for the login redirect."""

    query = urlencode(
        {"client_id": client_id, "redirect_uri": callback_url, "scope": OAUTH_SCOPE}
    )
    return f"{GITHUB_AUTHORIZE_URL}?{query}"


def exchange_code_for_token(code: str, client_id: str, client_secret: str) -> str | None:
    """Exchange an OAuth callback code for a GitHub access token.

    Returns None when GitHub answers without an access token.
    """

    response = httpx.post(
        GITHUB_TOKEN_URL,
        json={
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
        },
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        timeout=15.0,
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub token response is invalid")

    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        return None
    return access_token


def fetch_authenticated_user(token: str) -> dict[str, str | int | None]:
    """Fetch basic profile data for the token owner from GitHub REST API."""

    response = httpx.get(
        GITHUB_USER_URL,
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        },
        timeout=15.0,
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub user response is invalid")

    raw_id = payload.get("id")
    raw_login = payload.get("login")
    if not isinstance(raw_id, int) or not isinstance(raw_login, str) or not raw_login:
        raise ValueError("GitHub user response is missing required fields")

    raw_avatar_url = payload.get("avatar_url")
    avatar_url = raw_avatar_url if isinstance(raw_avatar_url, str) else None

    return {"id": raw_id, "login": raw_login, "avatar_url": avatar_url}


def fetch_contribution_calendar(token: str, graphql_url: str) -> Mapping[str, Any]:
    """Fetch the raw contribution calendar of the token owner.

    The calendar is returned as received; shape validation happens when it is
    normalized.
    """

    if not token:
        raise ValueError("GitHub access token is required for GraphQL requests")

    response = httpx.post(
        graphql_url,
        json={"query": CONTRIBUTION_CALENDAR_QUERY},
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        },
        timeout=20.0,
    )
    response.raise_for_status()

    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")

    if payload.get("errors"):
        raise ValueError("GitHub GraphQL returned errors")

    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ValueError("GitHub GraphQL data is missing")

    viewer = data.get("viewer")
    if not isinstance(viewer, Mapping):
        raise ValueError("GitHub viewer is missing")

    collection = viewer.get("contributionsCollection")
    if not isinstance(collection, Mapping):
        raise ValueError("GitHub contributionsCollection is missing")

    calendar = collection.get("contributionCalendar")
    if not isinstance(calendar, Mapping):
        raise ValueError("GitHub contributionCalendar is missing")

    return calendar
