import logging
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moodgarden.api.dependencies import get_settings
from moodgarden.core.security import issue_session_token
from moodgarden.db import get_db
from moodgarden.github_api import build_authorize_url
from moodgarden.github_api import exchange_code_for_token
from moodgarden.github_api import fetch_authenticated_user
from moodgarden.services.user_service import find_or_create_user
from moodgarden.settings import Settings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.get("/github")
def github_login(settings: Settings = Depends(get_settings)) -> RedirectResponse:
    """Redirect the browser to the GitHub OAuth consent page."""

    return RedirectResponse(
        build_authorize_url(settings.github_client_id, settings.github_callback_url)
    )


@router.get("/github/callback")
def github_callback(
    code: str | None = None,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    """Finish the OAuth flow and hand a session token to the frontend."""

    if not code:
        raise HTTPException(status_code=400, detail="No code provided")

    try:
        access_token = exchange_code_for_token(
            code=code,
            client_id=settings.github_client_id,
            client_secret=settings.github_client_secret,
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("GitHub token exchange failed")
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    if access_token is None:
        raise HTTPException(
            status_code=401, detail="Failed to obtain access token from GitHub"
        )

    try:
        profile = fetch_authenticated_user(access_token)
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("GitHub profile fetch failed")
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    try:
        user = find_or_create_user(db, profile, access_token)
    except IntegrityError as exc:
        db.rollback()
        logger.exception("Concurrent signup for GitHub user %s", profile.get("id"))
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    session_token = issue_session_token(
        user_id=user.id,
        username=user.username,
        secret=settings.session_secret,
        valid_days=settings.session_token_days,
    )
    logger.info("User %s logged in", user.username)

    return RedirectResponse(
        f"{settings.frontend_url}?{urlencode({'token': session_token})}"
    )
