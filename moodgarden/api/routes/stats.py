import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from moodgarden.api.dependencies import get_settings
from moodgarden.api.schemas.stats import StatsResponse
from moodgarden.core.security import bearer_scheme
from moodgarden.core.security import decode_session_token
from moodgarden.core.security import extract_bearer_token
from moodgarden.db import get_db
from moodgarden.garden.calendar import MalformedCalendarError
from moodgarden.services.stats_service import GitHubAPIError
from moodgarden.services.stats_service import InvalidGitHubTokenError
from moodgarden.services.stats_service import UserNotFoundError
from moodgarden.services.stats_service import build_user_stats
from moodgarden.settings import Settings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/me", response_model=StatsResponse)
def get_my_stats(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> dict[str, object]:
    """Return streak stats and the refreshed plant for the session user."""

    token = extract_bearer_token(credentials)
    user_id = decode_session_token(token, settings.session_secret)

    try:
        return build_user_stats(
            db=db,
            user_id=user_id,
            graphql_url=settings.github_graphql_url,
            timezone_name=settings.garden_timezone,
            history_days=settings.history_days,
        )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="User not found") from exc
    except InvalidGitHubTokenError as exc:
        raise HTTPException(status_code=401, detail="GitHub token is invalid") from exc
    except GitHubAPIError as exc:
        logger.warning("GitHub request failed for user %d", user_id)
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc
    except MalformedCalendarError as exc:
        logger.error("Malformed contribution calendar for user %d: %s", user_id, exc)
        raise HTTPException(
            status_code=502, detail="GitHub contribution calendar is malformed"
        ) from exc
