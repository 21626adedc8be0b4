import logging

import httpx
from sqlalchemy.orm import Session

from moodgarden.garden.calendar import normalize_calendar
from moodgarden.garden.calendar import recent_history
from moodgarden.garden.calendar import total_contributions
from moodgarden.garden.plant import derive_garden_state
from moodgarden.garden.streak import calculate_streak
from moodgarden.garden.streak import reference_today
from moodgarden.github_api import fetch_contribution_calendar
from moodgarden.services.user_service import get_user_by_id
from moodgarden.services.user_service import save_garden_state


logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Raised when the session points to a user that no longer exists."""


class InvalidGitHubTokenError(Exception):
    """Raised when GitHub rejects the stored access token."""


class GitHubAPIError(Exception):
    """Raised when GitHub requests fail for non-auth reasons."""


def build_user_stats(
    db: Session,
    user_id: int,
    graphql_url: str,
    timezone_name: str = "UTC",
    history_days: int = 30,
) -> dict[str, object]:
    """Refresh the user's plant from live GitHub data and build the payload.

    Raises:
        UserNotFoundError: If no user has `user_id`.
        InvalidGitHubTokenError: If GitHub answers 401 or 403.
        GitHubAPIError: If the GitHub request fails otherwise.
        MalformedCalendarError: If the calendar cannot be normalized.
    """

    user = get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    try:
        raw_calendar = fetch_contribution_calendar(
            token=user.access_token or "",
            graphql_url=graphql_url,
        )
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code in {401, 403}:
            raise InvalidGitHubTokenError from exc
        raise GitHubAPIError from exc
    except Exception as exc:
        raise GitHubAPIError from exc

    days = normalize_calendar(raw_calendar)
    today = reference_today(timezone_name)
    streak = calculate_streak(days, today)
    state = derive_garden_state(streak)
    logger.info(
        "User %s streak=%d stage=%s health=%d",
        user.username,
        streak,
        state.stage.value,
        state.health,
    )

    plant = save_garden_state(db, user.id, state)

    return {
        "user": {"username": user.username, "avatar_url": user.avatar_url},
        "stats": {
            "streak": streak,
            "totalContributions": total_contributions(days),
        },
        "plant": {
            "type": plant.type,
            "stage": plant.stage,
            "health": plant.health,
            "last_updated": plant.last_updated,
        },
        "contributionHistory": [
            {"date": day.date, "count": day.count}
            for day in recent_history(days, history_days)
        ],
    }
