"""Current streak counting over a newest-first contribution series."""

from collections.abc import Iterable
from datetime import date
from datetime import datetime
from datetime import UTC
from zoneinfo import ZoneInfo

from moodgarden.garden.calendar import ContributionDay


def reference_today(timezone_name: str = "UTC", now: datetime | None = None) -> date:
    """Return the calendar date of `now` in the configured timezone."""

    current = now or datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    return current.astimezone(ZoneInfo(timezone_name)).date()


def calculate_streak(days: Iterable[ContributionDay], today: date) -> int:
    """Count consecutive active days ending today or yesterday.

    `days` must be ordered newest first. Entries after `today` are ignored,
    and an empty `today` does not break the streak because the day is still
    in progress. The first zero-count day before `today` ends the walk.
    """

    streak = 0
    for day in days:
        if day.date > today:
            continue

        if day.count > 0:
            streak += 1
            continue

        if day.date == today:
            continue

        break

    return streak
