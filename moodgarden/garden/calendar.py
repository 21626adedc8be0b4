"""Flatten a GitHub contribution calendar into a date-descending series.

The provider nests days inside weeks. Everything downstream wants a flat,
newest-first list of `ContributionDay` items, so the raw payload is validated
here once and any shape problem surfaces as `MalformedCalendarError`.
"""

from collections.abc import Mapping
from collections.abc import Sequence
from datetime import date
from typing import Annotated
from typing import Any

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import StrictInt
from pydantic import ValidationError


class MalformedCalendarError(ValueError):
    """Raised when the raw contribution calendar has an unexpected shape."""


def parse_iso_day(value: object) -> date:
    """Accept only `YYYY-MM-DD` strings as calendar dates."""

    if not isinstance(value, str):
        raise ValueError("date must be an ISO string")

    parsed_day = date.fromisoformat(value)
    if parsed_day.isoformat() != value:
        raise ValueError("date must use the YYYY-MM-DD form")
    return parsed_day


IsoDay = Annotated[date, BeforeValidator(parse_iso_day)]


class ContributionDay(BaseModel):
    """Single normalized calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(ge=0)


class RawContributionDay(BaseModel):
    """Day record as reported by the GitHub GraphQL API."""

    date: IsoDay
    contribution_count: StrictInt = Field(alias="contributionCount", ge=0)


class ContributionWeek(BaseModel):
    contribution_days: list[RawContributionDay] = Field(alias="contributionDays")


class ContributionCalendar(BaseModel):
    """Validated `contributionCalendar` object."""

    total_contributions: int | None = Field(default=None, alias="totalContributions")
    weeks: list[ContributionWeek]


def parse_calendar(raw_calendar: Mapping[str, Any]) -> ContributionCalendar:
    """Validate a raw calendar mapping into typed models."""

    if not isinstance(raw_calendar, Mapping):
        raise MalformedCalendarError("contribution calendar must be an object")

    try:
        return ContributionCalendar.model_validate(raw_calendar)
    except ValidationError as exc:
        raise MalformedCalendarError(
            f"contribution calendar is malformed: {exc.error_count()} error(s)"
        ) from exc


def normalize_calendar(raw_calendar: Mapping[str, Any]) -> list[ContributionDay]:
    """Return calendar days flattened and sorted newest first.

    Raises:
        MalformedCalendarError: If the payload shape is invalid or the same
            date appears more than once.
    """

    calendar = parse_calendar(raw_calendar)

    days_by_date: dict[date, ContributionDay] = {}
    for week in calendar.weeks:
        for item in week.contribution_days:
            if item.date in days_by_date:
                raise MalformedCalendarError(
                    f"duplicate contribution date: {item.date.isoformat()}"
                )
            days_by_date[item.date] = ContributionDay(
                date=item.date, count=item.contribution_count
            )

    return [days_by_date[day] for day in sorted(days_by_date, reverse=True)]


def total_contributions(days: Sequence[ContributionDay]) -> int:
    return sum(day.count for day in days)


def recent_history(
    days: Sequence[ContributionDay], limit: int = 30
) -> list[ContributionDay]:
    """Return the newest `limit` days of a date-descending series."""

    return list(days[: max(0, limit)])
