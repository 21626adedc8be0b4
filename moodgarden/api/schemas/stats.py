from datetime import date
from datetime import datetime

from pydantic import BaseModel

from moodgarden.garden.plant import PlantStage


class UserSummary(BaseModel):
    """Public identity of the logged-in GitHub user."""

    username: str
    avatar_url: str | None = None


class StreakStats(BaseModel):
    """Streak and contribution totals for the fetched window."""

    streak: int
    totalContributions: int


class PlantState(BaseModel):
    """Persisted plant after the latest derivation."""

    type: str
    stage: PlantStage
    health: int
    last_updated: datetime


class HistoryDay(BaseModel):
    date: date
    count: int


class StatsResponse(BaseModel):
    """Garden payload returned by GET /api/me."""

    user: UserSummary
    stats: StreakStats
    plant: PlantState
    contributionHistory: list[HistoryDay]
