import logging
from enum import StrEnum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


logger = logging.getLogger(__name__)

DEFAULT_PLANT_TYPE = "sunflower"
DEFAULT_HEALTH = 100
WILTED_HEALTH = 30


class PlantStage(StrEnum):
    SEEDLING = "seedling"
    GROWING = "growing"
    BLOOMING = "blooming"
    LEGENDARY = "legendary"
    WILTED = "wilted"


class GardenState(BaseModel):
    """Derived plant stage and health for one streak value."""

    model_config = ConfigDict(frozen=True)

    stage: PlantStage
    health: int = Field(ge=0, le=100)


def seedling_health(streak: int) -> int:
    return min(100, 50 + streak * 10)


def derive_garden_state(streak: int) -> GardenState:
    """Map a streak to a plant stage and health score.

    Thresholds are checked in order and the first match wins:

    - 0 days: wilted, health 30
    - 1-3 days: seedling, health 50 + 10 per day
    - 4-7 days: growing
    - 8-14 days: blooming
    - 15+ days: legendary
    """

    if streak < 0:
        logger.warning("Negative streak %d clamped to 0", streak)
        streak = 0

    if streak == 0:
        return GardenState(stage=PlantStage.WILTED, health=WILTED_HEALTH)
    if streak < 4:
        return GardenState(stage=PlantStage.SEEDLING, health=seedling_health(streak))
    if streak < 8:
        return GardenState(stage=PlantStage.GROWING, health=DEFAULT_HEALTH)
    if streak < 15:
        return GardenState(stage=PlantStage.BLOOMING, health=DEFAULT_HEALTH)
    return GardenState(stage=PlantStage.LEGENDARY, health=DEFAULT_HEALTH)
