from collections.abc import Mapping
from datetime import datetime
from datetime import UTC
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from moodgarden.garden.plant import DEFAULT_HEALTH
from moodgarden.garden.plant import DEFAULT_PLANT_TYPE
from moodgarden.garden.plant import GardenState
from moodgarden.garden.plant import PlantStage
from moodgarden.models import Plant
from moodgarden.models import User


def find_or_create_user(
    db: Session, profile: Mapping[str, Any], access_token: str
) -> User:
    """Upsert a user from a GitHub profile.

    Existing users get their token and avatar refreshed. New users start with
    a default seedling plant.
    """

    github_id = str(profile["id"])
    user = db.scalar(select(User).where(User.github_id == github_id))

    if user is not None:
        user.access_token = access_token
        user.avatar_url = profile.get("avatar_url")
        db.commit()
        db.refresh(user)
        return user

    user = User(
        github_id=github_id,
        username=str(profile["login"]),
        avatar_url=profile.get("avatar_url"),
        access_token=access_token,
    )
    db.add(user)
    db.flush()
    db.add(
        Plant(
            user_id=user.id,
            type=DEFAULT_PLANT_TYPE,
            stage=PlantStage.SEEDLING.value,
            health=DEFAULT_HEALTH,
        )
    )
    db.commit()
    db.refresh(user)
    return user


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def save_garden_state(db: Session, user_id: int, state: GardenState) -> Plant:
    """Overwrite the stored plant stage and health for a user."""

    plant = db.scalar(select(Plant).where(Plant.user_id == user_id))
    if plant is None:
        plant = Plant(user_id=user_id, type=DEFAULT_PLANT_TYPE)
        db.add(plant)

    plant.stage = state.stage.value
    plant.health = state.health
    plant.last_updated = datetime.now(UTC)
    db.commit()
    db.refresh(plant)
    return plant
