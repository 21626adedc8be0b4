from collections.abc import Iterator
from datetime import date
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moodgarden.db import Base
from moodgarden.db import get_db
from moodgarden.main import create_app
from moodgarden.settings import Settings


TEST_SECRET = "test-session-secret"
TODAY = date(2026, 2, 20)


def build_calendar(newest_day: date, counts: list[int]) -> dict[str, object]:
    """Build a raw GitHub calendar whose days end at `newest_day`.

    `counts` is given newest first; days are laid out oldest first in weeks of
    seven, as GitHub returns them.
    """

    oldest_first = [
        {
            "date": (newest_day - timedelta(days=offset)).isoformat(),
            "contributionCount": count,
        }
        for offset, count in enumerate(counts)
    ][::-1]
    weeks = [
        {"contributionDays": oldest_first[index : index + 7]}
        for index in range(0, len(oldest_first), 7)
    ]
    return {"totalContributions": sum(counts), "weeks": weeks}


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    return sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        session_secret=TEST_SECRET,
        frontend_url="http://frontend.test",
        github_client_id="client-id",
        github_client_secret="client-secret",
        sentry_dsn=None,
    )


@pytest.fixture
def db_client(
    app_settings: Settings, session_factory: sessionmaker[Session]
) -> Iterator[TestClient]:
    app = create_app(app_settings)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
