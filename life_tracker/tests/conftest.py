"""
Shared fixtures: in-memory SQLite session, seeded achievement catalog and
a user with an empty player profile.
"""
import os

os.environ.setdefault("LIFE_TRACKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("LIFE_TRACKER_API_KEY", "test-api-key")
os.environ.setdefault("LIFE_TRACKER_LOG_DIR", "./logs")

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from life_tracker.database import Base
from life_tracker import models  # noqa: F401
from life_tracker.repositories.user_repository import UserRepository
from life_tracker.seed import seed_achievements


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seeded_db(db_session):
    seed_achievements(db_session)
    return db_session


@pytest.fixture
def user(seeded_db):
    return UserRepository.create(seeded_db, "Test User", "test@example.com")


@pytest.fixture
def today():
    return date(2026, 3, 15)
