"""
Pytest configuration and shared fixtures for tests
"""

from datetime import datetime, timedelta

import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from src import db_models  # noqa: F401  registers tables
from src.database import create_db_engine
from src.policy import RoleFeaturePolicy
from src.repositories import UserRepository, EventRepository


@pytest.fixture(name="db_engine")
def db_engine_fixture():
    """Create in-memory SQLite database engine for testing"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Keep single connection for in-memory DB
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="db_session")
def db_session_fixture(db_engine):
    """Create database session for testing"""
    with Session(db_engine) as session:
        yield session
        session.rollback()  # Rollback any uncommitted changes after test


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """File-backed SQLite engine; each thread gets its own connection"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}", busy_timeout=30)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="policy")
def policy_fixture():
    """Policy with the default free tier limit of 5"""
    return RoleFeaturePolicy(free_tier_limit=5)


@pytest.fixture(name="make_user")
def make_user_fixture(db_session):
    """Factory creating users in the test session"""

    def _make_user(user_id, role="user"):
        return UserRepository(db_session).create_user(
            user_id=user_id, email=f"user{user_id}@example.com", role=role
        )

    return _make_user


@pytest.fixture(name="make_event")
def make_event_fixture(db_session, make_user):
    """Factory creating events organised by user 1"""
    repo = UserRepository(db_session)
    if repo.get_user(1) is None:
        make_user(1, role="admin")

    def _make_event(max_attendees=None, title="Meetup", days_ahead=7, category="other"):
        return EventRepository(db_session).create_event(
            organizer_id=1,
            title=title,
            date=datetime.utcnow() + timedelta(days=days_ahead),
            max_attendees=max_attendees,
            category=category,
        )

    return _make_event
