"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures and configuration for all tests.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

# Add the project root directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.utils import setup_test_environment

setup_test_environment()

from toolkit.models.base import Base
from toolkit.repositories.base import Repository
from toolkit.repositories.factory import get_repository_factory
from toolkit.utils.config import get_settings
from toolkit.utils.database import get_engine, get_session_local, init_db
from tests.fixtures.models import Users

@pytest.fixture(scope="session")
def engine():
    """In-memory SQLite engine with every test table created."""
    engine = get_engine("sqlite://")
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return get_session_local(engine)

@pytest.fixture
def db_session(engine, session_factory) -> Session:
    """Create a fresh database session and empty every table afterwards."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())

@pytest.fixture
def mock_session():
    """Session stand-in for tests that never reach the database."""
    session = MagicMock(spec=Session)
    session.info = {}
    session.in_transaction.return_value = False
    return session

@pytest.fixture
def user_repository(db_session) -> Repository:
    """Generic repository for the Users model."""
    return Repository(db_session, Users)

@pytest.fixture
def seeded_users(user_repository):
    """Four users spread over statuses and types."""
    rows = [
        {"email": "a@x.com", "display_name": "Ada", "status": "active", "type": "user"},
        {"email": "b@x.com", "display_name": "Bob", "status": "pending", "type": "user"},
        {"email": "c@x.com", "display_name": "Cy", "status": "active", "type": "admin"},
        {"email": "d@x.com", "display_name": "Di", "status": "inactive", "type": "user", "is_active": False},
    ]
    return {row["email"]: user_repository.create(row) for row in rows}

@pytest.fixture
def clean_caches():
    """Reset cached settings and the default repository factory."""
    get_settings.cache_clear()
    get_repository_factory.cache_clear()
    yield
    get_settings.cache_clear()
    get_repository_factory.cache_clear()
