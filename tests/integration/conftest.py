"""Pytest configuration for tests against a real PostgreSQL database."""

import os

import pytest
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from lokkatha.api.config import require_database_url  # noqa: E402
from lokkatha.api.database.analytics_repository import AnalyticsRepository  # noqa: E402
from lokkatha.api.database.db import Database  # noqa: E402
from lokkatha.api.database.tale_repository import TaleRepository  # noqa: E402
from lokkatha.api.database.user_repository import UserRepository  # noqa: E402


@pytest.fixture(scope="session")
def postgres_url():
    """Connection target for the throwaway test database."""
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL not set")
    return require_database_url(url)


@pytest.fixture
async def database(postgres_url):
    """A connected Database with empty tables."""
    db = Database(postgres_url, min_size=1, max_size=5)
    pool = await db.connect()
    await pool.execute("TRUNCATE users, tales, analytics")
    yield db
    await db.close()


@pytest.fixture
def users(database):
    return UserRepository(database)


@pytest.fixture
def analytics(database):
    return AnalyticsRepository(database)


@pytest.fixture
def tales(database, analytics):
    return TaleRepository(database, analytics)
