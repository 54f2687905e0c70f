"""
Shared pytest fixtures and path setup for unit tests.
"""

import os
import sys
from pathlib import Path

# Point global settings at an in-memory database before any settingstore imports.
# These are test-only defaults.
os.environ.setdefault("SETTINGSTORE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Add src to sys.path so settingstore.* imports work when running pytest from the repo root.
PROJECT_SRC = Path(__file__).resolve().parents[2]
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from settingstore.core.cache import SettingsCache
from settingstore.core.cache_backend import InMemoryCacheBackend
from settingstore.core.config import Settings
from settingstore.models import Base


@pytest.fixture
def store_settings() -> Settings:
    """Settings with the store defaults (cache forever, UTC)."""
    return Settings(SETTINGSTORE_DATABASE_URL="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def db_session():
    """Provide a session on a fresh in-memory SQLite database."""
    # StaticPool keeps every checkout on the one in-memory connection
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_local = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_local() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def inmemory_backend() -> InMemoryCacheBackend:
    """Provide a fresh InMemoryCacheBackend for each test."""
    return InMemoryCacheBackend(cleanup_interval_seconds=0)  # Disable periodic cleanup for tests


@pytest.fixture
def settings_cache(inmemory_backend: InMemoryCacheBackend) -> SettingsCache:
    return SettingsCache(inmemory_backend)
