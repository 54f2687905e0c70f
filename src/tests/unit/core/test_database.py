"""Unit tests for engine creation, table setup and import-time configuration."""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import inspect

from settingstore.core import database
from settingstore.core.config import Settings
from settingstore.core.exceptions import DatabaseConnectionError

DB_URL = "sqlite+aiosqlite:///:memory:"
PROJECT_SRC = Path(__file__).resolve().parents[3]


@pytest.fixture(autouse=True)
async def _reset_engine():
    await database.close_db()
    yield
    await database.close_db()


@pytest.fixture
def use_settings(monkeypatch):
    """Point the database module at a specific Settings object."""

    def _use(**overrides) -> Settings:
        settings = Settings(_env_file=None, **overrides)
        monkeypatch.setattr(database, "get_settings_instance", lambda: settings)
        return settings

    return _use


def run_python(code: str, cwd: Path, **env_overrides: str) -> subprocess.CompletedProcess:
    env = {k: v for k, v in os.environ.items() if not k.startswith("SETTINGSTORE_")}
    env["PYTHONPATH"] = str(PROJECT_SRC)
    env.update(env_overrides)
    return subprocess.run([sys.executable, "-c", code], cwd=cwd, env=env, capture_output=True, text=True)


class TestDatabaseUrl:
    def test_database_url_is_optional(self, monkeypatch) -> None:
        monkeypatch.delenv("SETTINGSTORE_DATABASE_URL", raising=False)
        assert Settings(_env_file=None).database_url is None

    def test_engine_requires_database_url(self, monkeypatch, use_settings) -> None:
        monkeypatch.delenv("SETTINGSTORE_DATABASE_URL", raising=False)
        use_settings()

        with pytest.raises(DatabaseConnectionError) as exc_info:
            database.get_async_engine()

        assert exc_info.value.error_code == "DATABASE_CONNECTION_ERROR"
        assert "SETTINGSTORE_DATABASE_URL" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_check_fails_without_database_url(self, monkeypatch, use_settings) -> None:
        monkeypatch.delenv("SETTINGSTORE_DATABASE_URL", raising=False)
        use_settings()

        assert await database.check_db_connection() is False


class TestEngine:
    def test_engine_is_cached(self, use_settings) -> None:
        use_settings(SETTINGSTORE_DATABASE_URL=DB_URL)
        assert database.get_async_engine() is database.get_async_engine()

    @pytest.mark.asyncio
    async def test_connection_check(self, use_settings) -> None:
        use_settings(SETTINGSTORE_DATABASE_URL=DB_URL)
        assert await database.check_db_connection() is True

    @pytest.mark.asyncio
    async def test_init_db_creates_settings_table(self, use_settings) -> None:
        use_settings(SETTINGSTORE_DATABASE_URL=DB_URL)

        await database.init_db()

        async with database.get_async_engine().connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "settings" in tables

    @pytest.mark.asyncio
    async def test_close_db_drops_engine(self, use_settings) -> None:
        use_settings(SETTINGSTORE_DATABASE_URL=DB_URL)
        engine = database.get_async_engine()

        await database.close_db()

        assert database.get_async_engine() is not engine


class TestImportConfiguration:
    def test_package_imports_without_database_url(self, tmp_path) -> None:
        result = run_python(
            "import settingstore\n"
            "from settingstore.models import Setting\n"
            "print(Setting.__tablename__)",
            cwd=tmp_path,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "settings"

    def test_table_name_comes_from_environment(self, tmp_path) -> None:
        result = run_python(
            "from settingstore.models import Setting\n"
            "print(Setting.__tablename__)\n"
            "print(sorted(c.name for c in Setting.__table__.constraints if c.name))",
            cwd=tmp_path,
            SETTINGSTORE_TABLE_NAME="app_settings",
        )

        assert result.returncode == 0, result.stderr
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "app_settings"
        assert "uq_app_settings_group_key" in lines[1]
