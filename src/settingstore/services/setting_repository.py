"""
Persistence helpers for the settings table.

Rows are addressed by ``(group, key)`` and written with an upsert so that
concurrent writers resolve to last-writer-wins on the unique constraint.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.setting import Setting

# Dialects with native INSERT ... ON CONFLICT DO UPDATE
_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SettingRepository:
    """Reads and writes Setting rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, group: str, key: str) -> Optional[Setting]:
        stmt = (
            select(Setting)
            .where(Setting.group == group, Setting.key == key)
            # Rows may have been rewritten by an upsert since they were loaded
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_group(self, group: str) -> List[Setting]:
        stmt = (
            select(Setting)
            .where(Setting.group == group)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def latest_updated_at(self, group: str) -> Optional[datetime]:
        """Return MAX(updated_at) for the group, or None if it has no rows."""
        stmt = select(func.max(Setting.updated_at)).where(Setting.group == group)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, group: str, key: str, value: str, now: datetime) -> None:
        """Insert or replace the JSON-encoded value for ``(group, key)`` and commit.

        ``created_at`` is only written on insert; updates touch ``value`` and
        ``updated_at``.
        """
        insert = _ON_CONFLICT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            await self._upsert_select_then_write(group, key, value, now)
        else:
            stmt = insert(Setting).values(
                group=group,
                key=key,
                value=value,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["group", "key"],
                set_={"value": stmt.excluded["value"], "updated_at": stmt.excluded["updated_at"]},
            )
            await self.db.execute(stmt)

        await self.db.commit()

    async def _upsert_select_then_write(self, group: str, key: str, value: str, now: datetime) -> None:
        setting = await self.find(group, key)
        if setting is None:
            setting = Setting(group=group, key=key, value=value, created_at=now, updated_at=now)
            self.db.add(setting)
        else:
            setting.value = value
            setting.updated_at = now
        await self.db.flush()
