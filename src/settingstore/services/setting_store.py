"""
Service for reading and writing grouped application settings.

Settings are addressed with dotted keys of the form
``<group>.<setting>[.<path>...]``. Reads go through a cache entry per
``(group, setting)`` so writing one setting only invalidates that entry;
writes invalidate the entry and upsert the JSON-encoded value.

Example:
    async with setting_store_session() as store:
        await store.set("mail.smtp", {"host": "smtp.example.com", "port": 587})
        port = await store.get("mail.smtp.port", 25)
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import SettingsCache
from ..core.cache_backend import get_cache_backend
from ..core.config import Settings, get_settings_instance
from ..core.database import get_db_session
from ..core.exceptions import InvalidSettingKeyError, SettingSerializationError
from ..core.logging import get_logger
from ..models.setting import Setting
from ..utils.data_get import MISSING, data_get
from .setting_repository import SettingRepository

logger = get_logger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "%B %d, %Y, %I:%M %p"

# Timestamps are persisted in UTC; naive values read back are UTC too
STORAGE_TIMEZONE = ZoneInfo("UTC")


class SettingStore:
    """Cache-fronted access to the settings table."""

    def __init__(
        self,
        repository: SettingRepository,
        cache: SettingsCache,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.settings = settings or get_settings_instance()

        # The model's table is bound once per process at import
        if self.settings.settings_table_name != Setting.__tablename__:
            logger.warning(
                "Configured settings table differs from the mapped table; using the mapped table",
                extra={
                    "configured_table": self.settings.settings_table_name,
                    "mapped_table": Setting.__tablename__,
                },
            )

    @staticmethod
    def parse_key(key: str) -> Tuple[str, str, str]:
        """Split a dotted key into ``(group, setting, sub_key)``.

        ``sub_key`` is the dot-joined remainder after the setting name, or
        an empty string.

        Raises:
            InvalidSettingKeyError: If the group or setting segment is empty.
        """
        group, _, rest = key.partition(".")
        setting, _, sub_key = rest.partition(".")
        if not group or not setting:
            raise InvalidSettingKeyError(key)
        return group, setting, sub_key

    def cache_key(self, group: str, setting: str) -> str:
        return f"{self.settings.settings_cache_prefix}.{group}.{setting}"

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the value at ``key``, or ``default`` if it is absent or null.

        ``"group.setting"`` returns the whole decoded value; any further
        segments are looked up inside it.
        """
        group, setting, sub_key = self.parse_key(key)
        cache_key = self.cache_key(group, setting)

        async def compute() -> Dict[str, Any]:
            return await self._fetch_setting(group, setting)

        if self.settings.cache_forever:
            data = await self.cache.remember_forever(cache_key, compute)
        else:
            data = await self.cache.remember(cache_key, self.settings.cache_ttl_seconds, compute)

        path = f"{setting}.{sub_key}" if sub_key else setting
        value = data_get(data, path, MISSING)
        if value is MISSING or value is None:
            return default
        return value

    async def set(self, key: str, value: Any) -> None:
        """Replace the value of the setting named by ``key``.

        Only the group and setting segments are used: writing
        ``"group.setting.path"`` replaces the whole setting, not the nested
        field.

        Raises:
            SettingSerializationError: If ``value`` cannot be encoded as JSON.
        """
        group, setting, _ = self.parse_key(key)

        await self.cache.forget(self.cache_key(group, setting))

        try:
            encoded = json.dumps(value, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error(
                "Failed to serialize setting value",
                extra={"group": group, "setting": setting, "error": str(e)},
            )
            raise SettingSerializationError(f"{group}.{setting}", str(e)) from e

        now = datetime.now(STORAGE_TIMEZONE)
        await self.repository.upsert(group, setting, encoded, now)
        logger.debug("Stored setting", extra={"group": group, "setting": setting})

    async def get_group(self, group: str) -> Dict[str, Any]:
        """Return every setting in ``group`` as ``{setting: value}``. Not cached."""
        rows = await self.repository.list_group(group)
        return {row.key: self._decode(row) for row in rows}

    async def get_group_last_updated_at(
        self,
        group: str,
        fmt: str = DEFAULT_TIMESTAMP_FORMAT,
        timezone: Optional[str] = "UTC",
    ) -> Optional[str]:
        """Format the most recent ``updated_at`` in ``group`` for display.

        ``timezone=None`` renders in the configured application timezone
        (UTC unless overridden). Naive timestamps are taken to be UTC. Returns
        None when the group has no rows or the timestamp cannot be converted
        or formatted.
        """
        timestamp = await self.repository.latest_updated_at(group)
        if not timestamp:
            return None

        target_timezone = timezone or self.settings.app_timezone
        try:
            if isinstance(timestamp, str):
                timestamp = datetime.fromisoformat(timestamp)
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=STORAGE_TIMEZONE)
            return timestamp.astimezone(ZoneInfo(target_timezone)).strftime(fmt)
        except Exception as e:
            logger.warning(
                "Could not format last updated timestamp",
                extra={"group": group, "target_timezone": target_timezone, "error": str(e)},
            )
            return None

    async def _fetch_setting(self, group: str, setting: str) -> Dict[str, Any]:
        row = await self.repository.find(group, setting)
        if row is None:
            return {}
        return {setting: self._decode(row)}

    @staticmethod
    def _decode(row: Setting) -> Any:
        try:
            return json.loads(row.value)
        except (TypeError, ValueError):
            # Unreadable rows behave like a null value
            logger.warning(
                "Stored setting value is not valid JSON",
                extra={"group": row.group, "setting": row.key},
            )
            return None


async def create_setting_store(db: AsyncSession, settings: Optional[Settings] = None) -> SettingStore:
    """Build a SettingStore on ``db`` using the configured cache backend."""
    cache_backend = await get_cache_backend()
    return SettingStore(SettingRepository(db), SettingsCache(cache_backend), settings)


@asynccontextmanager
async def setting_store_session(settings: Optional[Settings] = None) -> AsyncIterator[SettingStore]:
    """Yield a SettingStore bound to a fresh database session."""
    session = get_db_session()
    try:
        yield await create_setting_store(session, settings)
    finally:
        await session.close()
