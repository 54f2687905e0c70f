"""Setting model for grouped key/value settings.

Each row holds one named setting within a group. Values are stored as JSON
text so any JSON-capable value can be persisted without schema changes.
"""

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from ..core.config import get_settings_instance
from .base import Base, TimestampMixin

# Table name is process-wide configuration, resolved once at import
SETTINGS_TABLE_NAME = get_settings_instance().settings_table_name


class Setting(TimestampMixin, Base):
    """One ``(group, key)`` setting with a JSON-encoded value."""

    __tablename__ = SETTINGS_TABLE_NAME
    __table_args__ = (UniqueConstraint("group", "key", name=f"uq_{SETTINGS_TABLE_NAME}_group_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    group = Column(String(255), nullable=False, index=True)
    key = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Setting(group='{self.group}', key='{self.key}')>"
