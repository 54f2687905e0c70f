"""
Services for settingstore.
"""

from .setting_repository import SettingRepository
from .setting_store import SettingStore, create_setting_store, setting_store_session

__all__ = [
    "SettingRepository",
    "SettingStore",
    "create_setting_store",
    "setting_store_session",
]
