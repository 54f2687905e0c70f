"""Grouped, dot-addressed application settings backed by a database and a cache."""

from .services.setting_store import SettingStore, create_setting_store, setting_store_session

__all__ = ["SettingStore", "create_setting_store", "setting_store_session"]

__version__ = "0.1.0"
