"""
Database models for settingstore.
"""

from .base import Base, TimestampMixin
from .setting import Setting

__all__ = ["Base", "Setting", "TimestampMixin"]
