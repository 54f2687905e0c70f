"""
Utility functions for settingstore.
"""

from .data_get import MISSING, data_get

__all__ = ["MISSING", "data_get"]
