"""Custom exceptions for settingstore.

This module defines the exceptions raised by the settings store and its
database wiring. Cache exceptions live in ``core.cache_backend``.
"""

from typing import Any


class SettingStoreException(Exception):
    """Base exception class for settingstore."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# Setting Exceptions
class InvalidSettingKeyError(SettingStoreException):
    """Raised when a dotted key does not name both a group and a setting."""

    def __init__(self, key: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Invalid setting key '{key}': expected '<group>.<setting>[.<path>]'",
            error_code="INVALID_SETTING_KEY",
            details=details or {"key": key},
        )


class SettingSerializationError(SettingStoreException):
    """Raised when a setting value cannot be encoded as JSON."""

    def __init__(self, key: str, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Unable to serialize value for setting '{key}' to JSON: {reason}",
            error_code="SETTING_SERIALIZATION_ERROR",
            details=details or {"key": key, "reason": reason},
        )


# Database Exceptions
class DatabaseConnectionError(SettingStoreException):
    """Raised when there's a database connection error (network, auth, etc.)."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database connection error: {reason}",
            error_code="DATABASE_CONNECTION_ERROR",
            details=details or {"reason": reason},
        )


class DatabaseSessionError(SettingStoreException):
    """Raised when session creation or management fails."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database session error: {reason}",
            error_code="DATABASE_SESSION_ERROR",
            details=details or {"reason": reason},
        )
