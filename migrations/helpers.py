"""
Shared helper functions for Alembic migrations.

These helpers keep migrations idempotent by checking for existing schema
objects before creating or dropping them.
"""

from typing import Any

from alembic import op


def table_exists(inspector: Any, table_name: str) -> bool:
    """Return True if ``table_name`` exists in the connected database."""
    return table_name in inspector.get_table_names()


def drop_table_if_exists(inspector: Any, table_name: str) -> None:
    if table_exists(inspector, table_name):
        op.drop_table(table_name)
