"""Migration 001: Create the settings table.

One row per (group, key) with the value stored as JSON text. The table name
follows SETTINGSTORE_TABLE_NAME.
"""

import sqlalchemy as sa
from alembic import op

from migrations.helpers import drop_table_if_exists, table_exists
from settingstore.core.config import get_settings_instance

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the settings table and its (group, key) unique constraint."""
    table_name = get_settings_instance().settings_table_name
    inspector = sa.inspect(op.get_bind())
    if table_exists(inspector, table_name):
        return

    op.create_table(
        table_name,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("group", sa.String(255), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("group", "key", name=f"uq_{table_name}_group_key"),
    )
    op.create_index(f"ix_{table_name}_group", table_name, ["group"])


def downgrade() -> None:
    """Drop the settings table."""
    inspector = sa.inspect(op.get_bind())
    drop_table_if_exists(inspector, get_settings_instance().settings_table_name)
