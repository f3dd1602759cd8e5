"""Initial schema for relay connections."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "connections",
        sa.Column("uuid", sa.Text(), primary_key=True, nullable=False),
        sa.Column("device_id", sqlite_bigint, nullable=False),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("forbidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_registration", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "device_id >= 0 AND device_id <= 4294967295",
            name="ck_connections_device_id_u32",
        ),
    )
    op.create_index("ix_connections_forbidden", "connections", ["forbidden"])


def downgrade() -> None:
    op.drop_index("ix_connections_forbidden", table_name="connections")
    op.drop_table("connections")
