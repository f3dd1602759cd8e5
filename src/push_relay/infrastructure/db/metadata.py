"""SQLAlchemy metadata definitions for relay tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()
sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

connections = sa.Table(
    "connections",
    metadata,
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

sa.Index("ix_connections_forbidden", connections.c.forbidden)
