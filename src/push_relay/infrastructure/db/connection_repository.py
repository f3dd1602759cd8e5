"""SQLAlchemy adapter for the connection store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, cast

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from push_relay.application.ports.connection_store_port import (
    ConnectionStoreError,
    ConnectionStorePort,
)
from push_relay.domain.connection import Connection
from push_relay.infrastructure.db.metadata import connections

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAlchemyConnectionRepository(ConnectionStorePort):
    """Connection store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, uuid: str) -> Connection | None:
        """Return the connection stored for uuid, or None."""

        statement = sa.select(
            connections.c.uuid,
            connections.c.device_id,
            connections.c.password,
            connections.c.endpoint,
            connections.c.forbidden,
            connections.c.last_registration,
        ).where(connections.c.uuid == uuid).limit(1)

        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
        except SQLAlchemyError as error:
            raise ConnectionStoreError(f"connection read failed for uuid={uuid}") from error

        row = result.mappings().first()
        if row is None:
            return None
        return _to_connection(row)

    async def add(self, connection: Connection) -> None:
        """Insert or fully replace the connection row in one statement."""

        values = {
            "uuid": connection.uuid,
            "device_id": connection.device_id,
            "password": connection.password,
            "endpoint": connection.endpoint,
            "forbidden": connection.forbidden,
            "last_registration": connection.last_registration,
        }
        try:
            async with self._session_factory() as session:
                dialect_name = session.bind.dialect.name if session.bind is not None else ""
                await session.execute(_build_upsert(dialect_name, values))
                await session.commit()
        except SQLAlchemyError as error:
            raise ConnectionStoreError(
                f"connection write failed for uuid={connection.uuid}"
            ) from error

        logger.info(
            "connection_stored uuid=%s device_id=%s forbidden=%s",
            connection.uuid,
            connection.device_id,
            connection.forbidden,
        )

    async def touch(
        self,
        *,
        uuid: str,
        device_id: int,
        password: str,
        registered_at: datetime,
    ) -> bool:
        """Update last_registration for uuid when the credentials still match."""

        statement = (
            sa.update(connections)
            .where(
                connections.c.uuid == uuid,
                connections.c.device_id == device_id,
                connections.c.password == password,
            )
            .values(last_registration=registered_at)
        )
        try:
            async with self._session_factory() as session:
                result = cast(CursorResult[Any], await session.execute(statement))
                await session.commit()
        except SQLAlchemyError as error:
            raise ConnectionStoreError(f"connection touch failed for uuid={uuid}") from error

        touched = int(result.rowcount or 0) == 1
        logger.info("connection_touched=%s uuid=%s device_id=%s", touched, uuid, device_id)
        return touched

    async def set_forbidden(self, *, uuid: str, forbidden: bool) -> bool:
        """Flip the forbidden flag for uuid; return whether a row changed."""

        statement = (
            sa.update(connections)
            .where(connections.c.uuid == uuid, connections.c.forbidden != forbidden)
            .values(forbidden=forbidden)
        )
        try:
            async with self._session_factory() as session:
                result = cast(CursorResult[Any], await session.execute(statement))
                await session.commit()
        except SQLAlchemyError as error:
            raise ConnectionStoreError(f"forbidden update failed for uuid={uuid}") from error

        changed = int(result.rowcount or 0) == 1
        logger.info("connection_forbidden_set=%s uuid=%s forbidden=%s", changed, uuid, forbidden)
        return changed

    async def count_forbidden(self) -> int:
        """Return how many stored connections are currently forbidden."""

        statement = (
            sa.select(sa.func.count())
            .select_from(connections)
            .where(connections.c.forbidden == sa.true())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
        except SQLAlchemyError as error:
            raise ConnectionStoreError("forbidden count failed") from error

        return int(result.scalar_one())


def _build_upsert(dialect_name: str, values: dict[str, object]) -> sa.Executable:
    insert = _UPSERT_INSERTS.get(dialect_name)
    if insert is None:
        raise ConnectionStoreError(f"upsert not supported for dialect={dialect_name!r}")

    statement = insert(connections).values(**values)
    replaced = {key: value for key, value in values.items() if key != "uuid"}
    return statement.on_conflict_do_update(index_elements=[connections.c.uuid], set_=replaced)


def _to_connection(row: sa.RowMapping) -> Connection:
    last_registration = cast(datetime | None, row["last_registration"])
    if last_registration is not None and last_registration.tzinfo is None:
        last_registration = last_registration.replace(tzinfo=UTC)
    return Connection(
        uuid=cast(str, row["uuid"]),
        device_id=int(row["device_id"]),
        password=cast(str, row["password"]),
        endpoint=cast(str, row["endpoint"]),
        forbidden=bool(row["forbidden"]),
        last_registration=last_registration,
    )
