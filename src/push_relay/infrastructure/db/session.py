"""Async SQLAlchemy engine and session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(
    database_url: str,
    *,
    echo: bool = False,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory whose pooled connections are checked before reuse."""

    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    return async_sessionmaker(engine, expire_on_commit=False)
