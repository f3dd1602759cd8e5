from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config

from alembic import command
from push_relay.application.ports.connection_store_port import ConnectionStoreError
from push_relay.domain.connection import Connection
from push_relay.infrastructure.db.connection_repository import SqlAlchemyConnectionRepository
from push_relay.infrastructure.db.session import create_session_factory

UUID_A = "0d6f3d61-6f8e-4b8b-9a0c-2f4b7a0d3e11"


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def _connection(**overrides: object) -> Connection:
    fields: dict[str, object] = {
        "uuid": UUID_A,
        "device_id": 4294967295,
        "password": "device-secret",
        "endpoint": "https://push.example.org/up/abc",
        "forbidden": False,
        "last_registration": datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
    }
    fields.update(overrides)
    return Connection(**fields)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_get_returns_none_for_unknown_uuid(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repo_missing.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))

    assert await repo.get(UUID_A) is None


@pytest.mark.asyncio
async def test_add_then_get_round_trips_record(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repo_roundtrip.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))
    connection = _connection()

    await repo.add(connection)

    assert await repo.get(UUID_A) == connection


@pytest.mark.asyncio
async def test_add_fully_replaces_existing_record(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "repo_upsert.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))
    await repo.add(_connection(forbidden=True))
    replacement = _connection(
        device_id=3,
        password="rotated-secret",
        endpoint="https://push.example.org/up/new",
        forbidden=False,
        last_registration=datetime(2026, 4, 2, 9, 15, tzinfo=UTC),
    )

    await repo.add(replacement)

    assert await repo.get(UUID_A) == replacement
    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        count = connection.execute(sa.text("SELECT COUNT(*) FROM connections")).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_set_forbidden_and_count(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repo_forbidden.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))
    await repo.add(_connection())
    await repo.add(_connection(uuid="8b1c9f0e-3c2a-4d6e-9f7b-1a2b3c4d5e6f"))

    assert await repo.set_forbidden(uuid=UUID_A, forbidden=True) is True
    assert await repo.set_forbidden(uuid=UUID_A, forbidden=True) is False
    assert await repo.set_forbidden(uuid="unknown", forbidden=True) is False

    stored = await repo.get(UUID_A)
    assert stored is not None
    assert stored.forbidden is True
    assert await repo.count_forbidden() == 1


@pytest.mark.asyncio
async def test_touch_moves_only_last_registration(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repo_touch.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))
    original = _connection(forbidden=True)
    await repo.add(original)
    later = datetime(2026, 5, 6, 7, 8, tzinfo=UTC)

    touched = await repo.touch(
        uuid=UUID_A,
        device_id=original.device_id,
        password=original.password,
        registered_at=later,
    )

    stored = await repo.get(UUID_A)
    assert touched is True
    assert stored is not None
    assert stored.forbidden is True
    assert stored.last_registration == later
    assert (stored.device_id, stored.password, stored.endpoint) == (
        original.device_id,
        original.password,
        original.endpoint,
    )


@pytest.mark.asyncio
async def test_touch_ignores_mismatched_credentials(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "repo_touch_mismatch.db")
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))
    original = _connection()
    await repo.add(original)

    touched = await repo.touch(
        uuid=UUID_A,
        device_id=original.device_id,
        password="stale-secret",
        registered_at=datetime(2026, 5, 6, 7, 8, tzinfo=UTC),
    )

    assert touched is False
    assert await repo.get(UUID_A) == original
    assert (
        await repo.touch(
            uuid="unknown",
            device_id=1,
            password="device-secret",
            registered_at=datetime(2026, 5, 6, 7, 8, tzinfo=UTC),
        )
        is False
    )


@pytest.mark.asyncio
async def test_missing_schema_surfaces_store_error(tmp_path: Path) -> None:
    async_url = f"sqlite+aiosqlite:///{tmp_path / 'repo_no_schema.db'}"
    repo = SqlAlchemyConnectionRepository(create_session_factory(async_url))

    with pytest.raises(ConnectionStoreError):
        await repo.get(UUID_A)
    with pytest.raises(ConnectionStoreError):
        await repo.add(_connection())
