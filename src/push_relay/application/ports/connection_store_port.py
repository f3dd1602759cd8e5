"""Port for the keyed connection store."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from push_relay.domain.connection import Connection


class ConnectionStoreError(RuntimeError):
    """Raised when the connection store cannot complete a read or write."""


class ConnectionStorePort(Protocol):
    """Async connection store contract.

    ``get`` reports a missing record as ``None``; any other failure raises
    ``ConnectionStoreError``.
    """

    async def get(self, uuid: str) -> Connection | None:
        """Return the stored connection for uuid, or None when absent."""

    async def add(self, connection: Connection) -> None:
        """Insert or fully replace the record keyed by connection.uuid."""

    async def touch(
        self,
        *,
        uuid: str,
        device_id: int,
        password: str,
        registered_at: datetime,
    ) -> bool:
        """Move only last_registration forward while the credential pair still matches.

        Returns whether a record was updated. The forbidden flag is never written.
        """
