"""Port for uuid and endpoint validation predicates."""

from __future__ import annotations

from typing import Protocol


class RegistrationValidatorPort(Protocol):
    """Validation contract consulted before any store access."""

    def is_uuid_valid(self, uuid: str) -> bool:
        """Return whether the uuid may register with this relay."""

    async def is_endpoint_valid(self, endpoint: str) -> bool:
        """Return whether the push endpoint is acceptable; may perform I/O."""
