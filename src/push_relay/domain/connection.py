"""Connection record and registration candidate models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

DEVICE_ID_MAX: Final[int] = 2**32 - 1


@dataclass(frozen=True)
class RegistrationCandidate:
    """Fields submitted by a device registration request."""

    uuid: str
    device_id: int
    password: str
    endpoint: str


@dataclass(frozen=True)
class Connection:
    """Persisted registration record keyed by uuid."""

    uuid: str
    device_id: int
    password: str
    endpoint: str
    forbidden: bool = False
    last_registration: datetime | None = None

    @classmethod
    def from_candidate(
        cls,
        candidate: RegistrationCandidate,
        *,
        registered_at: datetime,
    ) -> Connection:
        """Build a fresh, non-forbidden record from an accepted registration."""

        return cls(
            uuid=candidate.uuid,
            device_id=candidate.device_id,
            password=candidate.password,
            endpoint=candidate.endpoint,
            forbidden=False,
            last_registration=registered_at,
        )

    def matches_credentials(self, candidate: RegistrationCandidate) -> bool:
        """Return whether the candidate presents the stored credential pair."""

        return self.device_id == candidate.device_id and self.password == candidate.password
