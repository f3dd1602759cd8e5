"""Pydantic models for the relay discovery and registration HTTP contract."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from push_relay.domain.connection import DEVICE_ID_MAX, RegistrationCandidate


class RegistrationRequest(BaseModel):
    """Registration payload submitted by a device."""

    model_config = ConfigDict(extra="ignore")

    uuid: str
    device_id: StrictInt = Field(ge=0, le=DEVICE_ID_MAX)
    password: str
    endpoint: str

    def to_candidate(self) -> RegistrationCandidate:
        """Convert the transport payload into a domain registration candidate."""

        return RegistrationCandidate(
            uuid=self.uuid,
            device_id=self.device_id,
            password=self.password,
            endpoint=self.endpoint,
        )


class RelayResponse(BaseModel):
    """Response envelope shared by discovery and registration routes.

    The ``mollysocket`` key is the envelope existing relay clients parse.
    """

    mollysocket: dict[str, str]
