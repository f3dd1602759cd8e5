"""Deterministic status resolution for incoming registrations."""

from __future__ import annotations

from push_relay.domain.connection import Connection, RegistrationCandidate
from push_relay.domain.registration_status import RegistrationStatus


def resolve_registration_status(
    candidate: RegistrationCandidate,
    *,
    uuid_valid: bool,
    endpoint_valid: bool,
    stored: Connection | None,
) -> RegistrationStatus:
    """Resolve a registration against the stored record; first matching rule wins.

    A refresh (same credential pair) never revives a forbidden connection,
    while a rotation (different credential pair) always supersedes it.
    """

    if not uuid_valid:
        return RegistrationStatus.INVALID_UUID

    if not endpoint_valid:
        return RegistrationStatus.INVALID_ENDPOINT

    if stored is None:
        return RegistrationStatus.NEW

    if not stored.matches_credentials(candidate):
        return RegistrationStatus.UPDATED

    if stored.forbidden:
        return RegistrationStatus.FORBIDDEN

    if stored.endpoint != candidate.endpoint:
        return RegistrationStatus.UPDATED

    return RegistrationStatus.RUNNING
