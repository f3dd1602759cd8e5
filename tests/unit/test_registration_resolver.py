from __future__ import annotations

import pytest

from push_relay.domain.connection import Connection, RegistrationCandidate
from push_relay.domain.registration_resolver import resolve_registration_status
from push_relay.domain.registration_status import RegistrationStatus

CANDIDATE = RegistrationCandidate(
    uuid="0d6f3d61-6f8e-4b8b-9a0c-2f4b7a0d3e11",
    device_id=2,
    password="device-secret",
    endpoint="https://push.example.org/up/abc",
)


def _stored(**overrides: object) -> Connection:
    fields: dict[str, object] = {
        "uuid": CANDIDATE.uuid,
        "device_id": CANDIDATE.device_id,
        "password": CANDIDATE.password,
        "endpoint": CANDIDATE.endpoint,
        "forbidden": False,
    }
    fields.update(overrides)
    return Connection(**fields)  # type: ignore[arg-type]


def test_invalid_uuid_wins_over_everything() -> None:
    status = resolve_registration_status(
        CANDIDATE,
        uuid_valid=False,
        endpoint_valid=False,
        stored=_stored(forbidden=True),
    )

    assert status is RegistrationStatus.INVALID_UUID


def test_invalid_endpoint_wins_over_stored_state() -> None:
    status = resolve_registration_status(
        CANDIDATE,
        uuid_valid=True,
        endpoint_valid=False,
        stored=_stored(),
    )

    assert status is RegistrationStatus.INVALID_ENDPOINT


def test_missing_record_is_new() -> None:
    status = resolve_registration_status(
        CANDIDATE,
        uuid_valid=True,
        endpoint_valid=True,
        stored=None,
    )

    assert status is RegistrationStatus.NEW


@pytest.mark.parametrize(
    ("stored", "expected"),
    [
        (_stored(), RegistrationStatus.RUNNING),
        (_stored(endpoint="https://push.example.org/up/old"), RegistrationStatus.UPDATED),
        (_stored(forbidden=True), RegistrationStatus.FORBIDDEN),
        (
            _stored(forbidden=True, endpoint="https://push.example.org/up/old"),
            RegistrationStatus.FORBIDDEN,
        ),
    ],
)
def test_refresh_with_matching_credentials(
    stored: Connection,
    expected: RegistrationStatus,
) -> None:
    status = resolve_registration_status(
        CANDIDATE,
        uuid_valid=True,
        endpoint_valid=True,
        stored=stored,
    )

    assert status is expected


@pytest.mark.parametrize(
    "stored",
    [
        _stored(device_id=1),
        _stored(password="older-secret"),
        _stored(device_id=1, forbidden=True),
        _stored(password="older-secret", forbidden=True),
    ],
)
def test_rotation_is_updated_even_when_forbidden(stored: Connection) -> None:
    status = resolve_registration_status(
        CANDIDATE,
        uuid_valid=True,
        endpoint_valid=True,
        stored=stored,
    )

    assert status is RegistrationStatus.UPDATED
