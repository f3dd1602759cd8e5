from __future__ import annotations

import pytest

from push_relay.domain.registration_status import (
    RegistrationOutcome,
    RegistrationStatus,
    to_outcome,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (RegistrationStatus.NEW, "ok"),
        (RegistrationStatus.UPDATED, "ok"),
        (RegistrationStatus.RUNNING, "ok"),
        (RegistrationStatus.FORBIDDEN, "forbidden"),
        (RegistrationStatus.INVALID_UUID, "invalid_uuid"),
        (RegistrationStatus.INVALID_ENDPOINT, "invalid_endpoint"),
        (RegistrationStatus.INTERNAL_ERROR, "internal_error"),
    ],
)
def test_every_status_maps_to_public_outcome(
    status: RegistrationStatus,
    expected: str,
) -> None:
    assert to_outcome(status).value == expected


def test_public_vocabulary_is_exactly_five_codes() -> None:
    assert {outcome.value for outcome in RegistrationOutcome} == {
        "ok",
        "forbidden",
        "invalid_uuid",
        "invalid_endpoint",
        "internal_error",
    }
