"""Internal registration statuses and the public outcome vocabulary."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class RegistrationStatus(StrEnum):
    """Fine-grained statuses used by registration orchestration."""

    NEW = "NEW"
    UPDATED = "UPDATED"
    RUNNING = "RUNNING"
    FORBIDDEN = "FORBIDDEN"
    INVALID_UUID = "INVALID_UUID"
    INVALID_ENDPOINT = "INVALID_ENDPOINT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class RegistrationOutcome(StrEnum):
    """Outcome codes callers are allowed to depend on."""

    OK = "ok"
    FORBIDDEN = "forbidden"
    INVALID_UUID = "invalid_uuid"
    INVALID_ENDPOINT = "invalid_endpoint"
    INTERNAL_ERROR = "internal_error"


_OUTCOME_BY_STATUS: Final[dict[RegistrationStatus, RegistrationOutcome]] = {
    RegistrationStatus.NEW: RegistrationOutcome.OK,
    RegistrationStatus.UPDATED: RegistrationOutcome.OK,
    RegistrationStatus.RUNNING: RegistrationOutcome.OK,
    RegistrationStatus.FORBIDDEN: RegistrationOutcome.FORBIDDEN,
    RegistrationStatus.INVALID_UUID: RegistrationOutcome.INVALID_UUID,
    RegistrationStatus.INVALID_ENDPOINT: RegistrationOutcome.INVALID_ENDPOINT,
}


def to_outcome(status: RegistrationStatus) -> RegistrationOutcome:
    """Map an internal status to the public outcome, defaulting to internal_error."""

    return _OUTCOME_BY_STATUS.get(status, RegistrationOutcome.INTERNAL_ERROR)
