"""Port for registration telemetry."""

from __future__ import annotations

from typing import Protocol

from push_relay.domain.registration_status import RegistrationOutcome


class RegistrationMetricsPort(Protocol):
    """Best-effort telemetry sink used by registration orchestration."""

    def decrement_forbidden(self) -> None:
        """Record that one forbidden connection was revived."""

    def record_outcome(self, outcome: RegistrationOutcome) -> None:
        """Count one reconciled registration by outcome."""
