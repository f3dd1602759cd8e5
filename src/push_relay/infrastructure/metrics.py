"""Prometheus metrics for registration reconciliation."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge

from push_relay.application.ports.registration_metrics_port import RegistrationMetricsPort
from push_relay.domain.registration_status import RegistrationOutcome


class PrometheusRegistrationMetrics(RegistrationMetricsPort):
    """Registration metrics registered on one collector registry."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.forbidden_connections = Gauge(
            "forbidden_connections",
            "Stored connections whose push endpoint is currently forbidden",
            registry=self.registry,
        )
        self.registrations = Counter(
            "registrations",
            "Reconciled registrations by outcome",
            ["outcome"],
            registry=self.registry,
        )
        for outcome in RegistrationOutcome:
            self.registrations.labels(outcome=outcome.value)

    def seed_forbidden(self, count: int) -> None:
        """Set the forbidden gauge from the stored connection count."""

        self.forbidden_connections.set(count)

    def decrement_forbidden(self) -> None:
        """Record one forbidden connection revived by a raced rotation."""

        self.forbidden_connections.dec()

    def record_outcome(self, outcome: RegistrationOutcome) -> None:
        """Count one reconciled registration."""

        self.registrations.labels(outcome=outcome.value).inc()
