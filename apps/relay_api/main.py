"""relay-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from push_relay.application.ports.connection_store_port import ConnectionStoreError
from push_relay.application.services.dispatch_channel import ConnectionDispatchChannel
from push_relay.application.services.registration_service import RegistrationService
from push_relay.config.settings import Settings, load_settings
from push_relay.infrastructure.db.connection_repository import SqlAlchemyConnectionRepository
from push_relay.infrastructure.db.session import create_session_factory
from push_relay.infrastructure.http.endpoint_prober import UrllibEndpointProber
from push_relay.infrastructure.http.metrics_router import build_metrics_router
from push_relay.infrastructure.http.registration_router import build_registration_router
from push_relay.infrastructure.logging import configure_logging
from push_relay.infrastructure.metrics import PrometheusRegistrationMetrics
from push_relay.infrastructure.validation.registration_validator import (
    AllowlistRegistrationValidator,
)

logger = logging.getLogger(__name__)


def build_registration_service(
    settings: Settings,
    *,
    connection_repository: SqlAlchemyConnectionRepository,
    dispatch_channel: ConnectionDispatchChannel,
    metrics: PrometheusRegistrationMetrics,
) -> RegistrationService:
    """Build the registration reconciler with configured adapters."""

    return RegistrationService(
        store=connection_repository,
        validator=AllowlistRegistrationValidator(
            allowed_uuids=settings.allowed_uuids,
            allowed_endpoints=settings.allowed_endpoints,
        ),
        dispatch_channel=dispatch_channel,
        prober=UrllibEndpointProber(timeout_seconds=settings.probe_timeout_seconds),
        metrics=metrics,
        refresh_updates_last_registration=settings.refresh_updates_last_registration,
    )


def create_app(
    *,
    registration_service: RegistrationService | None = None,
    connection_repository: SqlAlchemyConnectionRepository | None = None,
    dispatch_channel: ConnectionDispatchChannel | None = None,
    metrics: PrometheusRegistrationMetrics | None = None,
) -> FastAPI:
    """Create FastAPI app for relay discovery, registration, and metrics routes.

    The dispatch channel is published on ``app.state.dispatch_channel`` so the
    live-connection manager can install its receiver queue.
    """

    if dispatch_channel is None:
        dispatch_channel = ConnectionDispatchChannel()
    if metrics is None:
        metrics = PrometheusRegistrationMetrics()

    if registration_service is None or connection_repository is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        if connection_repository is None:
            connection_repository = SqlAlchemyConnectionRepository(
                create_session_factory(settings.database_url)
            )
        if registration_service is None:
            registration_service = build_registration_service(
                settings,
                connection_repository=connection_repository,
                dispatch_channel=dispatch_channel,
                metrics=metrics,
            )

    service = registration_service
    repository = connection_repository

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            forbidden_count = await repository.count_forbidden()
        except ConnectionStoreError:
            logger.warning("forbidden_gauge_seed_failed", exc_info=True)
        else:
            metrics.seed_forbidden(forbidden_count)
            logger.info("forbidden_gauge_seeded count=%s", forbidden_count)
        yield
        await service.wait_for_probes()

    app = FastAPI(lifespan=lifespan)
    app.state.dispatch_channel = dispatch_channel
    app.include_router(build_registration_router(registration_service=service))
    app.include_router(build_metrics_router(registry=metrics.registry))
    return app


def run_asgi_server(*, host: str, port: int) -> None:
    """Run relay-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.relay_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run relay-api unless the web server is disabled (air-gapped mode)."""

    settings = load_settings()
    configure_logging(level=settings.log_level)
    if not settings.webserver_enabled:
        logger.warning(
            "relay_webserver_disabled air_gapped=true "
            "clients must be configured manually and push may break"
        )
        return

    run_asgi_server(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
