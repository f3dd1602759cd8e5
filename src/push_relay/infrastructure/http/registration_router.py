"""FastAPI router for relay discovery and device registration."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter

from push_relay.application.dto.registration_models import RegistrationRequest, RelayResponse
from push_relay.application.services.registration_service import RegistrationService

DISTRIBUTION_NAME = "push-relay"
logger = logging.getLogger(__name__)


def relay_version() -> str:
    """Return the installed distribution version advertised to clients."""

    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def build_registration_router(*, registration_service: RegistrationService) -> APIRouter:
    """Build router exposing discovery and registration endpoints."""

    router = APIRouter(tags=["registration"])
    advertised_version = relay_version()

    def _envelope(**fields: str) -> RelayResponse:
        return RelayResponse(mollysocket={**fields, "version": advertised_version})

    @router.get("/", response_model=RelayResponse)
    async def discover() -> RelayResponse:
        return _envelope()

    @router.post("/", response_model=RelayResponse)
    async def register(payload: RegistrationRequest) -> RelayResponse:
        logger.info(
            "registration_received uuid=%s device_id=%s",
            payload.uuid,
            payload.device_id,
        )
        outcome = await registration_service.resolve_and_apply(payload.to_candidate())
        return _envelope(status=outcome.value)

    return router
