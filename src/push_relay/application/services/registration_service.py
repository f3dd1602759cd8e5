"""Registration reconciler: resolve a registration and apply its side effects."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from push_relay.application.ports.connection_store_port import (
    ConnectionStoreError,
    ConnectionStorePort,
)
from push_relay.application.ports.endpoint_prober_port import EndpointProberPort
from push_relay.application.ports.registration_metrics_port import RegistrationMetricsPort
from push_relay.application.ports.registration_validator_port import RegistrationValidatorPort
from push_relay.application.services.dispatch_channel import ConnectionDispatchChannel
from push_relay.domain.connection import Connection, RegistrationCandidate
from push_relay.domain.registration_resolver import resolve_registration_status
from push_relay.domain.registration_status import (
    RegistrationOutcome,
    RegistrationStatus,
    to_outcome,
)

NowCallable = Callable[[], datetime]
logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RegistrationService:
    """Reconcile device registrations against the connection store.

    Each call is independent; concurrent registrations for one uuid are not
    serialized. The only safeguard is the re-read performed before reviving a
    connection that resolved as forbidden.
    """

    def __init__(
        self,
        *,
        store: ConnectionStorePort,
        validator: RegistrationValidatorPort,
        dispatch_channel: ConnectionDispatchChannel,
        prober: EndpointProberPort | None = None,
        metrics: RegistrationMetricsPort | None = None,
        refresh_updates_last_registration: bool = False,
        now: NowCallable = _utc_now,
    ) -> None:
        self._store = store
        self._validator = validator
        self._dispatch_channel = dispatch_channel
        self._prober = prober
        self._metrics = metrics
        self._refresh_updates_last_registration = refresh_updates_last_registration
        self._now = now
        self._probe_tasks: set[asyncio.Task[None]] = set()

    async def resolve_and_apply(self, candidate: RegistrationCandidate) -> RegistrationOutcome:
        """Reconcile one registration and return the caller-facing outcome code."""

        status, stored = await self._resolve(candidate)
        status = await self._apply(candidate, status, stored)
        outcome = to_outcome(status)
        logger.info(
            "registration_reconciled uuid=%s device_id=%s status=%s outcome=%s",
            candidate.uuid,
            candidate.device_id,
            status.value,
            outcome.value,
        )
        if self._metrics is not None:
            self._metrics.record_outcome(outcome)
        return outcome

    async def wait_for_probes(self) -> None:
        """Wait until every scheduled probe has finished."""

        if self._probe_tasks:
            await asyncio.gather(*self._probe_tasks, return_exceptions=True)

    async def _resolve(
        self,
        candidate: RegistrationCandidate,
    ) -> tuple[RegistrationStatus, Connection | None]:
        """Validate, read the store only when validation passed, and resolve."""

        uuid_valid = self._validator.is_uuid_valid(candidate.uuid)
        endpoint_valid = uuid_valid and await self._validator.is_endpoint_valid(
            candidate.endpoint
        )
        if not (uuid_valid and endpoint_valid):
            status = resolve_registration_status(
                candidate,
                uuid_valid=uuid_valid,
                endpoint_valid=endpoint_valid,
                stored=None,
            )
            return status, None

        try:
            stored = await self._store.get(candidate.uuid)
        except ConnectionStoreError:
            logger.exception("registration_store_read_failed uuid=%s", candidate.uuid)
            return RegistrationStatus.INTERNAL_ERROR, None

        status = resolve_registration_status(
            candidate,
            uuid_valid=True,
            endpoint_valid=True,
            stored=stored,
        )
        return status, stored

    async def _apply(
        self,
        candidate: RegistrationCandidate,
        status: RegistrationStatus,
        stored: Connection | None,
    ) -> RegistrationStatus:
        match status:
            case RegistrationStatus.NEW:
                if not await self._commit(candidate):
                    return RegistrationStatus.INTERNAL_ERROR
                self._schedule_probe(candidate)
                return status
            case RegistrationStatus.UPDATED:
                if not await self._commit(candidate):
                    return RegistrationStatus.INTERNAL_ERROR
                return status
            case RegistrationStatus.FORBIDDEN:
                return await self._recheck_forbidden(candidate)
            case RegistrationStatus.RUNNING:
                assert stored is not None
                return await self._refresh_running(stored)
            case RegistrationStatus.INVALID_UUID | RegistrationStatus.INVALID_ENDPOINT:
                return status
            case _:
                logger.debug(
                    "registration_status_unhandled uuid=%s status=%s",
                    candidate.uuid,
                    status.value,
                )
                return RegistrationStatus.INTERNAL_ERROR

    async def _commit(self, candidate: RegistrationCandidate) -> bool:
        """Persist the candidate as a fresh record and dispatch it once stored."""

        connection = Connection.from_candidate(candidate, registered_at=self._now())
        try:
            await self._store.add(connection)
        except ConnectionStoreError:
            logger.exception("registration_store_write_failed uuid=%s", candidate.uuid)
            return False

        self._dispatch_channel.try_send(connection)
        return True

    async def _recheck_forbidden(self, candidate: RegistrationCandidate) -> RegistrationStatus:
        # A rotation may have landed between resolution and now.
        logger.debug("registration_forbidden_recheck uuid=%s", candidate.uuid)
        try:
            current = await self._store.get(candidate.uuid)
        except ConnectionStoreError:
            logger.exception("registration_store_read_failed uuid=%s", candidate.uuid)
            return RegistrationStatus.INTERNAL_ERROR

        if current is None:
            logger.warning("registration_forbidden_record_vanished uuid=%s", candidate.uuid)
            return RegistrationStatus.INTERNAL_ERROR

        if current.matches_credentials(candidate):
            return RegistrationStatus.FORBIDDEN

        if not await self._commit(candidate):
            return RegistrationStatus.INTERNAL_ERROR

        if self._metrics is not None:
            self._metrics.decrement_forbidden()
        return RegistrationStatus.UPDATED

    async def _refresh_running(self, stored: Connection) -> RegistrationStatus:
        # Unchanged refreshes keep the stored record as-is unless configured otherwise.
        if not self._refresh_updates_last_registration:
            return RegistrationStatus.RUNNING

        # Only the timestamp is written so a concurrent forbid is never cleared.
        try:
            touched = await self._store.touch(
                uuid=stored.uuid,
                device_id=stored.device_id,
                password=stored.password,
                registered_at=self._now(),
            )
        except ConnectionStoreError:
            logger.exception("registration_store_write_failed uuid=%s", stored.uuid)
            return RegistrationStatus.INTERNAL_ERROR

        if not touched:
            logger.info("registration_running_touch_skipped uuid=%s", stored.uuid)
        return RegistrationStatus.RUNNING

    def _schedule_probe(self, candidate: RegistrationCandidate) -> None:
        if self._prober is None:
            return

        task = asyncio.create_task(self._probe(candidate))
        self._probe_tasks.add(task)
        task.add_done_callback(self._probe_tasks.discard)

    async def _probe(self, candidate: RegistrationCandidate) -> None:
        assert self._prober is not None
        try:
            await self._prober.probe(candidate.endpoint)
        except Exception as error:  # noqa: BLE001
            logger.warning(
                "registration_probe_failed uuid=%s error=%s",
                candidate.uuid,
                error,
            )
            return
        logger.debug("registration_probe_succeeded uuid=%s", candidate.uuid)
