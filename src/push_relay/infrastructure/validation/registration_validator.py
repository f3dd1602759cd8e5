"""Allowlist-driven uuid and push endpoint validation."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from collections.abc import Awaitable, Callable, Sequence
from urllib.parse import SplitResult, urlsplit
from uuid import UUID

from push_relay.application.ports.registration_validator_port import RegistrationValidatorPort

HostResolver = Callable[[str], Awaitable[list[str]]]
WILDCARD = "*"
_ALLOWED_SCHEMES = frozenset({"http", "https"})
logger = logging.getLogger(__name__)


async def resolve_host_addresses(host: str) -> list[str]:
    """Resolve host to the distinct IP addresses returned by the system resolver."""

    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return sorted({str(info[4][0]) for info in infos})


class AllowlistRegistrationValidator(RegistrationValidatorPort):
    """Validate registrations against configured uuid and endpoint allowlists.

    Uuids must be canonical lowercase UUIDs and either listed or admitted by ``*``.
    Endpoints must be http(s) URLs; an endpoint under an explicitly listed
    prefix is accepted as-is, while ``*`` accepts any endpoint whose host
    resolves only to globally routable addresses.
    """

    def __init__(
        self,
        *,
        allowed_uuids: Sequence[str],
        allowed_endpoints: Sequence[str],
        resolve_host: HostResolver = resolve_host_addresses,
    ) -> None:
        self._any_uuid = WILDCARD in allowed_uuids
        self._allowed_uuids = frozenset(
            value.strip().lower() for value in allowed_uuids if value != WILDCARD
        )
        self._any_public_endpoint = WILDCARD in allowed_endpoints
        self._allowed_endpoints = tuple(
            urlsplit(value.strip()) for value in allowed_endpoints if value != WILDCARD
        )
        self._resolve_host = resolve_host

    def is_uuid_valid(self, uuid: str) -> bool:
        """Return whether uuid is well-formed and admitted by the allowlist."""

        try:
            canonical = str(UUID(uuid))
        except ValueError:
            return False
        # The uuid is the store key, so only the canonical lowercase dashed form is accepted.
        if canonical != uuid:
            return False
        return self._any_uuid or canonical in self._allowed_uuids

    async def is_endpoint_valid(self, endpoint: str) -> bool:
        """Return whether endpoint is an acceptable push target."""

        try:
            parts = urlsplit(endpoint)
        except ValueError:
            return False
        if parts.scheme not in _ALLOWED_SCHEMES or not parts.hostname:
            return False

        if any(_is_under(parts, allowed) for allowed in self._allowed_endpoints):
            return True
        if not self._any_public_endpoint:
            return False

        try:
            addresses = await self._resolve_host(parts.hostname)
        except (OSError, UnicodeError) as error:
            logger.info("endpoint_resolution_failed host=%s error=%s", parts.hostname, error)
            return False

        if not addresses:
            return False
        return all(_is_global_address(address) for address in addresses)


def _is_under(candidate: SplitResult, allowed: SplitResult) -> bool:
    if candidate.scheme != allowed.scheme:
        return False
    if candidate.netloc.lower() != allowed.netloc.lower():
        return False
    allowed_path = allowed.path.rstrip("/")
    return candidate.path == allowed_path or candidate.path.startswith(f"{allowed_path}/")


def _is_global_address(address: str) -> bool:
    try:
        return ipaddress.ip_address(address.split("%", 1)[0]).is_global
    except ValueError:
        return False
