"""Port for best-effort push endpoint reachability probes."""

from __future__ import annotations

from typing import Protocol


class EndpointProbeError(RuntimeError):
    """Raised when a push endpoint probe does not succeed."""


class EndpointProberPort(Protocol):
    """Reachability probe contract."""

    async def probe(self, endpoint: str) -> None:
        """Send one probe to endpoint, raising EndpointProbeError on failure."""
