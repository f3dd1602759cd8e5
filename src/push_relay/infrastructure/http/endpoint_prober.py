"""urllib-based reachability probe for push endpoints."""

from __future__ import annotations

import asyncio
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from push_relay.application.ports.endpoint_prober_port import (
    EndpointProbeError,
    EndpointProberPort,
)

PROBE_BODY = b'{"type":"test"}'


class UrllibEndpointProber(EndpointProberPort):
    """Send one small JSON POST to a push endpoint in a worker thread."""

    def __init__(self, *, timeout_seconds: float = 5.0) -> None:
        self._timeout_seconds = timeout_seconds

    async def probe(self, endpoint: str) -> None:
        """Probe endpoint; raise EndpointProbeError on transport failure or non-2xx."""

        status_code = await asyncio.to_thread(self._post_sync, endpoint)
        if not 200 <= status_code < 300:
            raise EndpointProbeError(f"probe rejected with status={status_code}")

    def _post_sync(self, endpoint: str) -> int:
        request = Request(
            url=endpoint,
            data=PROBE_BODY,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                return int(response.getcode())
        except HTTPError as error:
            return int(error.code)
        except (URLError, TimeoutError) as error:
            raise EndpointProbeError(f"probe connection failure: {error}") from error
