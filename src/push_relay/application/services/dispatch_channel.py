"""Optional single-consumer sink feeding the live-connection manager."""

from __future__ import annotations

import asyncio
import logging
import threading

from push_relay.domain.connection import Connection

logger = logging.getLogger(__name__)


class DispatchChannelAlreadyInstalledError(RuntimeError):
    """Raised when a receiver is installed on a channel that already had one."""


class ConnectionDispatchChannel:
    """Non-blocking, best-effort conduit of connection snapshots.

    The receiver queue is installed at most once per channel. An absent or
    closed receiver is a normal state: sends are dropped and logged.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue: asyncio.Queue[Connection] | None = None
        self._was_installed = False

    @property
    def is_installed(self) -> bool:
        """Return whether a receiver is currently attached."""

        with self._lock:
            return self._queue is not None

    def install(self, queue: asyncio.Queue[Connection]) -> None:
        """Attach the live-connection manager's receiver queue."""

        with self._lock:
            if self._was_installed:
                raise DispatchChannelAlreadyInstalledError(
                    "dispatch channel receiver was already installed"
                )
            self._queue = queue
            self._was_installed = True
        logger.info("dispatch_channel_installed maxsize=%s", queue.maxsize)

    def close(self) -> None:
        """Drop the receiver; later sends become no-ops."""

        with self._lock:
            self._queue = None
        logger.info("dispatch_channel_closed")

    def try_send(self, connection: Connection) -> bool:
        """Offer a snapshot to the receiver without blocking; return whether it was queued."""

        with self._lock:
            queue = self._queue

        if queue is None:
            logger.debug("dispatch_skipped_no_receiver uuid=%s", connection.uuid)
            return False

        try:
            queue.put_nowait(connection)
        except asyncio.QueueFull:
            logger.warning("dispatch_dropped_queue_full uuid=%s", connection.uuid)
            return False

        logger.debug("dispatch_sent uuid=%s", connection.uuid)
        return True
