"""Process logging configuration for the relay runtime."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_CHATTY_LOGGERS = ("aiosqlite", "sqlalchemy.engine")


def configure_logging(*, level: str) -> None:
    """Apply one log format and level; keep driver chatter at WARNING."""

    normalized_level = level.strip().upper() or "INFO"
    resolved_level = logging.getLevelNamesMapping().get(normalized_level, logging.INFO)

    logging.basicConfig(level=resolved_level, format=_LOG_FORMAT)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))
