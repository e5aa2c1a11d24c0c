"""Log handler contract and the default stdlib-backed handler."""

from __future__ import annotations

import logging
from typing import Any, Callable

LogHandler = Callable[[str, Any], None]

logger = logging.getLogger("space_http")

LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def default_log_handler(level: str, data: Any) -> None:
    if level == "error" and isinstance(data, BaseException):
        title = " - ".join(part for part in (type(data).__name__, str(data)) if part)
        logger.error("[error] %s", title, exc_info=data)
        return
    logger.log(LEVELS.get(level, logging.INFO), "[%s] %s", level, data)


__all__ = ["LEVELS", "LogHandler", "default_log_handler", "logger"]
