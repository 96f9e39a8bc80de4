"""
Log module for scripts: info, warn, error, debug.
"""

import logging
from types import SimpleNamespace
from typing import Any

logger = logging.getLogger(__name__)


def make_log_module(
    *,
    logger_instance: logging.Logger | None = None,
    extra: dict[str, Any] | None = None,
) -> Any:
    """Build the `log` object. extra (e.g. the script name) is attached to every record."""
    log = logger_instance or logger
    ext = extra or {}

    def _log(level: int, msg: str, *args: Any) -> None:
        log.log(level, msg, *args, extra=ext or None)

    def info(msg: str, *args: Any) -> None:
        _log(logging.INFO, msg, *args)

    def warn(msg: str, *args: Any) -> None:
        _log(logging.WARNING, msg, *args)

    def error(msg: str, *args: Any) -> None:
        _log(logging.ERROR, msg, *args)

    def debug(msg: str, *args: Any) -> None:
        _log(logging.DEBUG, msg, *args)

    return SimpleNamespace(info=info, warn=warn, error=error, debug=debug)
