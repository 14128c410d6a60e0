from __future__ import annotations

import logging
from typing import Any, Dict

# Attributes every LogRecord carries, plus the two a Formatter adds later
RESERVED_LOG_KEYS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit a structured client event.
    - The event name is both the message and the `event` extra
    - Fields that would overwrite LogRecord attributes are dropped
    """
    log = logger or logging.getLogger("veeam_cloud.observability")
    if not log.isEnabledFor(level):
        return
    extra = {"event": event, **_clean_fields(fields)}
    log.log(level, event, extra=extra)


__all__ = ["log_event", "RESERVED_LOG_KEYS"]
