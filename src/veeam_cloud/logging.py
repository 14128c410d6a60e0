import logging
from typing import IO, Any, Optional

# Structured fields emitted through log_event, in rendering order
LOG_EXTRA_FIELDS = (
    "request_id",
    "tool",
    "method",
    "endpoint",
    "status",
    "duration_ms",
    "error_type",
    "task",
    "attempt",
    "state",
    "sessions",
)


class LogfmtFormatter(logging.Formatter):
    """Renders client events as `key=value` pairs, skipping absent fields."""

    def format(self, record: logging.LogRecord) -> str:
        pairs = [
            ("level", record.levelname.lower()),
            ("logger", record.name),
            ("event", getattr(record, "event", None) or record.getMessage()),
        ]
        pairs.extend(
            (key, getattr(record, key, None)) for key in LOG_EXTRA_FIELDS
        )
        if record.exc_info and record.exc_info[0] is not None:
            pairs.append(("exc_type", record.exc_info[0].__name__))

        return " ".join(
            f"{key}={self._fmt_val(val)}"
            for key, val in pairs
            if val is not None and val != ""
        )

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, (int, float, bool)):
            return str(val)
        s = str(val).replace("\n", "\\n")
        if " " in s or "=" in s or '"' in s:
            s = '"' + s.replace('"', '\\"') + '"'
        return s


def setup_logging(
    level: str = "INFO",
    *,
    logger_name: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Install a logfmt handler on the root logger, or on `logger_name` when
    given. Calling it again replaces the handler instead of stacking another.
    """
    target = logging.getLogger(logger_name)
    for h in list(target.handlers):
        if isinstance(h.formatter, LogfmtFormatter):
            target.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(LogfmtFormatter())
    target.addHandler(handler)
    target.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS"]
