"""
Logging setup for the refresh runner.

Each poll tick runs under its own refresh id (a context variable set by the
poller). A handler filter stamps that id on every record, so both the JSON
lines and the console lines can be grouped by tick.
"""
import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone

refresh_id_var: ContextVar[str] = ContextVar("refresh_id", default="")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(refresh_id)s] %(message)s"
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler")

# Attributes every record carries; anything else arrived through extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "refresh_id"}


class RefreshIdFilter(logging.Filter):
    """Copy the current refresh id onto the record ("-" outside a tick)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.refresh_id = refresh_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, refresh_id, extra, exception."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "refresh_id": refresh_id_var.get(),
        }
        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", json_output: bool = True, handler: logging.Handler | None = None) -> None:
    """
    Route root logging through a single handler.

    Args:
        level: Level name; unknown names fall back to INFO
        json_output: JSON lines when True, plain console lines otherwise
        handler: Handler to use instead of stdout (tests pass a buffer)
    """
    handler = handler or logging.StreamHandler(sys.stdout)
    handler.addFilter(RefreshIdFilter())
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(CONSOLE_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_refresh_id(refresh_id: str) -> Token:
    """Enter a refresh tick; pass the returned token to clear_refresh_id."""
    return refresh_id_var.set(refresh_id)


def get_refresh_id() -> str:
    return refresh_id_var.get()


def clear_refresh_id(token: Token) -> None:
    refresh_id_var.reset(token)
