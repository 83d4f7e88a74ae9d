from __future__ import annotations

import contextlib
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional

LOGGER_NAME = "portal"
AUDIT_LOGGER_NAME = "portal.audit"

REQUEST_ID: ContextVar[str] = ContextVar("request_id", default="-")

_LINE_FORMAT = (
    "%(asctime)s %(levelname)-8s %(name)s "
    "request_id=%(request_id)s "
    "%(message)s"
)
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = REQUEST_ID.get()
        return True


class LevelColorFormatter(logging.Formatter):
    """Console formatter that colours the whole line by level (no colour when NO_COLOR is set or not a TTY)."""

    _COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[1;31m",
    }

    def __init__(self, *args, color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        prefix = self._COLORS.get(record.levelno) if self.color else None
        return f"{prefix}{line}\x1b[0m" if prefix else line


def _use_color(stream) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _rotating_file(path: Path, level: int, context: logging.Filter) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(str(path), maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LINE_FORMAT, _DATE_FORMAT))
    handler.addFilter(context)
    return handler


def configure_logging(
    *,
    log_dir: str | Path | None = None,
    level: str | None = None,
    console: bool | None = None,
) -> logging.Logger:
    """
    Install handlers on the "portal" logger:
      logs/portal.log  everything at LOG_LEVEL and above
      logs/audit.log   admin and moderation actions only (see audit())
      stdout           when LOG_CONSOLE is on
    Idempotent; returns the portal logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_configured", False):
        return logger

    from portal.config import settings

    log_dir = Path(log_dir or settings.log_dir)
    numeric_level = logging.getLevelNamesMapping().get((level or settings.log_level).upper(), logging.INFO)
    console = settings.log_console if console is None else console
    context = RequestContextFilter()

    logger.setLevel(numeric_level)
    logger.propagate = False
    logger.addHandler(_rotating_file(log_dir / "portal.log", numeric_level, context))

    if console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setLevel(numeric_level)
        stream.setFormatter(LevelColorFormatter(_LINE_FORMAT, _DATE_FORMAT, color=_use_color(sys.stdout)))
        stream.addFilter(context)
        logger.addHandler(stream)

    # audit records also reach portal.log through propagation
    logging.getLogger(AUDIT_LOGGER_NAME).addHandler(_rotating_file(log_dir / "audit.log", logging.INFO, context))

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger under "portal" for a module: get_logger(__name__)."""
    configure_logging()
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def audit(action: str, actor_id: int, **fields) -> None:
    """One line per admin/moderation action, e.g. audit("note.approve", admin.id, note_id=3)."""
    configure_logging()
    details = " ".join(f"{k}={v}" for k, v in fields.items())
    logging.getLogger(AUDIT_LOGGER_NAME).info("%s by=%s %s", action, actor_id, details)


def set_request_id(request_id: Optional[str] = None) -> str:
    rid = request_id or uuid.uuid4().hex[:12]
    REQUEST_ID.set(rid)
    return rid


def clear_request_id() -> None:
    REQUEST_ID.set("-")


@contextlib.contextmanager
def log_duration(logger: logging.Logger, name: str) -> Iterator[None]:
    """Log how long the block took, at INFO on success and ERROR when it raises."""
    started = time.perf_counter()
    try:
        yield
    except Exception:
        logger.error("%s failed after %dms", name, (time.perf_counter() - started) * 1000)
        raise
    logger.info("%s took %dms", name, (time.perf_counter() - started) * 1000)
