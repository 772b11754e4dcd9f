"""
Structured JSON logging for the batch engine.

Every record is one JSON line carrying the event name as ``message``,
the logger's ``extra`` fields, and the run context of the thread that
logged it: ``run_id``, ``job_name``, ``instance_id`` while a run
executes, plus ``step_name`` while one of its steps executes.

The launcher binds the run fields around a run and the step field around
each step, so step lines carry all four fields and run lines carry three.
Scheduler worker threads start with an empty context.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "batch_kernel"

# Order is the order the fields appear in each JSON line.
_CONTEXT_FIELDS = ("run_id", "job_name", "instance_id", "step_name")

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"batch_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _context[name]
    except KeyError:
        raise TypeError(f"Unknown log context field: {name!r}") from None


class LogContext:
    """Run-scoped log fields, held in ContextVars (per thread and task)."""

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set context fields. ``None`` values are ignored.

        Raises:
            TypeError: If a field is not a known context field.
        """
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(str(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """The fields currently set, in line order."""
        return {
            name: value
            for name in _CONTEXT_FIELDS
            if (value := _context[name].get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _context.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block.

        Nested binds stack: on exit each field returns to the value it had
        when the block was entered, even if the block raised.
        """
        tokens = [
            (var, var.set(str(value)))
            for var, value in ((_context_var(n), v) for n, v in fields.items())
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (UUID, BaseException)):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    return repr(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """``exc_type``/``exc_message`` plus the public attributes of ``exc``.

    Kernel errors contribute ``exc_code`` and one ``exc_<attr>`` per
    structured attribute (``exc_resource``, ``exc_job_name``...).
    """
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    fields.update(
        (f"exc_{name}", value)
        for name, value in vars(exc).items()
        if not name.startswith("_") and name != "code"
    )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: header, run context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """``batch_kernel.<name>``; every module logs below this prefix."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``batch_kernel`` logger.

    Only the first call takes effect until ``reset_logging()``.  Records
    do not propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    batch_logger = logging.getLogger(_LOGGER_PREFIX)
    batch_logger.setLevel(level)
    batch_logger.propagate = False
    batch_logger.addHandler(target)


def reset_logging() -> None:
    """Undo ``configure_logging()``. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    batch_logger = logging.getLogger(_LOGGER_PREFIX)
    batch_logger.handlers.clear()
    batch_logger.setLevel(logging.WARNING)
    batch_logger.propagate = True
