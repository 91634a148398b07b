"""Structured logging helpers with run correlation support.

This module provides a LoggerAdapter for structured logging with mandatory
fields (operation, status) and module-level loggers with NullHandler to
prevent duplicate handlers in libraries. Records emitted while a report is
being built carry the run's correlation id.

Examples
--------
>>> from rtdiag_common.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Report started", extra={"operation": "report", "status": "started"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "CorrelationContext",
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "setup_logging",
]

# Context variable for correlation ID propagation
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_STRUCTURED_FIELDS = ("correlation_id", "operation", "status", "duration_ms")

# Standard LogRecord attributes never copied into the JSON payload
_EXCLUDED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "ts",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats log records as JSON with timestamp, level, name, message and the
    structured fields (correlation_id, operation, status, duration_ms). The
    correlation id falls back to the active :class:`CorrelationContext`.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format. May include extra fields in record.__dict__.

        Returns
        -------
        str
            JSON-encoded log entry. Extra fields are included when they are
            plain JSON scalars, lists or dicts.
        """
        data: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + "Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                data[field] = value

        if "correlation_id" not in data:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                data["correlation_id"] = ctx_correlation_id

        for key, value in record.__dict__.items():
            if (
                key not in _EXCLUDED_ATTRS
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that injects structured context fields.

    Every record carries ``operation`` and ``status``; ``status`` is inferred
    from the level when the caller does not set it. The correlation id of the
    active :class:`CorrelationContext` is injected as well.

    Parameters
    ----------
    logger : logging.Logger
        Base logger instance to wrap.
    extra : Mapping[str, object] | None, optional
        Fields merged into every record emitted through this adapter.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.debug("Manifest missing", extra={"operation": "source_ref"})
    """

    logger: logging.Logger

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        """Return the message untouched; field injection happens in :meth:`log`."""
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        """Log ``msg`` at ``level`` with structured fields merged into ``extra``."""
        raw_extra = kwargs.get("extra")
        extra: dict[str, Any] = dict(raw_extra) if isinstance(raw_extra, Mapping) else {}
        if isinstance(self.extra, Mapping):
            for key, value in self.extra.items():
                extra.setdefault(key, value)
        if "correlation_id" not in extra:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                extra["correlation_id"] = ctx_correlation_id
        self._ensure_operation_and_status(extra, level)
        kwargs["extra"] = extra
        super().log(level, msg, *args, **kwargs)

    @staticmethod
    def _ensure_operation_and_status(extra: dict[str, Any], level: int) -> None:
        if "operation" not in extra:
            extra["operation"] = "unknown"
        if "status" not in extra:
            if level >= logging.ERROR:
                extra["status"] = "error"
            elif level >= logging.WARNING:
                extra["status"] = "warning"
            else:
                extra["status"] = "success"


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Module-level loggers get a NullHandler so the library stays silent until
    an application calls :func:`setup_logging`.

    Parameters
    ----------
    name : str
        Logger name (typically __name__ from the calling module).

    Returns
    -------
    LoggerAdapter
        Logger adapter with structured context injection.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return LoggerAdapter(logger, {})


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure root logger with JSON formatter on stderr.

    Logs go to stderr so that report text written to stdout stays clean.

    Parameters
    ----------
    level : int | str, optional
        Logging level threshold, numeric or by name ("DEBUG", "INFO", ...).
        Defaults to logging.INFO.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def get_correlation_id() -> str | None:
    """Return the correlation id of the active context, if any."""
    return _correlation_id.get()


class CorrelationContext:
    """Context manager binding a correlation id to every record in its scope.

    The previous correlation id is restored when the context exits.

    Parameters
    ----------
    correlation_id : str | None
        Correlation ID to set in context. None clears it.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> with CorrelationContext(correlation_id="run-123"):
    ...     logger.info("Report started")  # correlation_id="run-123" auto-injected
    """

    def __init__(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> Self:
        self._token = _correlation_id.set(self.correlation_id)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
        del exc_type, exc_val, exc_tb
