"""Structured logging helpers for kubestate.

This module provides a :class:`LoggerAdapter` that injects the structured
fields every kubestate log entry carries (``operation`` and ``status``, plus
whatever a caller binds through :func:`with_fields`) and a
:class:`JsonFormatter` that renders records as one JSON object per line.
Library modules only attach a :class:`logging.NullHandler`; applications
configure output once through :func:`setup_logging`.

Examples
--------
>>> from kubestate.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Registry built", extra={"operation": "build_registry", "status": "success"})
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping
    from types import TracebackType

__all__ = [
    "JsonFormatter",
    "LoggerAdapter",
    "get_logger",
    "setup_logging",
    "with_fields",
]

_STRUCTURED_FIELDS: Final[tuple[str, ...]] = ("operation", "status", "resource", "generator")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
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
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats log records as JSON with timestamp, level, logger name, message,
    the structured fields and any JSON-compatible ``extra`` values. Exception
    information is rendered under ``exc_info``.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format. May include extra fields in ``record.__dict__``.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, object] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                data[field] = value

        for key, value in record.__dict__.items():
            if (
                key not in _RECORD_ATTRIBUTES
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

    Fields bound on the adapter are merged into every record without
    overriding values passed explicitly through ``extra``. ``operation`` and
    ``status`` are always present; ``status`` is inferred from the level when
    the caller does not set it.

    Parameters
    ----------
    logger : logging.Logger
        Base logger instance to wrap.
    extra : Mapping[str, object] | None, optional
        Structured fields to inject into log entries.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:  # noqa: ANN401
        """Merge bound fields into the ``extra`` mapping of a log call.

        Parameters
        ----------
        msg : Any
            Log message.
        kwargs : MutableMapping[str, Any]
            Keyword arguments of the logging call.

        Returns
        -------
        tuple[Any, MutableMapping[str, Any]]
            The message and the updated keyword arguments.
        """
        extra = dict(kwargs.get("extra") or {})
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:  # noqa: ANN401
        """Log ``msg`` at ``level`` with structured fields."""
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        self._ensure_operation_and_status(kwargs["extra"], level)
        self.logger.log(level, msg, *args, **kwargs)

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

    def bind(self, **fields: object) -> LoggerAdapter:
        """Return a new adapter with ``fields`` added to the bound context."""
        merged = dict(self.extra or {})
        merged.update(fields)
        return LoggerAdapter(self.logger, merged)


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__`` from the calling module).

    Returns
    -------
    LoggerAdapter
        Logger adapter with structured context injection.
    """
    logger = logging.getLogger(name)

    # NullHandler keeps library loggers silent until setup_logging() runs.
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return LoggerAdapter(logger, {})


def setup_logging(level: int | str = logging.INFO, fmt: str = "json") -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : int | str, optional
        Logging level threshold, as a number or a level name. Defaults to INFO.
    fmt : str, optional
        ``"json"`` for :class:`JsonFormatter` output, ``"text"`` for the
        standard formatter. Defaults to ``"json"``.

    Raises
    ------
    ValueError
        If ``fmt`` is not a known format.
    """
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    elif fmt == "text":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        message = f"Unknown log format {fmt!r}; expected 'json' or 'text'"
        raise ValueError(message)
    logging.basicConfig(level=level, handlers=[handler], force=True)


class _WithFieldsContext(AbstractContextManager[LoggerAdapter]):
    """Context manager implementation for :func:`with_fields`."""

    def __init__(self, logger: logging.Logger | LoggerAdapter, fields: Mapping[str, object]) -> None:
        self._logger = logger
        self._fields = dict(fields)

    def __enter__(self) -> LoggerAdapter:
        if isinstance(self._logger, LoggerAdapter):
            return self._logger.bind(**self._fields)
        return LoggerAdapter(self._logger, dict(self._fields))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        del exc_type, exc_value, exc_tb


def with_fields(
    logger: logging.Logger | LoggerAdapter,
    **fields: object,
) -> AbstractContextManager[LoggerAdapter]:
    """Context manager for attaching structured fields to log entries.

    Parameters
    ----------
    logger : logging.Logger | LoggerAdapter
        Base logger to wrap (may already be an adapter).
    **fields : object
        Structured fields injected into every log call made through the
        yielded adapter.

    Returns
    -------
    AbstractContextManager[LoggerAdapter]
        Context manager yielding an adapter with the bound fields.

    Examples
    --------
    >>> from kubestate.logging import get_logger, with_fields
    >>> logger = get_logger(__name__)
    >>> with with_fields(logger, operation="generate", resource="pods") as log:
    ...     log.debug("generating families")
    """
    return _WithFieldsContext(logger, fields)
