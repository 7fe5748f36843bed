"""Logging configuration for dupguard.

Provides a single place to configure log output for the CLI, the pre-commit
hook and library callers:

- Human-readable or JSON formatted records
- Optional log file in addition to stderr
- Context fields (operation, mode, source counts) bound with ``LogContext``
  and appended to every record emitted inside the block

Example:
    >>> from dupguard.logging_config import configure_logging, get_logger, LogContext
    >>> configure_logging(level="DEBUG", json_output=False)
    >>> logger = get_logger(__name__)
    >>> with LogContext(operation="scan", mode="batch"):
    ...     logger.info("Scanning sources")
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

ROOT_LOGGER_NAME = "dupguard"

_log_context: ContextVar[Dict[str, Any]] = ContextVar("dupguard_log_context", default={})

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


def get_context() -> Dict[str, Any]:
    """Return a copy of the fields bound to the current context."""
    return dict(_log_context.get())


def clear_context() -> None:
    """Remove every bound context field."""
    _log_context.set({})


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    extras = get_context()
    for key, value in record.__dict__.items():
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
            extras[key] = value
    return extras


class HumanFormatter(logging.Formatter):
    """Single-line formatter with trailing ``key=value`` context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _record_extras(record)
        if extras:
            rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
            line = f"{line} [{rendered}]"
        return line


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure the ``dupguard`` logger hierarchy.

    Safe to call more than once: previously installed handlers are replaced.

    Args:
        level: Log level name or number
        json_output: Emit JSON records instead of human-readable lines
        log_file: Optional path to also write records to

    Returns:
        The configured root ``dupguard`` logger
    """
    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO
    else:
        numeric_level = level

    formatter: logging.Formatter = JSONFormatter() if json_output else HumanFormatter()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(numeric_level)
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``dupguard`` hierarchy.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Context manager binding fields to every record logged inside it.

    Example:
        >>> with LogContext(operation="scan", source_count=3):
        ...     logger.info("started")  # carries operation and source_count
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        merged = get_context()
        merged.update(self.fields)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


@contextmanager
def log_operation(operation: str, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    """Log the start, end and duration of an operation.

    Args:
        operation: Operation name (e.g., "scan", "check")
        logger: Logger to use (default: the dupguard root logger)
        **fields: Extra context fields bound for the duration
    """
    log = logger or logging.getLogger(ROOT_LOGGER_NAME)
    start = time.perf_counter()
    with LogContext(operation=operation, **fields):
        log.debug(f"{operation} started")
        try:
            yield
        except Exception:
            log.exception(f"{operation} failed")
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        log.debug(f"{operation} completed", extra={"duration_ms": duration_ms})
