"""Structured logging for the bluff server.

structlog events are routed through stdlib logging so uvicorn, starlette and
our own loggers share one set of handlers.

Environment variables:
- LOG_FORMAT: "json" for log aggregation, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

    from structlog.typing import Processor

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
SERVICE_NAME = "bluff"

_LOG_FORMATS = ("json", "console", "")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_FOREIGN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _flatten_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Log enums by value and domain models by id, never as full reprs."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, BaseModel):
            event_dict[key] = getattr(value, "id", type(value).__name__)
    return event_dict


def _add_service(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _json_output_requested() -> bool:
    log_format = os.environ.get("LOG_FORMAT", "").lower()
    if log_format not in _LOG_FORMATS:
        raise ValueError(f"Invalid LOG_FORMAT={log_format!r}. Must be 'json', 'console', or unset.")
    return log_format == "json"


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    if name not in _LOG_LEVELS:
        raise ValueError(f"Invalid LOG_LEVEL={name!r}. Must be one of {', '.join(_LOG_LEVELS)}.")
    return logging.getLevelNamesMapping()[name]


def _event_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        _flatten_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _handler(handler: logging.Handler, *, json_output: bool, colors: bool = False) -> logging.Handler:
    renderer: Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=colors)
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    return handler


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """Configure structlog with stdout and optional file output.

    When log_dir is given (and not running under pytest), a timestamped
    log file is created inside it and its path is returned.
    """
    json_output = _json_output_requested()
    structlog.configure(
        processors=_event_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
        existing.close()
    root.setLevel(level if level is not None else _level_from_env())
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), json_output=json_output, colors=sys.stdout.isatty()))

    # uvicorn attaches its own handlers; send its records through ours
    for name in _FOREIGN_LOGGERS:
        foreign = logging.getLogger(name)
        foreign.handlers.clear()
        foreign.propagate = True

    if log_dir is None or _is_test():
        return None

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    root.addHandler(_handler(logging.FileHandler(log_path), json_output=json_output))
    return log_path
