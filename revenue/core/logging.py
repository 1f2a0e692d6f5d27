"""Structured logging built on Loguru.

Two output shapes are supported:

- **console**: human-readable lines with request and registry context inline
  (development)
- **json**: one JSON object per line for log collectors (staging/production)

Standard library logging (uvicorn, SQLAlchemy, Alembic) is intercepted and
forwarded to Loguru so every line shares one format and carries the
correlation id bound by the request middleware.
"""

from __future__ import annotations

import inspect
import json
import logging
import sys
from typing import Any, Final, Protocol, cast

from loguru import logger

from revenue.core.config import get_settings


class _LoggingState:
    """Tracks whether logging has been configured for this process."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Shown first, in this order, on console lines
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "kind",
    "record_id",
)

_STATUS_MARKUP: Final[dict[str, tuple[str, str]]] = {
    "2": ("<green>", "</green>"),
    "3": ("<yellow>", "</yellow>"),
    "4": ("<red>", "</red>"),
    "5": ("<red><bold>", "</bold></red>"),
}


def _escape(value: object) -> str:
    """Escape braces so Loguru does not treat values as format fields."""
    return str(value).replace("{", "{{").replace("}", "}}")


def _format_priority_field(field: str, value: object) -> str:
    """Shorten or colour well-known fields for display."""
    text = _escape(value)
    if field == "correlation_id":
        return text[:CORRELATION_ID_DISPLAY_LENGTH]
    if field == "duration_ms":
        return f"{text}ms"
    if field == "status_code":
        opening, closing = _STATUS_MARKUP.get(text[:1], ("", ""))
        return f"{opening}{text}{closing}"
    return text


def _format_extra_field(key: str, value: object) -> str:
    """Render ``key=value``, redacting sensitive keys and truncating long values."""
    settings = get_settings()
    text = str(value)
    if key in settings.log_config.sensitive_fields:
        text = "[REDACTED]"
    elif len(text) > MAX_FIELD_VALUE_LENGTH:
        text = text[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
    return f"{_escape(key)}={_escape(text)}"


def _format_context_fields(extra: dict[str, Any]) -> list[str]:
    """Format context fields, priority fields first."""
    parts = [
        f"<yellow>{_format_priority_field(field, extra[field])}</yellow>"
        for field in PRIORITY_FIELDS
        if extra.get(field) is not None
    ]
    parts.extend(
        f"<dim>{_format_extra_field(key, value)}</dim>"
        for key, value in extra.items()
        if key not in PRIORITY_FIELDS and not key.startswith("_") and value is not None
    )
    return parts


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format a Loguru record for the console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Loguru format string for this record.
    """
    time_str = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    location = f"{record['name']}:{record['function']}:{record['line']}"
    parts = [
        f"<green>{time_str}</green>",
        f"<level>{record['level'].name: <8}</level>",
        f"<cyan>{_escape(location)}</cyan>",
    ]

    context_parts = _format_context_fields(record.get("extra", {}))
    if context_parts:
        parts.append(" ".join(f"[{part}]" for part in context_parts))

    parts.append(_escape(record["message"]))

    line = " | ".join(parts)
    if record.get("exception"):
        line += "\n{exception}"
    return line + "\n"


def serialize_for_json(record: dict[str, Any]) -> str:
    """Serialize a Loguru record as one JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    extra = record.get("extra", {})
    log_entry.update({k: v for k, v in extra.items() if not k.startswith("_")})

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return json.dumps(log_entry, default=str) + "\n"


class InterceptHandler(logging.Handler):
    """Forward standard library log records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru, keeping the original call site.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru once per process.

    Args:
        settings: Application settings containing log configuration.
    """
    if _state.configured:
        return

    logger.remove()

    formatter_type = settings.log_config.log_formatter_type or "console"

    if formatter_type == "json":

        def json_sink(message: object) -> None:
            """Write structured records to stdout."""
            sys.stdout.write(serialize_for_json(cast("Any", message).record))
            sys.stdout.flush()

        logger.add(
            json_sink,
            level=settings.log_config.log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=settings.log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_level=settings.log_config.log_level,
    )
    _state.configured = True
