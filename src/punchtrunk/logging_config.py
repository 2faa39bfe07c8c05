"""
Logging configuration for PunchTrunk.

Provides rich terminal output by default and JSON lines for CI log ingestion.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=False)


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    json_logs: bool = False,
) -> logging.Logger:
    """
    Configure logging for a PunchTrunk run.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging
        json_logs: Emit JSON lines on stderr instead of rich output

    Returns:
        Configured logger instance for punchtrunk
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handlers: list[logging.Handler] = []
    if json_logs:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(JsonLogFormatter())
        handlers.append(stream_handler)
    else:
        console = Console(stderr=True)
        handlers.append(
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
                show_time=True,
                show_path=verbose,
            )
        )

    # force=True so repeated CLI invocations in one process pick up new flags
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger("punchtrunk")
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'punchtrunk.orchestrator')
              If None, returns the root punchtrunk logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("punchtrunk")

    if not name.startswith("punchtrunk"):
        name = f"punchtrunk.{name}"

    return logging.getLogger(name)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit a structured lifecycle event.

    The human-readable message lists the fields as ``key=value``; the JSON
    formatter additionally receives them as top-level keys.
    """
    rendered = " ".join(f"{key}={value}" for key, value in fields.items())
    message = f"{event} {rendered}" if rendered else event
    extra = {key: value for key, value in fields.items() if key not in _RESERVED_ATTRS}
    extra["event"] = event
    logger.log(level, message, extra=extra)
