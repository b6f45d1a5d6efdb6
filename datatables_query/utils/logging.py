"""Logging setup with standard and structured (JSON) output."""

import logging
import sys
import json
from typing import Optional, Dict, Any
from datetime import datetime, timezone

CONTEXT_ATTRIBUTE = "request_context"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with request context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        context = getattr(record, CONTEXT_ATTRIBUTE, None)
        if context:
            log_data.update(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable lines; request context is appended as ``key=value`` pairs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, CONTEXT_ATTRIBUTE, None)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Use structured JSON logging if True
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = StructuredFormatter() if structured else StandardFormatter()

    handlers = []
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Driver chatter stays at WARNING
    logging.getLogger("psycopg2").setLevel(logging.WARNING)
    logging.getLogger("duckdb").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Attaches the context of one table request to every record."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra[CONTEXT_ATTRIBUTE] = self.extra
        kwargs["extra"] = extra
        return msg, kwargs


def get_request_logger(
    name: str, draw: int, table: Optional[str] = None
) -> RequestLoggerAdapter:
    """Logger whose records carry the request's draw counter and table.

    Example:
        >>> logger = get_request_logger(__name__, draw=7, table="users")
        >>> logger.debug("Counting rows")  # record carries draw=7 table=users
    """
    context: Dict[str, Any] = {"draw": draw}
    if table:
        context["table"] = table
    return RequestLoggerAdapter(get_logger(name), context)
