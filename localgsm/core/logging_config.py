"""
Logging infrastructure for LocalGSM.

Structured JSON (or plain text) logs tagged with the correlation id of the
request being served. Bearer tokens and secret payloads are redacted before
any handler writes a record.
"""

import json
import logging
import logging.handlers
import re
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

# Correlation id of the request handled by the current context
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

REDACTED = "***REDACTED***"

# Loggers whose output duplicates RequestLoggingMiddleware
_QUIET_LOGGERS = ("uvicorn.access",)

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMG]?B)?$")
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


class SensitiveDataFilter(logging.Filter):
    """Redact credentials and secret payloads from log messages."""

    PATTERNS = [
        (re.compile(r"(Authorization:\s+)(?:Bearer\s+)?\S+", re.IGNORECASE), rf"\1{REDACTED}"),
        (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE), rf"\1{REDACTED}"),
        (re.compile(r'("data"\s*:\s*")[^"]*(")'), rf"\1{REDACTED}\2"),
        (re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)\S+", re.IGNORECASE), rf"\1{REDACTED}"),
    ]

    @classmethod
    def redact(cls, text: str) -> str:
        """Apply every redaction pattern to a string."""
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the message in place; never drops a record."""
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        corr_id = correlation_id.get()
        if corr_id:
            entry["correlation_id"] = corr_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable single-line format, with the correlation id when set."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        corr_id = correlation_id.get()
        return f"{line} [{corr_id}]" if corr_id else line


def _level(value: Any) -> int:
    """Resolve a level name (or LogLevel member) to its numeric value."""
    name = str(getattr(value, "value", value)).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)


def setup_logging(
    level: Any = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure LocalGSM logging.

    Replaces any handlers on the root logger with a stdout handler and,
    when ``log_file`` is given, a size-rotated file handler.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_file: Optional log file path
        rotation_size: Rotation threshold such as "10MB"
        rotation_count: Number of rotated files to keep
        module_levels: Per-logger levels,
                      e.g. {"localgsm.services.secretmanager": "DEBUG"}
    """
    root = logging.getLogger()
    root.setLevel(_level(level))
    root.handlers.clear()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    _attach(root, logging.StreamHandler(sys.stdout), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding="utf-8",
        )
        _attach(root, file_handler, formatter)
        root.info(f"Logging to file: {log_file} (rotation: {rotation_size}, count: {rotation_count})")

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(_level(module_level))
        root.info(f"Module '{module_name}' log level set to {module_level}")

    root.info(f"Logging configured: level={logging.getLevelName(root.level)}, format={format_type}")


def _parse_size(size_str: str) -> int:
    """
    Parse a size string such as "10MB" or "512 KB" into bytes.

    A bare number is taken as bytes.

    Raises:
        ValueError: If the string is not a size
    """
    match = _SIZE_PATTERN.match(size_str.strip().upper())
    if not match:
        raise ValueError(f"Invalid size: {size_str}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit])


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (typically ``__name__``)."""
    return logging.getLogger(name)


@contextmanager
def correlation_scope(corr_id: str) -> Iterator[str]:
    """Bind a correlation id for the duration of the block."""
    token = correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id.reset(token)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with structured context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Fields rendered under "context" by JSONFormatter
    """
    logger.log(level, message, extra={"context": context} if context else None)
