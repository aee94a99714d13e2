"""
Logging infrastructure for exoscale-auth.

Log records never carry secrets: every handler installed by setup_logging
redacts Authorization headers, v1 signatures, DNS tokens and API secrets.
Structured context attached with log_with_context is rendered by both
formatters.
"""

import logging
import logging.handlers
import json
import sys
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"


class SensitiveDataFilter(logging.Filter):
    """Filter to redact credentials and signatures from log messages."""

    PATTERNS = [
        (re.compile(r'(Authorization:\s+)\S+(?:\s+\S+)?', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(signature=)[^,&\s]+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(X-DNS-Token:\s+)\S+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)[^"\'\s,]+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(EXOSCALE_API_SECRET=)\S+'), r'\1' + REDACTED),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context under its own key."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with context appended as key=value pairs."""

    def __init__(self):
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return line

        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} ({pairs}){sep}{tail}"


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    if format_type == "text":
        return TextFormatter()
    raise ValueError(f"Unknown log format: {format_type}")


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 ** 2,
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure exoscale-auth logging.

    Logs go to stderr so that command output on stdout stays parseable.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ("json" or "text")
        log_file: Optional file path for log output
        max_bytes: Size in bytes after which the log file is rotated
        rotation_count: Number of rotated log files to keep
        module_levels: Optional dict of module-specific log levels
                      e.g., {"exoscale_auth.client": "DEBUG"}

    Raises:
        ValueError: If format_type is not "json" or "text"
    """
    formatter = _build_formatter(format_type)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=max_bytes,
                backupCount=rotation_count,
                encoding='utf-8'
            )
        )

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(handler)

    if module_levels:
        for module_name, module_level in module_levels.items():
            logging.getLogger(module_name).setLevel(getattr(logging, module_level.upper()))

    log_with_context(
        root_logger,
        logging.DEBUG,
        "Logging configured",
        level=level,
        format=format_type,
        file=log_file,
    )


def log_with_context(logger: logging.Logger, level: int, message: str, /, **context: Any) -> None:
    """
    Log a message with additional context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Additional context to include in log
    """
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
