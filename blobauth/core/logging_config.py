"""
Logging setup for blobauth.

Console output goes to stderr so that CLI commands can print URLs and headers
on stdout. Every handler carries a SensitiveDataFilter: account keys, SAS
signatures, client secrets and bearer tokens pass through the signing code
and must never reach a log sink in clear text.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from blobauth.core.config_manager import LoggingConfig

REDACTED = "***REDACTED***"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log messages and their arguments."""

    PATTERNS = [
        # Authorization: SharedKey acct:sig / Authorization: Bearer eyJ...
        (re.compile(r'(Authorization:?\s+(?:Bearer|SharedKey)\s+)\S+', re.IGNORECASE), rf'\1{REDACTED}'),
        # Connection strings
        (re.compile(r'(AccountKey=)[^;]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'(SharedAccessSignature=)[^;&]+', re.IGNORECASE), rf'\1{REDACTED}'),
        # SAS query strings
        (re.compile(r'(sig=)[^;&\s]+', re.IGNORECASE), rf'\1{REDACTED}'),
        # Token request forms and responses
        (re.compile(r'(client_secret=)[^&\s]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'(client_assertion=)[^&\s]+', re.IGNORECASE), rf'\1{REDACTED}'),
        (re.compile(r'("access_token"\s*:\s*")[^"]+', re.IGNORECASE), rf'\1{REDACTED}'),
    ]

    @classmethod
    def redact(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Passed as logger.info(..., extra={"context": {...}})
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        super().__init__(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _make_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    return TextFormatter()


def _attach(root_logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure logging for blobauth and the CLI.

    Replaces the handlers of the root logger.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ("json" or "text")
        log_file: Optional file path for log output
        rotation_size: Size limit for log rotation (e.g., "10MB")
        rotation_count: Number of rotated log files to keep
        module_levels: Optional dict of module-specific log levels
                      e.g., {"blobauth.auth.oauth": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    formatter = _make_formatter(format_type)

    _attach(root_logger, logging.StreamHandler(sys.stderr), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding='utf-8'
        )
        _attach(root_logger, file_handler, formatter)
        root_logger.debug(f"Logging to file: {log_file} (rotation: {rotation_size}, count: {rotation_count})")

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(getattr(logging, module_level.upper()))

    root_logger.debug(f"Logging configured: level={level}, format={format_type}")


def configure_logging(logging_config: "LoggingConfig") -> None:
    """Apply the ``logging`` section of a loaded BlobAuthConfig."""
    setup_logging(
        level=getattr(logging_config.level, "value", logging_config.level),
        format_type=logging_config.format,
        log_file=logging_config.file,
        rotation_size=logging_config.rotation_size,
        rotation_count=logging_config.rotation_count,
        module_levels=logging_config.module_levels,
    )


def _parse_size(size_str: str) -> int:
    """Parse a size such as "10MB" or "512KB" to bytes; a bare number is bytes."""
    size_str = size_str.upper().strip()

    # Longest suffix first, "B" would match "MB"
    for suffix, multiplier in (('GB', 1024 ** 3), ('MB', 1024 ** 2), ('KB', 1024), ('B', 1)):
        if size_str.endswith(suffix):
            return int(float(size_str[:-len(suffix)].strip()) * multiplier)

    return int(size_str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
