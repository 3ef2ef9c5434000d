import logging
import logging.handlers
import os
import re
import sys
from typing import Any, Dict, List, Optional

import structlog

_PATH_PATTERN = re.compile(r"^(/|~|\.{1,2}/|[A-Za-z]:\\|\\\\)")
_FILENAME_PATTERN = re.compile(
    r"\.(jpg|jpeg|png|webp|heic|heif|bmp|tiff|tif)$", re.IGNORECASE
)
# "1/3" in "batch 1/3" is not a path: a path must not follow a word character
_EMBEDDED_PATH_PATTERN = re.compile(
    r"(?<![\w.])(?:~|\.{1,2})?/[^\s'\"(),]+|\b[A-Za-z]:\\[^\s'\"(),]+"
)
_EMBEDDED_FILENAME_PATTERN = re.compile(
    r"[^\s/\\'\"(),:]+\.(?:jpg|jpeg|png|webp|heic|heif|bmp|tiff|tif)\b",
    re.IGNORECASE,
)
_PATH_KEYS = {
    "path",
    "file",
    "file_path",
    "filename",
    "input_path",
    "output_path",
    "directory",
    "output_directory",
    "root",
}


def redact_paths(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask file paths and image file names in log entries.

    Whole values under path-like keys are replaced; paths and file names
    inside free text (the event message, error strings) are masked in place.
    """

    def _redact(obj: Any, depth: int = 0) -> Any:
        if depth > 10:  # Prevent infinite recursion
            return "***DEPTH_LIMIT***"

        if isinstance(obj, dict):
            return {
                key: (
                    "***PATH_REDACTED***"
                    if str(key).lower() in _PATH_KEYS
                    else _redact(value, depth + 1)
                )
                for key, value in obj.items()
            }
        elif isinstance(obj, (list, tuple)):
            return [_redact(item, depth + 1) for item in obj]
        elif isinstance(obj, str):
            if _PATH_PATTERN.match(obj):
                return "***PATH_REDACTED***"
            if _FILENAME_PATTERN.search(obj) and " " not in obj:
                return "***FILENAME_REDACTED***"
            obj = _EMBEDDED_PATH_PATTERN.sub("***PATH_REDACTED***", obj)
            return _EMBEDDED_FILENAME_PATTERN.sub("***FILENAME_REDACTED***", obj)
        return obj

    return _redact(event_dict)


def add_batch_id(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the active batch ID to log entries when one is bound."""
    if "batch_id" not in event_dict:
        batch_id = structlog.contextvars.get_contextvars().get("batch_id")
        if batch_id is not None:
            event_dict["batch_id"] = batch_id
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    enable_file_logging: bool = False,
    log_dir: str = "./logs",
    max_log_size_mb: int = 10,
    backup_count: int = 3,
    redact: bool = False,
) -> None:
    """Configure structured logging for the converter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Use JSON format for logs
        enable_file_logging: Also write logs to a rotating file
        log_dir: Directory for log files
        max_log_size_mb: Maximum size of each log file in MB
        backup_count: Number of backup files to keep
        redact: Mask file paths and names before rendering
    """
    level = getattr(logging, log_level.upper())
    handlers: List[logging.Handler] = []

    # Always use stderr so stdout stays free for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if enable_file_logging:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, "heic_converter.log"),
            maxBytes=max_log_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        handlers.append(file_handler)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_batch_id,
    ]

    if redact:
        processors.append(redact_paths)

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=level,
        force=True,
    )

    # Suppress noisy loggers
    logging.getLogger("PIL").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


class LoggingContext:
    """Context manager for adding context to logs."""

    def __init__(self, **kwargs) -> None:
        self.context = kwargs

    def __enter__(self) -> "LoggingContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.context)
