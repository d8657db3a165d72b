"""
Structured logging configuration using structlog.

Provides JSON-formatted logging with contextual information,
credential masking, and integration with Python's standard
logging module.
"""

import logging
import logging.handlers
import re
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor

from solar_validation.config.settings import LogFormat, get_settings


# Patterns for masking credentials and contact details
SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Bearer tokens
    (re.compile(r"\bBearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [TOKEN-MASKED]"),
    # API keys in key=value or key: value form
    (
        re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[A-Za-z0-9\-_]{8,}", re.IGNORECASE),
        r"\1[API-KEY-MASKED]",
    ),
    # Email addresses
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"), "[EMAIL-MASKED]"),
    # Phone numbers
    (re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"), "[PHONE-MASKED]"),
]

# Event keys whose values are always redacted
SECRET_KEYS = frozenset({"api_key", "apikey", "bearer_token", "bearertoken", "authorization"})


def _mask_string(value: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def mask_secrets(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Mask credentials and contact details in log entries.

    Args:
        logger: Logger instance.
        method_name: Name of the logging method.
        event_dict: The event dictionary to process.

    Returns:
        EventDict with secrets masked.
    """
    settings = get_settings()
    if not settings.logging.mask_secrets:
        return event_dict

    def mask_value(key: str | None, value: Any) -> Any:
        if key is not None and key.lower() in SECRET_KEYS:
            return "[MASKED]"
        if isinstance(value, str):
            return _mask_string(value)
        if isinstance(value, dict):
            return {k: mask_value(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(mask_value(None, item) for item in value)
        return value

    return {key: mask_value(key, val) for key, val in event_dict.items()}


def add_timestamp(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO-8601 timestamp to log entries."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def add_service_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add service metadata to log entries."""
    settings = get_settings()
    event_dict["service"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.app_env.value
    return event_dict


def add_caller_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add caller information to log entries."""
    settings = get_settings()
    if not settings.logging.include_caller:
        return event_dict

    record = event_dict.get("_record")
    if record:
        event_dict["caller"] = {
            "filename": record.filename,
            "function": record.funcName,
            "line": record.lineno,
            "module": record.module,
        }
    return event_dict


class SecretFilter(logging.Filter):
    """
    Logging filter that masks credentials in log records.

    Applies the secret masking patterns to the message and string
    arguments of records emitted by non-structlog loggers.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        settings = get_settings()
        if not settings.logging.mask_secrets:
            return True

        if isinstance(record.msg, str):
            record.msg = _mask_string(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                _mask_string(arg) if isinstance(arg, str) else arg for arg in record.args
            )

        return True


def get_json_processors() -> list[Processor]:
    """
    Get processors for JSON log output.

    Returns:
        List of structlog processors for JSON formatting.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_timestamp,
        add_service_info,
        add_caller_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
        mask_secrets,
        structlog.processors.JSONRenderer(),
    ]


def get_console_processors() -> list[Processor]:
    """
    Get processors for console log output.

    Returns:
        List of structlog processors for console formatting.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
        mask_secrets,
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(stream: TextIO | None = None) -> None:
    """
    Configure the logging system with structlog.

    Sets up both structlog and standard library logging with:
    - JSON or console output based on settings
    - Credential masking
    - Console handler and optional rotating file handler

    Args:
        stream: Console stream, stdout by default.
    """
    settings = get_settings()

    log_level = getattr(logging, settings.logging.level.value)

    if settings.logging.format == LogFormat.JSON:
        processors = get_json_processors()
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        processors = get_console_processors()
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            add_timestamp,
            add_service_info,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.processors.format_exc_info,
            mask_secrets,
        ],
        processor=renderer,
    )

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SecretFilter())
    root_logger.addHandler(console_handler)

    log_file = settings.logging.file_path
    if log_file is not None:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=settings.logging.file_max_size_mb * 1024 * 1024,
            backupCount=settings.logging.file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SecretFilter())
        root_logger.addHandler(file_handler)

    # Set levels for noisy third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        Configured structlog BoundLogger instance.
    """
    return structlog.get_logger(name)
