"""
Centralized Logging Configuration.

All modules must use this logging setup. Do not create standalone loggers.
Configuration is loaded from config/settings/logging.yaml.

Structured fields in every JSON log record:
    timestamp   - ISO 8601 UTC timestamp
    level       - Log level (debug, info, warning, error, critical)
    logger      - Module path (e.g., botbuilder.telegram.dispatcher)
    event       - Log message
    func_name   - Function that emitted the log
    lineno      - Line number in source file
    source      - Origin context, set explicitly (web, cli, telegram, internal)
    request_id  - Request correlation ID (when in HTTP request context)

Bot tokens are redacted from every string field before rendering, so a
webhook URL or an aiogram error message never puts a token in the log.

Usage:
    from botbuilder.backend.core.logging import get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Message", extra={"key": "value"})

    # Explicit source for non-HTTP contexts
    log_with_source(logger, "telegram", "info", "Update received", chat_id=123)

Log File:
    logs/system.jsonl: one file for all records, filter by the "source" field
"""

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from botbuilder.backend.core.config import find_project_root, load_yaml_config

VALID_SOURCES = frozenset({
    "web",
    "cli",
    "telegram",
    "api",
    "internal",
})
"""
Recognized log source values.
Source is always set explicitly by the caller. Never guessed from logger names.
"""

# <bot id>:<secret>, as issued by @BotFather
BOT_TOKEN_PATTERN = re.compile(r"(\d{5,}):[A-Za-z0-9_-]{30,}")

# Libraries that log every request or statement at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiogram.event")

_logging_config: dict[str, Any] | None = None


def _load_logging_config() -> dict[str, Any]:
    """
    Load logging configuration from config/settings/logging.yaml.

    Raises:
        FileNotFoundError: If logging.yaml does not exist
    """
    global _logging_config
    if _logging_config is None:
        _logging_config = load_yaml_config("logging.yaml")
    return _logging_config


def _resolve_log_path(configured_path: str) -> Path:
    """Resolve the log file path relative to project root."""
    return find_project_root() / configured_path


def redact_token(text: str) -> str:
    """Replace bot tokens in `text` with their bot id: 123456:AA... -> 123456:***."""
    return BOT_TOKEN_PATTERN.sub(r"\1:***", text)


def redact_bot_tokens(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Structlog processor applying redact_token to string values, including those in `extra`."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_token(value)
        elif isinstance(value, dict):
            event_dict[key] = {
                k: redact_token(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        redact_bot_tokens,
    ]


def _console_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def _file_handler(file_config: dict[str, Any], formatter: logging.Formatter) -> logging.Handler:
    log_path = _resolve_log_path(file_config["path"])
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config["max_bytes"],
        backupCount=file_config["backup_count"],
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Parameters passed to this function override logging.yaml.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Console output format ('json' or 'console'). The file is always JSON.
        enable_console: Whether to log to stdout
        enable_file_logging: Whether to write the JSONL file
    """
    config = _load_logging_config()
    handlers_config = config["handlers"]

    if level is None:
        level = config["level"]
    if format_type is None:
        format_type = config["format"]
    if enable_console is None:
        enable_console = handlers_config["console"]["enabled"]
    if enable_file_logging is None:
        enable_file_logging = handlers_config["file"]["enabled"]

    shared_processors = _shared_processors()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    if format_type == "console":
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True),
            foreign_pre_chain=shared_processors,
        )
    else:
        console_formatter = json_formatter

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        root_logger.addHandler(_console_handler(console_formatter))
    if enable_file_logging:
        root_logger.addHandler(_file_handler(handlers_config["file"], json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log a message with an explicit source.

    Use this outside of HTTP request context, e.g. in the Telegram
    conversation engine or CLI commands.

    Raises:
        AttributeError: If level is not a valid log level

    Example:
        log_with_source(logger, "telegram", "info", "Reply sent", chat_id=42)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, source=source, **kwargs)
