"""
Logging.

structlog on top of stdlib logging, configured from
config/settings/logging.yaml. Modules get a logger with
get_logger(__name__) and pass structured fields through extra:

    logger = get_logger(__name__)
    logger.info("Note created", extra={"note_id": note.id})

Every record carries timestamp, level, logger, event, func_name and lineno,
plus whatever is bound in the structlog contextvars. RequestContextMiddleware
binds request_id, method, path and source="api" for HTTP requests; the CLI
binds source="cli" through bind_source().

Records go to stdout (JSON or coloured console) and to a rotating JSONL file,
logs/system.jsonl by default. Audit records from the activity recorder land
in the same file under logger=notevault.backend.core.activity.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import Processor

from notevault.backend.core.config import find_project_root, get_app_config
from notevault.backend.core.config_schema import LoggingSchema

VALID_SOURCES = frozenset({"api", "cli", "internal", "unknown"})

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


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
    ]


def _formatter(renderer: Processor, pre_chain: list[Processor]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )


def _file_handler(config: LoggingSchema, formatter: logging.Formatter) -> logging.Handler:
    file_config = config.handlers.file
    log_path = find_project_root() / file_config.path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config.max_bytes,
        backupCount=file_config.backup_count,
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
    Configure structlog and the root logger.

    Arguments left as None fall back to logging.yaml.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: 'json' or 'console' for stdout; the file is always JSON
        enable_console: Write to stdout
        enable_file_logging: Write to the rotating JSONL file
    """
    config = get_app_config().logging

    level = level or config.level
    format_type = format_type or config.format
    if enable_console is None:
        enable_console = config.handlers.console.enabled
    if enable_file_logging is None:
        enable_file_logging = config.handlers.file.enabled

    pre_chain = _shared_processors()
    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = _formatter(structlog.processors.JSONRenderer(), pre_chain)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        if format_type == "console":
            console.setFormatter(
                _formatter(structlog.dev.ConsoleRenderer(colors=True), pre_chain)
            )
        else:
            console.setFormatter(json_formatter)
        root.addHandler(console)

    if enable_file_logging:
        root.addHandler(_file_handler(config, json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def bind_source(source: str) -> None:
    """
    Tag every following record in this context with a source.

    Raises:
        ValueError: If source is not one of VALID_SOURCES
    """
    if source not in VALID_SOURCES:
        raise ValueError(f"Unknown log source: {source}")
    structlog.contextvars.bind_contextvars(source=source)
