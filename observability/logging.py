"""Logging setup for the RCA service.

Console output is human-readable (optionally colored) or JSON; the optional
log file is always JSON. Context attached through ``StructuredLogger`` travels
as ``ctx_*`` record attributes and is rendered by both formatters.
"""

from __future__ import annotations
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

SERVICE_NAME = "rca-knowledge-base"
CONTEXT_PREFIX = "ctx_"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "fastapi", "aiohttp", "httpx", "urllib3", "asyncpg")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the ``ctx_*`` attributes of a record, without the prefix."""
    return {
        key[len(CONTEXT_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(CONTEXT_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the record's context under ``context``."""

    def __init__(self, service_name: str = SERVICE_NAME, environment: Optional[str] = None):
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        if self.environment:
            entry["environment"] = self.environment

        context = record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """``time | LEVEL | logger | message key=value ...`` for terminals."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level:8}{self.RESET}"
        else:
            level = f"{level:8}"

        message = f"{timestamp} | {level} | {record.name} | {record.getMessage()}"
        context = record_context(record)
        if context:
            message += " " + " ".join(f"{k}={v}" for k, v in context.items())
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_json: bool = False,
    environment: Optional[str] = None,
    service_name: str = SERVICE_NAME
) -> None:
    """Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for an additional JSON log file
        use_json: JSON instead of the colored console format
        environment: Deployment environment added to JSON entries
        service_name: Service name added to JSON entries
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler(sys.stdout)
    if use_json:
        console_handler.setFormatter(JSONFormatter(service_name, environment))
    else:
        console_handler.setFormatter(ColoredFormatter(sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter(service_name, environment))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


class StructuredLogger:
    """Logger wrapper that attaches keyword context to every record."""

    def __init__(self, name: str, **default_context):
        self.logger = logging.getLogger(name)
        self.default_context = default_context

    def _extra(self, context: Dict[str, Any]) -> Dict[str, Any]:
        merged = {**self.default_context, **context}
        return {f"{CONTEXT_PREFIX}{k}": v for k, v in merged.items()}

    def debug(self, message: str, **context) -> None:
        self.logger.debug(message, extra=self._extra(context))

    def info(self, message: str, **context) -> None:
        self.logger.info(message, extra=self._extra(context))

    def warning(self, message: str, **context) -> None:
        self.logger.warning(message, extra=self._extra(context))

    def error(self, message: str, **context) -> None:
        self.logger.error(message, extra=self._extra(context))


def get_structured_logger(name: str, **default_context) -> StructuredLogger:
    return StructuredLogger(name, **default_context)
