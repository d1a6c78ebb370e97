"""
app/core/logging.py

Purpose: Logging configuration

- JSON lines in production, colored single lines elsewhere
- Per-message context (user, state, transaction, reseller endpoint)
  attached with LogContext and rendered by both formatters
"""

import logging
import sys
import json
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from app.core.config import Settings, settings


# Context attribute -> short label used by the development formatter
CONTEXT_LABELS = {
    "user_id": "user",
    "state": "state",
    "transaction_id": "txn",
    "endpoint": "endpoint",
}

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite", "uvicorn.access")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("lycapay_log_context", default={})


class ContextFilter(logging.Filter):
    """
    Copies the current task's LogContext fields onto each record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record, for log shipping in production.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        for field in CONTEXT_LABELS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development environment.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        message = f"[{timestamp}] {level} {record.name}: {record.getMessage()}"

        context_parts = [
            f"{label}={getattr(record, field)}"
            for field, label in CONTEXT_LABELS.items()
            if getattr(record, field, None) is not None
        ]
        if context_parts:
            message += f" [{', '.join(context_parts)}]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Installs a single stdout handler on the root logger.
    """
    config = config or settings
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    if config.is_production:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter(use_color=sys.stdout.isatty()))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("lycapay")
    logger.info(f"Logging configured (environment={config.ENVIRONMENT}, level={config.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the "lycapay" namespace, usually called with __name__.
    """
    return logging.getLogger(f"lycapay.{name}")


class LogContext:
    """
    Context manager for adding structured context to logs.

    Usage:
        with LogContext(user_id="256772123456", state="awaiting_number"):
            logger.info("Processing number input")

    Fields live in a ContextVar, so concurrent asyncio tasks each see their
    own context. Nested contexts stack; the innermost value wins for a
    repeated key.
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
