"""Logging Setup.

One-call configuration for structured logging of the flowsight engines.
JSON output for pipelines and services, colored console for local runs.
"""

import dataclasses
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from src.logging_config.config import (
    DEFAULT_LOGGING_CONFIG,
    FORMAT_ENV_VAR,
    LEVEL_ENV_VAR,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from src.logging_config.context import get_context_dict

# Attributes copied from a LogRecord into the JSON payload when present.
RECORD_EXTRA_KEYS = (
    "duration_ms",
    "operation",
    "stage_id",
    "scenario_id",
    "item_count",
    "extra_data",
)


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter.

    Produces one JSON object per log line with consistent fields:
    timestamp, level, logger, message, plus any bound evaluation context.
    """

    def __init__(self, service_name: str = "flowsight", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if self.include_caller:
            log_entry["module"] = record.module
            log_entry["function"] = record.funcName
            log_entry["line"] = record.lineno

        ctx = get_context_dict()
        if ctx:
            log_entry.update(ctx)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key in RECORD_EXTRA_KEYS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored console formatter for local runs."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]

        ctx = get_context_dict()
        ctx_str = ""
        if ctx:
            ctx_str = " [" + ", ".join(f"{k}={v}" for k, v in ctx.items()) + "]"

        line = (
            f"{color}{timestamp} {record.levelname:8s}{self.RESET} "
            f"{record.name}: {record.getMessage()}{ctx_str}"
        )

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)

        return line


def resolve_config(config: Optional[LoggingConfig] = None) -> LoggingConfig:
    """Apply FLOWSIGHT_LOG_LEVEL / FLOWSIGHT_LOG_FORMAT overrides to a config."""
    config = config or DEFAULT_LOGGING_CONFIG

    env_level = os.environ.get(LEVEL_ENV_VAR, "").upper()
    if env_level in LogLevel.__members__:
        config = dataclasses.replace(config, level=LogLevel(env_level))

    env_format = os.environ.get(FORMAT_ENV_VAR, "").lower()
    if env_format in [f.value for f in LogFormat]:
        config = dataclasses.replace(config, format=LogFormat(env_format))

    return config


def configure_logging(config: Optional[LoggingConfig] = None) -> LoggingConfig:
    """Configure structured logging for the flowsight engines.

    Call once at process startup. Sets up the root logger with the
    appropriate formatter (JSON or console) and log level. The engines
    themselves never call this; they only emit through module loggers.

    Args:
        config: Logging configuration. Uses defaults if not provided.
                Level and format can be overridden with the
                FLOWSIGHT_LOG_LEVEL and FLOWSIGHT_LOG_FORMAT env vars.

    Returns:
        The effective configuration after env overrides.
    """
    config = resolve_config(config)

    if config.format == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.value))

    for noisy in config.quiet_loggers:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return config


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name, typically __name__.

    Returns:
        Standard library logger routed through the configured formatter.
    """
    return logging.getLogger(name)
