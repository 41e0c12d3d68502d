"""Logging Configuration.

Settings for structured logging of engine evaluations: levels, output
format, and the slow-evaluation threshold.
"""

from dataclasses import dataclass
from enum import Enum


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


LEVEL_ENV_VAR = "FLOWSIGHT_LOG_LEVEL"
FORMAT_ENV_VAR = "FLOWSIGHT_LOG_FORMAT"


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    slow_threshold_ms: float = 250.0
    service_name: str = "flowsight"
    quiet_loggers: tuple = ("numexpr", "matplotlib")


DEFAULT_LOGGING_CONFIG = LoggingConfig()
