"""Structured Logging & Evaluation Tracing.

Provides structured JSON logging, evaluation ID propagation,
and performance timing for the flowsight engines.
"""

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import EvaluationContext, generate_evaluation_id, get_context_dict
from src.logging_config.performance import log_performance
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
    resolve_config,
)

__all__ = [
    "DEFAULT_LOGGING_CONFIG",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "EvaluationContext",
    "generate_evaluation_id",
    "get_context_dict",
    "log_performance",
    "ConsoleFormatter",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "resolve_config",
]
