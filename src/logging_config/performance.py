"""Performance Logging.

Decorator for timing engine entry points and flagging slow evaluations.
Timings are only logged; they never feed back into computed results.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG


def log_performance(
    threshold_ms: Optional[float] = None,
    logger_name: Optional[str] = None,
    include_args: bool = False,
) -> Callable:
    """Decorator that logs function execution time.

    Logs all calls at DEBUG level, slow calls (above threshold) at WARNING
    and failures at ERROR before re-raising.

    Args:
        threshold_ms: Slow operation threshold in milliseconds.
                     Defaults to config.slow_threshold_ms.
        logger_name: Custom logger name. Defaults to function's module.
        include_args: Whether to include a short argument summary.

    Example:
        @log_performance(threshold_ms=100)
        def compute(self, policy, items, now):
            ...
    """
    if threshold_ms is None:
        threshold_ms = DEFAULT_LOGGING_CONFIG.slow_threshold_ms

    def decorator(func: Callable) -> Callable:
        _logger = logging.getLogger(logger_name or func.__module__)
        func_name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                _logger.error(
                    f"{func_name} failed after {duration_ms:.1f}ms: {type(exc).__name__}",
                    extra={"duration_ms": round(duration_ms, 2), "operation": func_name},
                )
                raise
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                extra = {"duration_ms": round(duration_ms, 2), "operation": func_name}
                if include_args:
                    extra["extra_data"] = _summarize_args(args, kwargs)

                if duration_ms >= threshold_ms:
                    _logger.warning(
                        f"Slow evaluation: {func_name} took {duration_ms:.1f}ms",
                        extra=extra,
                    )
                else:
                    _logger.debug(
                        f"{func_name} completed in {duration_ms:.1f}ms",
                        extra=extra,
                    )

        return wrapper

    return decorator


def _summarize_args(args: tuple, kwargs: dict, max_len: int = 80) -> str:
    """Short summary of call arguments; sequences are reported by length."""
    parts = []
    for arg in args[:4]:
        parts.append(_describe(arg, max_len))
    if len(args) > 4:
        parts.append(f"... +{len(args) - 4} more args")
    for key, val in list(kwargs.items())[:4]:
        parts.append(f"{key}={_describe(val, max_len)}")
    return ", ".join(parts)


def _describe(value: Any, max_len: int) -> str:
    if isinstance(value, (list, tuple, dict, set)):
        return f"<{type(value).__name__} len={len(value)}>"
    rep = repr(value)
    if len(rep) > max_len:
        rep = rep[:max_len] + "..."
    return rep
