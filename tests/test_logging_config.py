"""Tests for structured logging, evaluation context and performance timing."""

import json
import logging
import sys
import time

import pytest

from src.logging_config.config import (
    DEFAULT_LOGGING_CONFIG,
    FORMAT_ENV_VAR,
    LEVEL_ENV_VAR,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from src.logging_config.context import (
    EvaluationContext,
    generate_evaluation_id,
    get_context_dict,
    get_evaluation_id,
    get_workspace_id,
)
from src.logging_config.performance import log_performance
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
    resolve_config,
)

PERF_LOGGER = "flowsight.tests.perf"


def _record(msg="test", level=logging.INFO, name="test", lineno=1, exc_info=None):
    return logging.LogRecord(
        name=name, level=level, pathname="test.py",
        lineno=lineno, msg=msg, args=(), exc_info=exc_info,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv(LEVEL_ENV_VAR, raising=False)
    monkeypatch.delenv(FORMAT_ENV_VAR, raising=False)


# ── Config ───────────────────────────────────────────────────────────


class TestLoggingConfig:
    def test_defaults(self):
        assert DEFAULT_LOGGING_CONFIG.level == LogLevel.INFO
        assert DEFAULT_LOGGING_CONFIG.format == LogFormat.JSON
        assert DEFAULT_LOGGING_CONFIG.service_name == "flowsight"
        assert DEFAULT_LOGGING_CONFIG.slow_threshold_ms == 250.0

    def test_enum_values(self):
        assert LogFormat("console") == LogFormat.CONSOLE
        assert LogLevel.WARNING.value == "WARNING"


# ── Evaluation context ───────────────────────────────────────────────


class TestEvaluationContext:
    def test_generate_evaluation_id_unique(self):
        ids = {generate_evaluation_id() for _ in range(100)}
        assert len(ids) == 100
        assert len(generate_evaluation_id().split("-")) == 5

    def test_sets_and_clears_ids(self):
        with EvaluationContext(evaluation_id="eval-1", workspace_id="ws_1"):
            assert get_evaluation_id() == "eval-1"
            assert get_workspace_id() == "ws_1"
        assert get_evaluation_id() == ""
        assert get_workspace_id() == ""

    def test_auto_generates_evaluation_id(self):
        with EvaluationContext() as ctx:
            assert ctx.evaluation_id != ""
            assert get_evaluation_id() == ctx.evaluation_id

    def test_nested_contexts_restore_outer(self):
        with EvaluationContext(evaluation_id="outer", workspace_id="ws_1"):
            with EvaluationContext(evaluation_id="inner", extra={"scenario_id": "baseline"}):
                assert get_evaluation_id() == "inner"
                # Workspace is inherited when the inner context names none
                assert get_workspace_id() == "ws_1"
                assert get_context_dict()["scenario_id"] == "baseline"
            assert get_evaluation_id() == "outer"
            assert "scenario_id" not in get_context_dict()

    def test_extra_merges_with_outer(self):
        with EvaluationContext(extra={"a": 1}):
            with EvaluationContext(extra={"b": 2}):
                ctx = get_context_dict()
                assert ctx["a"] == 1
                assert ctx["b"] == 2

    def test_bind(self):
        with EvaluationContext(evaluation_id="e1") as ctx:
            ctx.bind(stage_id="review", item_count=4)
            d = get_context_dict()
            assert d["stage_id"] == "review"
            assert d["item_count"] == 4
            assert ctx.extra["stage_id"] == "review"
        assert get_context_dict() == {}

    def test_context_dict_empty_outside(self):
        assert get_context_dict() == {}

    def test_elapsed_ms(self):
        with EvaluationContext() as ctx:
            time.sleep(0.01)
            assert ctx.elapsed_ms >= 10


# ── Formatters ───────────────────────────────────────────────────────


class TestStructuredFormatter:
    def test_formats_as_json(self):
        parsed = json.loads(StructuredFormatter().format(_record("hello world")))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert parsed["service"] == "flowsight"
        assert "timestamp" in parsed

    def test_custom_service_name(self):
        parsed = json.loads(StructuredFormatter(service_name="ops").format(_record()))
        assert parsed["service"] == "ops"

    def test_caller_info_toggle(self):
        with_caller = json.loads(StructuredFormatter(include_caller=True).format(_record(lineno=42)))
        assert with_caller["line"] == 42
        assert "function" in with_caller
        without = json.loads(StructuredFormatter(include_caller=False).format(_record(lineno=42)))
        assert "line" not in without
        assert "module" not in without

    def test_includes_evaluation_context(self):
        with EvaluationContext(evaluation_id="ctx-test", workspace_id="ws_9"):
            parsed = json.loads(StructuredFormatter().format(_record()))
        assert parsed["evaluation_id"] == "ctx-test"
        assert parsed["workspace_id"] == "ws_9"

    def test_formats_exception(self):
        try:
            raise ValueError("bad policy")
        except ValueError:
            record = _record("failed", level=logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["exception"]["type"] == "ValueError"
        assert "bad policy" in parsed["exception"]["message"]
        assert "Traceback" in parsed["exception"]["traceback"]

    def test_includes_known_extra_fields(self):
        record = _record()
        record.duration_ms = 42.5
        record.scenario_id = "outage_review"
        record.unrelated = "dropped"
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["duration_ms"] == 42.5
        assert parsed["scenario_id"] == "outage_review"
        assert "unrelated" not in parsed


class TestConsoleFormatter:
    def test_readable_output(self):
        output = ConsoleFormatter().format(_record("hello", name="src.flow_metrics.engine"))
        assert "src.flow_metrics.engine" in output
        assert "hello" in output
        assert "INFO" in output

    def test_includes_context(self):
        with EvaluationContext(evaluation_id="abc"):
            output = ConsoleFormatter().format(_record())
        assert "evaluation_id=abc" in output

    def test_color_codes(self):
        output = ConsoleFormatter().format(_record("error", level=logging.ERROR))
        assert "\033[31m" in output


# ── Setup ────────────────────────────────────────────────────────────


class TestResolveConfig:
    def test_no_overrides(self):
        assert resolve_config() == DEFAULT_LOGGING_CONFIG

    def test_env_level_override(self, monkeypatch):
        monkeypatch.setenv(LEVEL_ENV_VAR, "debug")
        config = resolve_config(LoggingConfig(level=LogLevel.ERROR))
        assert config.level == LogLevel.DEBUG

    def test_env_format_override(self, monkeypatch):
        monkeypatch.setenv(FORMAT_ENV_VAR, "CONSOLE")
        config = resolve_config(LoggingConfig(format=LogFormat.JSON))
        assert config.format == LogFormat.CONSOLE

    def test_unknown_env_values_ignored(self, monkeypatch):
        monkeypatch.setenv(LEVEL_ENV_VAR, "LOUD")
        monkeypatch.setenv(FORMAT_ENV_VAR, "xml")
        assert resolve_config() == DEFAULT_LOGGING_CONFIG


class TestConfigureLogging:
    def test_single_root_handler(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert len(restore_root_logger.handlers) == 1

    def test_json_format(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_console_format(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_sets_level_and_returns_effective_config(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv(LEVEL_ENV_VAR, "DEBUG")
        effective = configure_logging(LoggingConfig(level=LogLevel.ERROR))
        assert effective.level == LogLevel.DEBUG
        assert restore_root_logger.level == logging.DEBUG

    def test_quiets_noisy_loggers(self, restore_root_logger):
        configure_logging(LoggingConfig(quiet_loggers=("chatty.lib",)))
        assert logging.getLogger("chatty.lib").level == logging.WARNING

    def test_get_logger(self):
        logger = get_logger("src.simulation.engine")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "src.simulation.engine"


# ── Performance ──────────────────────────────────────────────────────


class TestLogPerformance:
    def test_returns_result_and_logs_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger=PERF_LOGGER)

        @log_performance(threshold_ms=10_000, logger_name=PERF_LOGGER)
        def fast():
            return 42

        assert fast() == 42
        records = [r for r in caplog.records if r.name == PERF_LOGGER]
        assert records[-1].levelno == logging.DEBUG
        assert "completed in" in records[-1].getMessage()
        assert records[-1].duration_ms >= 0

    def test_slow_call_warns(self, caplog):
        caplog.set_level(logging.DEBUG, logger=PERF_LOGGER)

        @log_performance(threshold_ms=0, logger_name=PERF_LOGGER)
        def slow():
            return "ok"

        slow()
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings
        assert warnings[-1].getMessage().startswith("Slow evaluation:")

    def test_failure_logged_and_reraised(self, caplog):
        caplog.set_level(logging.DEBUG, logger=PERF_LOGGER)

        @log_performance(threshold_ms=10_000, logger_name=PERF_LOGGER)
        def failing():
            raise ValueError("broken history")

        with pytest.raises(ValueError, match="broken history"):
            failing()
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert "failed after" in errors[0].getMessage()
        assert "ValueError" in errors[0].getMessage()

    def test_include_args_summarizes_sequences(self, caplog):
        caplog.set_level(logging.DEBUG, logger=PERF_LOGGER)

        @log_performance(threshold_ms=10_000, logger_name=PERF_LOGGER, include_args=True)
        def evaluate(items, now=None):
            return len(items)

        assert evaluate([1, 2, 3], now="2026-02-15") == 3
        summary = caplog.records[-1].extra_data
        assert "<list len=3>" in summary
        assert "now='2026-02-15'" in summary

    def test_preserves_metadata(self):
        @log_performance()
        def compute():
            """Compute a snapshot."""

        assert compute.__name__ == "compute"
        assert compute.__doc__ == "Compute a snapshot."
