"""Workflow Signals: live SLA, stuck, WIP, health and bottleneck diagnostics."""

from .config import (
    BottleneckReasonCode,
    DEFAULT_SIGNALS_CONFIG,
    SignalTone,
    SignalsConfig,
    SlaSeverity,
    StuckReason,
    TimeSource,
    WipSeverity,
)
from .models import (
    BottleneckIndex,
    BottleneckLikelihood,
    BottleneckReason,
    SlaRollup,
    SlaStatus,
    StageHealth,
    StageSummary,
    StageWip,
    StuckRollup,
    StuckStatus,
    TimeInStage,
    WipRollup,
    WorkflowSignals,
)
from .time_in_stage import resolve_time_in_stage
from .sla import evaluate_sla, rollup_sla, sla_severity, sla_severity_score
from .stuck import detect_stuck, rollup_stuck, stuck_severity
from .health import compute_stage_health, worst_stages
from .wip import compute_stage_wip, propagate_overload, rollup_wip, wip_severity_score
from .throughput import estimate_stage_throughput
from .bottleneck import (
    compute_bottleneck_index,
    compute_bottleneck_likelihood,
    low_throughput_penalty,
)
from .tones import bottleneck_tone, sla_tone, stuck_tone, wip_tone
from .engine import SignalsEngine, compute_workflow_signals

__all__ = [
    # Config
    "BottleneckReasonCode",
    "DEFAULT_SIGNALS_CONFIG",
    "SignalTone",
    "SignalsConfig",
    "SlaSeverity",
    "StuckReason",
    "TimeSource",
    "WipSeverity",
    # Models
    "BottleneckIndex",
    "BottleneckLikelihood",
    "BottleneckReason",
    "SlaRollup",
    "SlaStatus",
    "StageHealth",
    "StageSummary",
    "StageWip",
    "StuckRollup",
    "StuckStatus",
    "TimeInStage",
    "WipRollup",
    "WorkflowSignals",
    # Per-item
    "resolve_time_in_stage",
    "evaluate_sla",
    "rollup_sla",
    "sla_severity",
    "sla_severity_score",
    "detect_stuck",
    "rollup_stuck",
    "stuck_severity",
    # Per-stage
    "compute_stage_health",
    "worst_stages",
    "compute_stage_wip",
    "propagate_overload",
    "rollup_wip",
    "wip_severity_score",
    "estimate_stage_throughput",
    # Bottleneck
    "compute_bottleneck_index",
    "compute_bottleneck_likelihood",
    "low_throughput_penalty",
    # Tones
    "bottleneck_tone",
    "sla_tone",
    "stuck_tone",
    "wip_tone",
    # Engine
    "SignalsEngine",
    "compute_workflow_signals",
]
