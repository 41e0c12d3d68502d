"""Workflow Signals Configuration.

Severity vocabularies, thresholds and the engine configuration for live
workflow diagnostics (SLA, stuck items, WIP, stage health, bottlenecks).
"""

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Enums
# =============================================================================

class SlaSeverity(str, Enum):
    """Per-item SLA tier; also used as the coarse stuck tier."""
    NONE = "none"
    WARNING = "warning"
    BREACH = "breach"
    CRITICAL = "critical"


class WipSeverity(str, Enum):
    """Stage WIP overload tier."""
    NONE = "none"
    SOFT = "soft"
    HARD = "hard"
    CRITICAL = "critical"


class StuckReason(str, Enum):
    """Why an item is considered stuck."""
    SLA_BREACH = "sla_breach"
    APPROVAL_WAIT = "approval_wait"
    NO_PROGRESS = "no_progress"
    POLICY_GAP = "policy_gap"
    NO_OUTGOING_TRANSITION = "no_outgoing_transition"
    STAGE_OVERLOAD = "stage_overload"
    UNKNOWN = "unknown"


class TimeSource(str, Enum):
    """Which input the stage-entry instant was resolved from."""
    STAGE_ENTERED_AT = "stage_entered_at"
    EVENT_STREAM = "event_stream"
    UPDATED_AT_FALLBACK = "updated_at_fallback"


class BottleneckReasonCode(str, Enum):
    """Contributors to the bottleneck index."""
    WIP_OVER = "WIP_OVER"
    SLA_PRESSURE = "SLA_PRESSURE"
    STUCK_PRESSURE = "STUCK_PRESSURE"
    HEALTH_GAP = "HEALTH_GAP"
    LOW_THROUGHPUT = "LOW_THROUGHPUT"


class SignalTone(str, Enum):
    """Presentation tone for a signal badge."""
    NEUTRAL = "neutral"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


# =============================================================================
# Constants
# =============================================================================

# Score bonus added to the SLA score per stuck reason
STUCK_REASON_BONUS = {
    StuckReason.SLA_BREACH: 0,
    StuckReason.APPROVAL_WAIT: 0,
    StuckReason.NO_PROGRESS: 0,
    StuckReason.POLICY_GAP: 15,
    StuckReason.NO_OUTGOING_TRANSITION: 15,
    StuckReason.STAGE_OVERLOAD: 20,
    StuckReason.UNKNOWN: 0,
}

# Stage ids containing these fragments are treated as review/approval steps
REVIEW_LIKE_MARKERS = ("review", "approve")

# Health penalty weights
HEALTH_WEIGHTS = {
    "sla_critical": 12,
    "sla_breach": 6,
    "sla_warning": 2,
    "stuck_critical": 15,
    "stuck": 7,
}

# Bottleneck index component weights
BOTTLENECK_INDEX_WEIGHTS = {
    BottleneckReasonCode.WIP_OVER: 0.35,
    BottleneckReasonCode.SLA_PRESSURE: 0.2,
    BottleneckReasonCode.STUCK_PRESSURE: 0.2,
    BottleneckReasonCode.HEALTH_GAP: 0.15,
    BottleneckReasonCode.LOW_THROUGHPUT: 0.1,
}


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class SignalsConfig:
    """Thresholds for live workflow diagnostics."""

    # SLA tiers as multiples of the stage SLA
    sla_warning_ratio: float = 0.8
    sla_breach_ratio: float = 1.0
    sla_critical_ratio: float = 1.5

    # Stuck classification (hours)
    approval_wait_hours: float = 24.0
    overload_age_hours: float = 24.0
    min_no_progress_hours: float = 24.0
    critical_age_hours: float = 72.0

    # WIP tiers as count / limit
    wip_soft_ratio: float = 0.85
    wip_hard_ratio: float = 1.0
    wip_critical_ratio: float = 1.25

    # Share of a saturated stage's WIP score pushed to each predecessor
    propagation_factor: float = 0.3

    # Bottleneck
    likelihood_top_stage_min: int = 20
    reason_min_points: int = 5
    throughput_lookback_hours: float = 72.0
    worst_stages_top_n: int = 3


DEFAULT_SIGNALS_CONFIG = SignalsConfig()
