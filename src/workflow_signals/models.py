"""Workflow Signals - Data Models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from src.workflow.models import to_plain

from .config import (
    BottleneckReasonCode,
    SlaSeverity,
    StuckReason,
    TimeSource,
    WipSeverity,
)


# ── Per-item facts ────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimeInStage:
    """Elapsed time of an item in its current stage."""

    item_id: str
    stage_id: str
    entered_at: datetime
    age_hours: float
    source: TimeSource


@dataclass(frozen=True)
class SlaStatus:
    item_id: str
    stage_id: str
    age_hours: float
    severity: SlaSeverity
    severity_score: int
    sla_hours: Optional[float] = None
    breach_hours: Optional[float] = None


@dataclass(frozen=True)
class StuckStatus:
    item_id: str
    stage_id: str
    age_hours: float
    severity: SlaSeverity
    severity_score: int
    reason: StuckReason


# ── Per-stage aggregates ──────────────────────────────────────────────


@dataclass(frozen=True)
class StageWip:
    stage_id: str
    count: int
    overload: int
    ratio: float
    severity: WipSeverity
    severity_score: int
    wip_limit: Optional[int] = None


@dataclass(frozen=True)
class StageHealth:
    """Health of one stage derived from its items' SLA and stuck facts."""

    stage_id: str
    count: int
    sla_warning: int
    sla_breach: int
    sla_critical: int
    avg_severity_score: float
    stuck_count: int
    critical_stuck_count: int
    health_score: int


# ── Rollups ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WipRollup:
    soft_count: int = 0
    hard_count: int = 0
    critical_count: int = 0
    pressure_score: int = 0
    top_stage: Optional[str] = None


@dataclass(frozen=True)
class SlaRollup:
    warning_count: int = 0
    breach_count: int = 0
    critical_count: int = 0
    pressure_score: int = 0
    top_stage: Optional[str] = None


@dataclass(frozen=True)
class StuckRollup:
    stuck_count: int = 0
    critical_stuck_count: int = 0
    pressure_score: int = 0
    top_stage: Optional[str] = None


@dataclass(frozen=True)
class StageSummary:
    worst_stages: Tuple[str, ...] = ()
    stage_health: Dict[str, StageHealth] = field(default_factory=dict)


@dataclass(frozen=True)
class BottleneckLikelihood:
    likelihood_score: int = 0
    top_stage: Optional[str] = None


@dataclass(frozen=True)
class BottleneckReason:
    code: BottleneckReasonCode
    points: int
    stage_id: Optional[str] = None


@dataclass(frozen=True)
class BottleneckIndex:
    score: int = 0
    top_stage: Optional[str] = None
    low_throughput_penalty: int = 0
    reasons: Tuple[BottleneckReason, ...] = ()


# ── Snapshot ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WorkflowSignals:
    """Full live-diagnostics bundle for one policy/item snapshot.

    ``bottleneck`` blends the likelihood and the index (max score, index
    stage preferred); ``bottleneck_index`` keeps the index on its own.
    Per-item detail is only populated when requested.
    """

    total_items: int
    by_stage_count: Dict[str, int]
    stage_wip: Dict[str, StageWip]
    wip: WipRollup
    propagated_pressure: Dict[str, int]
    throughput: Dict[str, float]
    sla: SlaRollup
    stuck: StuckRollup
    stages: StageSummary
    bottleneck: BottleneckLikelihood
    bottleneck_index: BottleneckIndex
    item_time: Optional[Tuple[TimeInStage, ...]] = None
    item_sla: Optional[Tuple[SlaStatus, ...]] = None
    item_stuck: Optional[Tuple[StuckStatus, ...]] = None

    def to_dict(self) -> dict:
        return to_plain(self)
