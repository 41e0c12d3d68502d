"""Flow Metrics - Data Models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple

from src.workflow.graph import PolicyGraph
from src.workflow.models import WorkflowPolicy, to_plain

from .config import (
    DEFAULT_FLOW_WINDOW,
    AnomalyCode,
    AnomalySeverity,
    FlowWindow,
    InsightCode,
    InsightTone,
    StageZone,
)


@dataclass(frozen=True)
class ZonePolicy:
    """Stage -> zone classification; unlisted stages are queue stages."""

    zone_by_stage_id: Mapping[str, StageZone] = field(default_factory=dict)

    def zone_for(self, stage_id: str) -> StageZone:
        zone = self.zone_by_stage_id.get(stage_id)
        return StageZone(zone) if zone is not None else StageZone.QUEUE

    @classmethod
    def from_policy(cls, policy: WorkflowPolicy) -> "ZonePolicy":
        """Start stages queue, terminal stages done, everything else active."""
        graph = PolicyGraph.from_policy(policy)
        starts = set(graph.start_stage_ids)
        zones: Dict[str, StageZone] = {}
        for stage in graph.stages:
            if stage.terminal:
                zones[stage.id] = StageZone.DONE
            elif stage.id in starts:
                zones[stage.id] = StageZone.QUEUE
            else:
                zones[stage.id] = StageZone.ACTIVE
        return cls(zone_by_stage_id=zones)


@dataclass(frozen=True)
class TimelineSegment:
    stage_id: str
    entered_at: datetime
    dwell_hours: float
    zone: StageZone
    exited_at: Optional[datetime] = None


@dataclass(frozen=True)
class ItemTimeline:
    """Reconstructed lifecycle of one item.

    Lead/cycle/active/queue hours are only set once the item reached a
    done-zone stage; active and queue time stop counting at that point.
    """

    item_id: str
    segments: Tuple[TimelineSegment, ...] = ()
    first_seen_at: Optional[datetime] = None
    first_active_at: Optional[datetime] = None
    first_done_at: Optional[datetime] = None
    lead_hours: Optional[float] = None
    cycle_hours: Optional[float] = None
    active_hours: Optional[float] = None
    queue_hours: Optional[float] = None


@dataclass(frozen=True)
class DurationStats:
    count: int = 0
    avg_hours: float = 0.0
    trimmed_avg_hours: float = 0.0
    p50_hours: float = 0.0
    p75_hours: float = 0.0
    p90_hours: float = 0.0
    p95_hours: float = 0.0
    iqr_hours: float = 0.0


@dataclass(frozen=True)
class ThroughputStats:
    last_short: int = 0
    prior_short: int = 0
    last_lookback: int = 0
    per_week: float = 0.0
    delta_pct: float = 0.0


@dataclass(frozen=True)
class EfficiencyStats:
    efficiency: float = 0.0
    avg_active_hours: float = 0.0
    avg_lead_hours: float = 0.0
    delta_pct: float = 0.0


@dataclass(frozen=True)
class StageDwellStats:
    stage_id: str
    zone: StageZone
    count: int
    avg_dwell_hours: float
    p50_dwell_hours: float
    p90_dwell_hours: float
    avg_lead_share: float


@dataclass(frozen=True)
class TrendStats:
    lead_time_delta_pct: float = 0.0
    cycle_time_delta_pct: float = 0.0
    throughput_delta_pct: float = 0.0
    efficiency_delta_pct: float = 0.0
    volatility_score: float = 0.0


@dataclass(frozen=True)
class FlowAnomaly:
    code: AnomalyCode
    severity: AnomalySeverity
    score: int
    message: str


@dataclass(frozen=True)
class FlowInsight:
    tone: InsightTone
    code: InsightCode
    title: str
    detail: str


@dataclass(frozen=True)
class FlowMetricsSnapshot:
    """Population flow statistics for one evaluation instant."""

    window: FlowWindow = DEFAULT_FLOW_WINDOW
    lead_time: DurationStats = field(default_factory=DurationStats)
    cycle_time: DurationStats = field(default_factory=DurationStats)
    throughput: ThroughputStats = field(default_factory=ThroughputStats)
    efficiency: EfficiencyStats = field(default_factory=EfficiencyStats)
    stage_dwell: Tuple[StageDwellStats, ...] = ()
    trends: TrendStats = field(default_factory=TrendStats)
    anomalies: Tuple[FlowAnomaly, ...] = ()
    recent_done_item_ids: Tuple[str, ...] = ()

    def dwell_for(self, stage_id: str) -> Optional[StageDwellStats]:
        for entry in self.stage_dwell:
            if entry.stage_id == stage_id:
                return entry
        return None

    def to_dict(self) -> dict:
        return to_plain(self)
