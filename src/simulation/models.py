"""Simulation - Data Models.

Scenario knobs are a closed set of frozen dataclasses; a scenario is an
ordered tuple of them. Results mirror baseline and projected metrics with
per-stage detail and driver attribution.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Union

from src.flow_metrics.models import FlowMetricsSnapshot
from src.predictive_risk.models import PredictSummary
from src.workflow.models import WorkflowPolicy, to_plain
from src.workflow_signals.models import WorkflowSignals

from .config import AttributionDriver, KnobKind


# ── Knobs ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CapacityKnob:
    """Multiply capacity of one stage, or of every stage without a stage id."""

    kind: ClassVar[KnobKind] = KnobKind.CAPACITY
    multiplier: float
    stage_id: Optional[str] = None


@dataclass(frozen=True)
class WipLimitKnob:
    """Replace a stage's WIP limit."""

    kind: ClassVar[KnobKind] = KnobKind.WIP_LIMIT
    stage_id: str
    limit: float


@dataclass(frozen=True)
class InfluxKnob:
    """Add items to a stage's queue."""

    kind: ClassVar[KnobKind] = KnobKind.INFLUX
    stage_id: str
    add_count: float


@dataclass(frozen=True)
class OutageKnob:
    """Run a stage at ``multiplier`` capacity for ``days`` of the horizon."""

    kind: ClassVar[KnobKind] = KnobKind.OUTAGE
    stage_id: str
    days: float
    multiplier: float


ScenarioKnob = Union[CapacityKnob, WipLimitKnob, InfluxKnob, OutageKnob]


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    knobs: Tuple[ScenarioKnob, ...] = ()
    horizon_days: Optional[float] = None

    def knobs_of(self, kind: KnobKind) -> Tuple[ScenarioKnob, ...]:
        return tuple(k for k in self.knobs if k.kind == kind)

    def has_kind(self, kind: KnobKind) -> bool:
        return any(k.kind == kind for k in self.knobs)


@dataclass(frozen=True)
class SimInput:
    """Everything a simulation run reads.

    ``by_stage_count`` defaults to the signals' own stage counts.
    """

    policy: WorkflowPolicy
    now: Union[datetime, str]
    signals: WorkflowSignals
    scenario: Scenario
    flow_metrics: Optional[FlowMetricsSnapshot] = None
    predictive_risk: Optional[PredictSummary] = None
    by_stage_count: Optional[Mapping[str, float]] = None

    def stage_counts(self) -> Mapping[str, float]:
        if self.by_stage_count is not None:
            return self.by_stage_count
        return self.signals.by_stage_count


# ── State & projection ────────────────────────────────────────────────


@dataclass(frozen=True)
class SimState:
    horizon_days: int
    by_stage_count: Dict[str, int]
    wip_limit: Dict[str, Optional[int]]
    capacity: Dict[str, float]
    throughput_per_week: Optional[float] = None
    lead_avg_hours: Optional[float] = None
    cycle_avg_hours: Optional[float] = None
    bottleneck_index: Optional[float] = None
    predictive_pressure: Optional[float] = None
    predictive_critical_count: Optional[float] = None
    eta_p50_days: Optional[float] = None
    eta_p90_days: Optional[float] = None
    bottleneck_stage: Optional[str] = None


@dataclass(frozen=True)
class SimMetrics:
    """Portfolio-level outcomes; None where the input carried no figure."""

    throughput_per_week: Optional[float] = None
    lead_avg_hours: Optional[float] = None
    cycle_avg_hours: Optional[float] = None
    bottleneck_index: Optional[float] = None
    predictive_pressure: Optional[float] = None
    predictive_critical_count: Optional[float] = None
    eta_p50_days: Optional[float] = None
    eta_p90_days: Optional[float] = None


@dataclass(frozen=True)
class Projection(SimMetrics):
    bottleneck_stage: Optional[str] = None


@dataclass(frozen=True)
class SimDelta:
    throughput_per_week_delta: float = 0.0
    lead_avg_hours_delta: float = 0.0
    cycle_avg_hours_delta: float = 0.0
    bottleneck_index_delta: float = 0.0
    predictive_pressure_delta: float = 0.0
    predictive_critical_count_delta: float = 0.0
    eta_p50_days_delta: float = 0.0
    eta_p90_days_delta: float = 0.0


@dataclass(frozen=True)
class StageSnapshot:
    count: int
    wip_pressure: float
    capacity: float
    resistance: float
    effective_capacity: float
    wip_limit: Optional[int] = None


@dataclass(frozen=True)
class StageDelta:
    count_delta: int = 0
    wip_pressure_delta: float = 0.0
    effective_capacity_delta: float = 0.0


@dataclass(frozen=True)
class StageProjection:
    stage_id: str
    baseline: StageSnapshot
    projected: StageSnapshot
    delta: StageDelta


@dataclass(frozen=True)
class Attribution:
    driver: AttributionDriver
    impact_score: int
    metrics: Dict[str, float]
    note: str
    stage_id: Optional[str] = None


@dataclass(frozen=True)
class SimResult:
    scenario_id: str
    scenario_name: str
    horizon_days: int
    baseline: SimMetrics = field(default_factory=SimMetrics)
    projected: SimMetrics = field(default_factory=SimMetrics)
    delta: SimDelta = field(default_factory=SimDelta)
    stages: Tuple[StageProjection, ...] = ()
    attribution: Tuple[Attribution, ...] = ()
    notes: Tuple[str, ...] = ()

    def stage(self, stage_id: str) -> Optional[StageProjection]:
        for entry in self.stages:
            if entry.stage_id == stage_id:
                return entry
        return None

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass(frozen=True)
class SensitivityRun:
    label: str
    result: SimResult
