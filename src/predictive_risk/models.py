"""Predictive Risk - Data Models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from src.workflow.models import Timestamp, to_plain

from .config import RiskFactorCode, RiskLevel


@dataclass(frozen=True)
class PredictItemInput:
    """Per-item severity inputs; missing scores lower data completeness."""

    item_id: str
    stage_id: str
    age_hours: float
    sla_severity_score: Optional[float] = None
    stuck_severity_score: Optional[float] = None
    stage_wip_severity_score: Optional[float] = None
    is_bottleneck_stage: bool = False
    due_at: Timestamp = None


@dataclass(frozen=True)
class StageBaseline:
    stage_id: str
    p50_dwell_hours: Optional[float] = None
    p90_dwell_hours: Optional[float] = None


@dataclass(frozen=True)
class FlowBaselines:
    has_baselines: bool = False
    throughput_per_week: Optional[float] = None
    volatility_score: Optional[float] = None
    stage: Dict[str, StageBaseline] = field(default_factory=dict)
    lead_p50_hours: Optional[float] = None
    lead_p90_hours: Optional[float] = None
    cycle_p50_hours: Optional[float] = None
    cycle_p90_hours: Optional[float] = None


@dataclass(frozen=True)
class DataQuality:
    baseline_coverage: float = 0.0
    avg_signal_completeness: float = 0.0
    has_due_dates: bool = False

    @property
    def score(self) -> float:
        """Mean of coverage and completeness."""
        return (self.baseline_coverage + self.avg_signal_completeness) / 2


@dataclass(frozen=True)
class ItemFeatures:
    """Normalised [0, 1] risk features for one item."""

    sla: float = 0.0
    stuck: float = 0.0
    wip: float = 0.0
    bottleneck: float = 0.0
    age_outlier: float = 0.0
    due_soon: float = 0.0
    flow_slowdown: float = 0.0
    volatility: float = 0.0
    data_quality: float = 0.0


@dataclass(frozen=True)
class RiskContribution:
    code: RiskFactorCode
    points: int
    detail: str


@dataclass(frozen=True)
class EtaEstimate:
    p50_at: Optional[datetime] = None
    p90_at: Optional[datetime] = None
    remaining_p50_hours: Optional[float] = None
    remaining_p90_hours: Optional[float] = None


@dataclass(frozen=True)
class ItemPrediction:
    item_id: str
    stage_id: str
    risk_score: int
    risk_level: RiskLevel
    delay_probability: float
    eta: EtaEstimate
    confidence: float
    contributions: Tuple[RiskContribution, ...] = ()
    rationale: str = ""
    top_driver: Optional[RiskFactorCode] = None


@dataclass(frozen=True)
class PortfolioDriver:
    code: RiskFactorCode
    share_pct: int


@dataclass(frozen=True)
class TopRisk:
    item_id: str
    stage_id: str
    risk_score: int
    risk_level: RiskLevel
    confidence: float
    eta: EtaEstimate = field(default_factory=EtaEstimate)


@dataclass(frozen=True)
class PortfolioRollup:
    pressure_score: float = 0.0
    tail_risk_score: float = 0.0
    critical_count: int = 0
    high_count: int = 0
    top_stage: Optional[str] = None
    stage_concentration_pct: int = 0
    top_drivers: Tuple[PortfolioDriver, ...] = ()


@dataclass(frozen=True)
class PredictSummary:
    """Portfolio delay-risk outlook over the prediction horizon."""

    horizon_days: int
    pressure_score: float = 0.0
    tail_risk_score: float = 0.0
    critical_count: int = 0
    high_count: int = 0
    top_stage: Optional[str] = None
    stage_concentration_pct: int = 0
    top_drivers: Tuple[PortfolioDriver, ...] = ()
    top_risks: Tuple[TopRisk, ...] = ()
    data_quality: DataQuality = field(default_factory=DataQuality)
    predictions: Optional[Tuple[ItemPrediction, ...]] = None

    def to_dict(self) -> dict:
        return to_plain(self)
