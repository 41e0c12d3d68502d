"""Predictive Risk Configuration.

Risk factor vocabulary, scoring weights and thresholds for per-item
delay-risk prediction and portfolio rollup.
"""

from dataclasses import dataclass
from enum import Enum

from src.workflow.models import round_half_up


# =============================================================================
# Enums
# =============================================================================

class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskFactorCode(str, Enum):
    """Contributors to an item's risk score."""
    SLA_PRESSURE = "SLA_PRESSURE"
    STUCK = "STUCK"
    WIP_OVERLOAD = "WIP_OVERLOAD"
    BOTTLENECK = "BOTTLENECK"
    AGE_OUTLIER = "AGE_OUTLIER"
    DUE_SOON = "DUE_SOON"
    FLOW_SLOWDOWN = "FLOW_SLOWDOWN"
    VOLATILITY = "VOLATILITY"
    DATA_QUALITY = "DATA_QUALITY"
    NO_BASELINE = "NO_BASELINE"


# =============================================================================
# Constants
# =============================================================================

RISK_WEIGHTS = {
    RiskFactorCode.STUCK: 28,
    RiskFactorCode.SLA_PRESSURE: 20,
    RiskFactorCode.WIP_OVERLOAD: 15,
    RiskFactorCode.BOTTLENECK: 10,
    RiskFactorCode.AGE_OUTLIER: 18,
    RiskFactorCode.DUE_SOON: 10,
    RiskFactorCode.FLOW_SLOWDOWN: 8,
    RiskFactorCode.VOLATILITY: 6,
    RiskFactorCode.DATA_QUALITY: 8,
    RiskFactorCode.NO_BASELINE: 10,
}

RISK_DETAILS = {
    RiskFactorCode.STUCK: "Item shows stuck-flow signals.",
    RiskFactorCode.SLA_PRESSURE: "SLA pressure is elevated.",
    RiskFactorCode.WIP_OVERLOAD: "Stage WIP exceeds healthy threshold.",
    RiskFactorCode.BOTTLENECK: "Item is in current bottleneck stage.",
    RiskFactorCode.AGE_OUTLIER: "Age exceeds stage p90 baseline.",
    RiskFactorCode.DUE_SOON: "Due date is close relative to horizon.",
    RiskFactorCode.FLOW_SLOWDOWN: "Portfolio throughput trend is slow.",
    RiskFactorCode.VOLATILITY: "Flow volatility remains elevated.",
    RiskFactorCode.DATA_QUALITY: "Input quality lowers predictive certainty.",
    RiskFactorCode.NO_BASELINE: "Baseline coverage is insufficient.",
}

RISK_PHRASES = {
    RiskFactorCode.STUCK: "stuck",
    RiskFactorCode.SLA_PRESSURE: "sla pressure",
    RiskFactorCode.WIP_OVERLOAD: "stage overload",
    RiskFactorCode.BOTTLENECK: "bottleneck",
    RiskFactorCode.AGE_OUTLIER: "age outlier",
    RiskFactorCode.DUE_SOON: "due soon",
    RiskFactorCode.FLOW_SLOWDOWN: "flow slowdown",
    RiskFactorCode.VOLATILITY: "volatility",
    RiskFactorCode.DATA_QUALITY: "low data quality",
    RiskFactorCode.NO_BASELINE: "no baseline",
}

# Lower bounds per level, highest first
RISK_LEVEL_FLOORS = (
    (80, RiskLevel.CRITICAL),
    (60, RiskLevel.HIGH),
    (35, RiskLevel.MEDIUM),
)

MAX_CONTRIBUTIONS = 6
DETAIL_MAX_CHARS = 80
RATIONALE_MAX_CHARS = 140
RATIONALE_DRIVERS = 2


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class PredictConfig:
    """Horizon, thresholds and portfolio sizes for risk prediction."""

    horizon_days: int = 7

    # Coverage below this applies the flat NO_BASELINE factor
    min_baseline_coverage: float = 0.4

    # Due-date proximity (hours remaining)
    due_soon_hours: float = 24.0
    due_near_hours: float = 72.0

    # Throughput per week that counts as a slowdown
    slow_throughput_per_week: float = 0.5
    sluggish_throughput_per_week: float = 1.0

    # Delay probability S-curve starts at this risk score
    probability_floor_score: float = 15.0

    # Confidence bounds
    min_confidence: float = 0.2
    max_confidence: float = 0.95

    # Portfolio slices
    pressure_top_n: int = 10
    tail_top_n: int = 3
    concentration_top_n: int = 20
    top_drivers_n: int = 3
    top_risks_n: int = 5

    def normalized_horizon(self) -> int:
        return max(1, round_half_up(self.horizon_days))


DEFAULT_PREDICT_CONFIG = PredictConfig()
