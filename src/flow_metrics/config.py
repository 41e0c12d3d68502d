"""Flow Metrics Configuration.

Zones, anomaly vocabularies, windows and thresholds for historical flow
statistics rebuilt from transition events.
"""

from dataclasses import dataclass
from enum import Enum

from src.workflow.models import round_half_up


# =============================================================================
# Enums
# =============================================================================

class StageZone(str, Enum):
    """Flow classification of a stage."""
    QUEUE = "queue"
    ACTIVE = "active"
    DONE = "done"


class AnomalyCode(str, Enum):
    THROUGHPUT_DROP = "THROUGHPUT_DROP"
    LEAD_TIME_SPIKE = "LEAD_TIME_SPIKE"
    CYCLE_TIME_SPIKE = "CYCLE_TIME_SPIKE"
    EFFICIENCY_DROP = "EFFICIENCY_DROP"
    VOLATILITY_RISE = "VOLATILITY_RISE"


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InsightTone(str, Enum):
    NEUTRAL = "neutral"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class InsightCode(str, Enum):
    FLOW = "FLOW"
    THROUGHPUT = "THROUGHPUT"
    LEAD = "LEAD"
    CYCLE = "CYCLE"
    EFFICIENCY = "EFFICIENCY"
    VOLATILITY = "VOLATILITY"


# =============================================================================
# Constants
# =============================================================================

ZONE_ORDER = {StageZone.QUEUE: 0, StageZone.ACTIVE: 1, StageZone.DONE: 2}

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_SHORT_DAYS = 7
DEFAULT_TRIM_RATIO = 0.1
MAX_TRIM_RATIO = 0.49
RECENT_DONE_LIMIT = 10
DELTA_PCT_BOUND = 200.0

# Volatility is measured over this many short windows
VOLATILITY_WINDOW_MULTIPLIER = 4

# (threshold, score) tiers; the last satisfied tier wins
THROUGHPUT_DROP_TIERS = ((-30.0, 60), (-50.0, 85), (-70.0, 100))
TIME_SPIKE_TIERS = ((25.0, 60), (40.0, 85), (60.0, 100))
VOLATILITY_TIERS = ((60.0, 60), (80.0, 90))

EFFICIENCY_DROP_CEILING = 0.35
EFFICIENCY_DROP_DELTA = -15.0
EFFICIENCY_SEVERE_CEILING = 0.25
EFFICIENCY_DROP_SCORES = (70, 95)

ANOMALY_HIGH_SCORE = 85
ANOMALY_MEDIUM_SCORE = 60

ANOMALY_MESSAGES = {
    AnomalyCode.THROUGHPUT_DROP: "Weekly throughput dropped versus prior window.",
    AnomalyCode.LEAD_TIME_SPIKE: "Lead time increased beyond expected range.",
    AnomalyCode.CYCLE_TIME_SPIKE: "Cycle time increased versus prior window.",
    AnomalyCode.EFFICIENCY_DROP: "Flow efficiency dropped while active time share declined.",
    AnomalyCode.VOLATILITY_RISE: "Lead-time volatility increased and flow stability is reduced.",
}

LOW_EFFICIENCY_INSIGHT_CEILING = 0.4
MAX_INSIGHTS = 2


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class FlowWindow:
    """Lookback and short comparison windows, in whole days."""

    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    short_days: int = DEFAULT_SHORT_DAYS

    def normalized(self) -> "FlowWindow":
        """Round each window and floor it at one day."""
        return FlowWindow(
            lookback_days=max(1, round_half_up(self.lookback_days)),
            short_days=max(1, round_half_up(self.short_days)),
        )


DEFAULT_FLOW_WINDOW = FlowWindow()
