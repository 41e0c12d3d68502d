"""Simulation Configuration.

Knob vocabulary, clamps and coefficients for what-if projection of a
workflow under capacity, WIP, influx and outage changes.
"""

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Enums
# =============================================================================

class KnobKind(str, Enum):
    CAPACITY = "capacity"
    WIP_LIMIT = "wipLimit"
    INFLUX = "influx"
    OUTAGE = "outage"


class AttributionDriver(str, Enum):
    CAPACITY = "CAPACITY"
    WIP = "WIP"
    INFLUX = "INFLUX"
    OUTAGE = "OUTAGE"


# =============================================================================
# Constants
# =============================================================================

DRIVER_FOR_KIND = {
    KnobKind.CAPACITY: AttributionDriver.CAPACITY,
    KnobKind.WIP_LIMIT: AttributionDriver.WIP,
    KnobKind.INFLUX: AttributionDriver.INFLUX,
    KnobKind.OUTAGE: AttributionDriver.OUTAGE,
}

# Attribution groups are evaluated in this order
DRIVER_ORDER = (
    AttributionDriver.CAPACITY,
    AttributionDriver.WIP,
    AttributionDriver.INFLUX,
    AttributionDriver.OUTAGE,
)

ATTRIBUTION_NOTES = {
    AttributionDriver.CAPACITY: "Capacity knobs dominate throughput and delay movement.",
    AttributionDriver.WIP: "WIP limit shifts dominate pressure and queue behavior.",
    AttributionDriver.INFLUX: "Influx shocks dominate bottleneck and pressure deltas.",
    AttributionDriver.OUTAGE: "Outage windows dominate resilience and tail risk changes.",
}

# Weights of |delta| per metric in the attribution impact score
ATTRIBUTION_IMPACT_WEIGHTS = {
    "throughput_per_week_delta": 1.2,
    "bottleneck_index_delta": 0.9,
    "predictive_pressure_delta": 0.8,
    "lead_avg_hours_delta": 0.5,
}

OUTAGE_NOTE = "Scenario includes outage effects that reduce effective capacity over horizon."
INFLUX_NOTE = "Scenario includes influx shocks that increase stage queue load."
FALLBACK_NOTE = "Simulation fallback applied due to invalid internal state."
MAX_NOTES = 3
MAX_ATTRIBUTIONS = 3
ETA_TOP_RISKS = 5


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class SimConfig:
    """Clamps and coefficients for resistance and projection."""

    # Horizon (days)
    default_horizon_days: int = 14
    min_horizon_days: int = 7
    max_horizon_days: int = 60

    # Capacity multipliers
    min_capacity: float = 0.1
    max_capacity: float = 2.0

    # Resistance = weighted WIP, SLA and stuck pressure
    wip_weight: float = 0.55
    sla_weight: float = 0.25
    stuck_weight: float = 0.2
    top_stage_bonus: float = 0.15
    propagation_threshold: float = 0.6
    propagation_factor: float = 0.25
    propagation_passes: int = 2

    # Projection
    min_bottleneck_throughput_factor: float = 0.25
    max_bottleneck_throughput_factor: float = 1.8
    min_avg_capacity: float = 0.4
    max_avg_capacity: float = 1.6
    resistance_time_factor: float = 0.35
    bottleneck_capacity_points: float = 18.0
    bottleneck_resistance_points: float = 12.0
    bottleneck_gain_points: float = 22.0
    pressure_resistance_points: float = 35.0
    pressure_index_factor: float = 0.35
    pressure_gain_points: float = 18.0
    critical_count_pressure_step: float = 22.0

    # ETA multipliers
    min_eta_multiplier: float = 0.6
    max_eta_multiplier: float = 3.0
    p90_eta_offset: float = 0.15
    min_p90_eta_multiplier: float = 0.7
    max_p90_eta_multiplier: float = 3.3


DEFAULT_SIM_CONFIG = SimConfig()
