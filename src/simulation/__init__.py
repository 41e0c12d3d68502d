"""Simulation: what-if projection of capacity, WIP, influx and outage scenarios."""

from .config import (
    DEFAULT_SIM_CONFIG,
    FALLBACK_NOTE,
    AttributionDriver,
    KnobKind,
    SimConfig,
)
from .models import (
    Attribution,
    CapacityKnob,
    InfluxKnob,
    OutageKnob,
    Projection,
    Scenario,
    ScenarioKnob,
    SensitivityRun,
    SimDelta,
    SimInput,
    SimMetrics,
    SimResult,
    SimState,
    StageDelta,
    StageProjection,
    StageSnapshot,
    WipLimitKnob,
)
from .knobs import KnobEffects, compile_knobs, outage_factor, resolve_horizon
from .state import apply_knobs, build_baseline_state, max_eta_days
from .resistance import ResistanceResult, compute_resistance, stage_wip_pressure
from .projection import project_global, resolve_bottleneck_stage
from .attribution import compute_attribution, impact_score
from .engine import SimulationEngine, run_simulation, safe_delta
from .scenarios import (
    PRESET_SCENARIOS,
    baseline_scenario,
    get_preset,
    make_scenario,
    stage_capacity_scenario,
    stage_outage_scenario,
)
from .sensitivity import run_sensitivity

__all__ = [
    # Config
    "DEFAULT_SIM_CONFIG",
    "FALLBACK_NOTE",
    "AttributionDriver",
    "KnobKind",
    "SimConfig",
    # Models
    "Attribution",
    "CapacityKnob",
    "InfluxKnob",
    "OutageKnob",
    "Projection",
    "Scenario",
    "ScenarioKnob",
    "SensitivityRun",
    "SimDelta",
    "SimInput",
    "SimMetrics",
    "SimResult",
    "SimState",
    "StageDelta",
    "StageProjection",
    "StageSnapshot",
    "WipLimitKnob",
    # Knobs & state
    "KnobEffects",
    "compile_knobs",
    "outage_factor",
    "resolve_horizon",
    "apply_knobs",
    "build_baseline_state",
    "max_eta_days",
    # Resistance & projection
    "ResistanceResult",
    "compute_resistance",
    "stage_wip_pressure",
    "project_global",
    "resolve_bottleneck_stage",
    "compute_attribution",
    "impact_score",
    # Engine
    "SimulationEngine",
    "run_simulation",
    "safe_delta",
    "PRESET_SCENARIOS",
    "baseline_scenario",
    "get_preset",
    "make_scenario",
    "stage_capacity_scenario",
    "stage_outage_scenario",
    "run_sensitivity",
]
