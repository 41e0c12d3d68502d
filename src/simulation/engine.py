"""Simulation engine.

Projects a scenario against the baseline built from live signals, flow
metrics and predictive risk, and reports deltas per metric and per stage.
"""

import logging
from dataclasses import fields
from typing import List, Optional

from src.logging_config import log_performance
from src.workflow.graph import PolicyGraph
from src.workflow.models import finite

from .attribution import compute_attribution
from .config import (
    DEFAULT_SIM_CONFIG,
    FALLBACK_NOTE,
    INFLUX_NOTE,
    MAX_NOTES,
    OUTAGE_NOTE,
    KnobKind,
    SimConfig,
)
from .knobs import compile_knobs, resolve_horizon
from .models import (
    Projection,
    SimDelta,
    SimInput,
    SimMetrics,
    SimResult,
    SimState,
    StageDelta,
    StageProjection,
    StageSnapshot,
)
from .projection import project_global
from .resistance import ResistanceResult, compute_resistance, stage_wip_pressure
from .state import apply_knobs, build_baseline_state

logger = logging.getLogger(__name__)

_METRIC_NAMES = tuple(f.name for f in fields(SimMetrics))


def safe_delta(projected: Optional[float], baseline: Optional[float]) -> float:
    """Difference of two figures; 0 when either side is missing or non-finite."""
    projected, baseline = finite(projected), finite(baseline)
    if projected is None or baseline is None:
        return 0.0
    return projected - baseline


def _metrics(projection: Projection) -> SimMetrics:
    return SimMetrics(**{name: finite(getattr(projection, name)) for name in _METRIC_NAMES})


def _delta(projected: Projection, baseline: Projection) -> SimDelta:
    return SimDelta(**{
        f"{name}_delta": safe_delta(getattr(projected, name), getattr(baseline, name))
        for name in _METRIC_NAMES
    })


def _snapshot(stage_id: str, state: SimState, resistance: ResistanceResult) -> StageSnapshot:
    count = state.by_stage_count.get(stage_id, 0)
    limit = state.wip_limit.get(stage_id)
    return StageSnapshot(
        count=count,
        wip_limit=limit,
        wip_pressure=stage_wip_pressure(count, limit),
        capacity=state.capacity.get(stage_id, 1.0),
        resistance=resistance.resistance.get(stage_id, 0.0),
        effective_capacity=resistance.effective_capacity.get(stage_id, 1.0),
    )


class SimulationEngine:
    """What-if projection of workflow outcomes under scenario knobs.

    Example:
        engine = SimulationEngine()
        result = engine.run(SimInput(policy, now, signals, scenario, flow_metrics, summary))
        result.delta.throughput_per_week_delta
    """

    def __init__(self, config: Optional[SimConfig] = None):
        self.config = config or DEFAULT_SIM_CONFIG

    @log_performance()
    def run(self, sim_input: SimInput) -> SimResult:
        """Run the scenario with attribution.

        Any failure inside the run yields a zeroed fallback result carrying
        a single explanatory note; the error is logged, not raised.
        """
        try:
            return self._run_core(sim_input, include_attribution=True)
        except Exception:
            logger.exception("Simulation failed for scenario %s; returning fallback", sim_input.scenario.id)
            return self.fallback(sim_input)

    def fallback(self, sim_input: SimInput) -> SimResult:
        return SimResult(
            scenario_id=sim_input.scenario.id,
            scenario_name=sim_input.scenario.name,
            horizon_days=resolve_horizon(sim_input.scenario, self.config),
            notes=(FALLBACK_NOTE,),
        )

    def _run_core(self, sim_input: SimInput, include_attribution: bool) -> SimResult:
        cfg = self.config
        graph = PolicyGraph.from_policy(sim_input.policy)
        effects = compile_knobs(graph, sim_input.scenario, cfg)

        baseline_state = build_baseline_state(sim_input, graph, cfg)
        scenario_state = apply_knobs(baseline_state, effects, cfg)

        baseline_resistance = compute_resistance(graph, baseline_state, sim_input.signals, cfg)
        scenario_resistance = compute_resistance(graph, scenario_state, sim_input.signals, cfg)

        baseline = project_global(graph, baseline_state, baseline_resistance, cfg)
        projected = project_global(graph, scenario_state, scenario_resistance, cfg)

        stages: List[StageProjection] = []
        for stage_id in graph.stage_ids:
            before = _snapshot(stage_id, baseline_state, baseline_resistance)
            after = _snapshot(stage_id, scenario_state, scenario_resistance)
            stages.append(StageProjection(
                stage_id=stage_id,
                baseline=before,
                projected=after,
                delta=StageDelta(
                    count_delta=after.count - before.count,
                    wip_pressure_delta=after.wip_pressure - before.wip_pressure,
                    effective_capacity_delta=after.effective_capacity - before.effective_capacity,
                ),
            ))

        notes: List[str] = []
        if (
            baseline.bottleneck_stage
            and projected.bottleneck_stage
            and baseline.bottleneck_stage != projected.bottleneck_stage
        ):
            notes.append(f"Bottleneck shifted from {baseline.bottleneck_stage} to {projected.bottleneck_stage}.")
        if sim_input.scenario.has_kind(KnobKind.OUTAGE):
            notes.append(OUTAGE_NOTE)
        if sim_input.scenario.has_kind(KnobKind.INFLUX):
            notes.append(INFLUX_NOTE)

        attribution = ()
        if include_attribution:
            attribution = tuple(compute_attribution(
                sim_input,
                run=lambda child: self._run_core(child, include_attribution=False),
            ))

        result = SimResult(
            scenario_id=sim_input.scenario.id,
            scenario_name=sim_input.scenario.name,
            horizon_days=scenario_state.horizon_days,
            baseline=_metrics(baseline),
            projected=_metrics(projected),
            delta=_delta(projected, baseline),
            stages=tuple(stages),
            attribution=attribution,
            notes=tuple(notes[:MAX_NOTES]),
        )
        if include_attribution:
            logger.debug(
                "Scenario %s simulated: throughput delta %.3f, bottleneck %s -> %s",
                result.scenario_id,
                result.delta.throughput_per_week_delta,
                baseline.bottleneck_stage,
                projected.bottleneck_stage,
            )
        return result


def run_simulation(sim_input: SimInput, config: Optional[SimConfig] = None) -> SimResult:
    """Functional shortcut for :meth:`SimulationEngine.run`."""
    return SimulationEngine(config).run(sim_input)
