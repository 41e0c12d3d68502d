"""Portfolio projection from stage resistance and effective capacity."""

from typing import Optional

import numpy as np

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, round_half_up

from .config import DEFAULT_SIM_CONFIG, SimConfig
from .models import Projection, SimState
from .resistance import ResistanceResult


def resolve_bottleneck_stage(graph: PolicyGraph, effective_capacity) -> Optional[str]:
    """Non-terminal stage with the lowest effective capacity, ties in graph order."""
    candidates = graph.non_terminal_stage_ids or graph.stage_ids
    if not candidates:
        return None
    return min(candidates, key=lambda sid: (effective_capacity.get(sid, 1.0), graph.rank(sid), sid))


def project_global(
    graph: PolicyGraph,
    state: SimState,
    resistance: ResistanceResult,
    config: SimConfig = DEFAULT_SIM_CONFIG,
) -> Projection:
    """Scale the state's portfolio metrics by capacity and resistance.

    Throughput follows the bottleneck stage's effective capacity; lead and
    cycle time follow the average capacity and resistance of loaded stages.
    """
    effective = resistance.effective_capacity
    bottleneck_stage = resolve_bottleneck_stage(graph, effective)
    bottleneck_cap = effective.get(bottleneck_stage, 1.0) if bottleneck_stage else 1.0

    base_throughput = state.throughput_per_week
    throughput = None
    gain = 0.0
    if base_throughput is not None:
        throughput = base_throughput * clamp(
            bottleneck_cap,
            config.min_bottleneck_throughput_factor,
            config.max_bottleneck_throughput_factor,
        )
        gain = (throughput - base_throughput) / max(0.01, base_throughput)

    active = [sid for sid in graph.stage_ids if state.by_stage_count.get(sid, 0) > 0]
    considered = active or list(graph.stage_ids)
    avg_eff = float(np.mean([effective.get(sid, 1.0) for sid in considered])) if considered else 0.0
    avg_res = float(np.mean([resistance.resistance.get(sid, 0.0) for sid in considered])) if considered else 0.0

    time_multiplier = (
        (1 / clamp(avg_eff, config.min_avg_capacity, config.max_avg_capacity))
        * (1 + avg_res * config.resistance_time_factor)
    )
    lead = state.lead_avg_hours * time_multiplier if state.lead_avg_hours is not None else None
    cycle = state.cycle_avg_hours * time_multiplier if state.cycle_avg_hours is not None else None

    index = None
    if state.bottleneck_index is not None:
        index = clamp(
            state.bottleneck_index
            + (1 - bottleneck_cap) * config.bottleneck_capacity_points
            + avg_res * config.bottleneck_resistance_points
            - gain * config.bottleneck_gain_points,
            0,
            100,
        )

    pressure = None
    if state.predictive_pressure is not None:
        base_index = state.bottleneck_index or 0.0
        index_shift = (index if index is not None else base_index) - base_index
        pressure = clamp(
            state.predictive_pressure
            + avg_res * config.pressure_resistance_points
            + index_shift * config.pressure_index_factor
            - gain * config.pressure_gain_points,
            0,
            100,
        )

    critical = None
    if state.predictive_critical_count is not None and pressure is not None:
        critical = max(
            0,
            state.predictive_critical_count
            + round_half_up((pressure - state.predictive_pressure) / config.critical_count_pressure_step),
        )

    eta_multiplier = None
    if base_throughput is not None and throughput is not None:
        eta_multiplier = clamp(
            base_throughput / max(0.01, throughput),
            config.min_eta_multiplier,
            config.max_eta_multiplier,
        )
    eta_p50 = eta_p90 = None
    if eta_multiplier is not None:
        if state.eta_p50_days is not None:
            eta_p50 = state.eta_p50_days * eta_multiplier
        if state.eta_p90_days is not None:
            eta_p90 = state.eta_p90_days * clamp(
                eta_multiplier + config.p90_eta_offset,
                config.min_p90_eta_multiplier,
                config.max_p90_eta_multiplier,
            )

    return Projection(
        throughput_per_week=throughput,
        lead_avg_hours=lead,
        cycle_avg_hours=cycle,
        bottleneck_index=index,
        predictive_pressure=pressure,
        predictive_critical_count=critical,
        eta_p50_days=eta_p50,
        eta_p90_days=eta_p90,
        bottleneck_stage=bottleneck_stage,
    )
