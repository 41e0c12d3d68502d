"""Compile scenario knobs into per-stage capacity, WIP limit and influx effects."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, round_half_up

from .config import DEFAULT_SIM_CONFIG, SimConfig
from .models import CapacityKnob, InfluxKnob, OutageKnob, Scenario, WipLimitKnob

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnobEffects:
    horizon_days: int
    capacity: Dict[str, float]
    wip_limit: Dict[str, Optional[int]]
    influx: Dict[str, int]


def resolve_horizon(scenario: Scenario, config: SimConfig = DEFAULT_SIM_CONFIG) -> int:
    days = scenario.horizon_days if scenario.horizon_days is not None else config.default_horizon_days
    return int(clamp(round_half_up(days), config.min_horizon_days, config.max_horizon_days))


def policy_wip_limits(graph: PolicyGraph) -> Dict[str, Optional[int]]:
    return {
        stage.id: max(0, round_half_up(stage.wip_limit)) if stage.wip_limit is not None else None
        for stage in graph.stages
    }


def outage_factor(days: float, multiplier: float, horizon_days: int, config: SimConfig = DEFAULT_SIM_CONFIG) -> float:
    """Capacity factor interpolated between 1 and ``multiplier`` by outage share of horizon."""
    outage_days = clamp(round_half_up(days), 0, horizon_days)
    mult = clamp(multiplier, config.min_capacity, config.max_capacity)
    return (horizon_days - outage_days) / horizon_days + (outage_days / horizon_days) * mult


def compile_knobs(graph: PolicyGraph, scenario: Scenario, config: SimConfig = DEFAULT_SIM_CONFIG) -> KnobEffects:
    """Fold knobs in scenario order; knobs naming unknown stages are ignored.

    Stage capacity multipliers compound and are clamped; the global
    multiplier is applied to every stage last.
    """
    lo, hi = config.min_capacity, config.max_capacity
    horizon = resolve_horizon(scenario, config)
    capacity = {stage_id: 1.0 for stage_id in graph.stage_ids}
    wip_limit = policy_wip_limits(graph)
    influx = {stage_id: 0 for stage_id in graph.stage_ids}
    global_multiplier = 1.0

    for knob in scenario.knobs:
        if isinstance(knob, CapacityKnob):
            factor = clamp(knob.multiplier, lo, hi)
            if not knob.stage_id:
                global_multiplier = clamp(global_multiplier * factor, lo, hi)
            elif knob.stage_id in capacity:
                capacity[knob.stage_id] = clamp(capacity[knob.stage_id] * factor, lo, hi)
            else:
                logger.debug("Ignoring capacity knob for unknown stage %s", knob.stage_id)
        elif isinstance(knob, OutageKnob):
            if knob.stage_id not in capacity:
                logger.debug("Ignoring outage knob for unknown stage %s", knob.stage_id)
                continue
            factor = outage_factor(knob.days, knob.multiplier, horizon, config)
            capacity[knob.stage_id] = clamp(capacity[knob.stage_id] * factor, lo, hi)
        elif isinstance(knob, WipLimitKnob):
            if knob.stage_id in wip_limit:
                wip_limit[knob.stage_id] = max(0, round_half_up(knob.limit))
        elif isinstance(knob, InfluxKnob):
            if knob.stage_id in influx:
                influx[knob.stage_id] += round_half_up(knob.add_count)
        else:
            raise TypeError(f"Unsupported scenario knob: {knob!r}")

    for stage_id in capacity:
        capacity[stage_id] = clamp(capacity[stage_id] * global_multiplier, lo, hi)

    return KnobEffects(horizon_days=horizon, capacity=capacity, wip_limit=wip_limit, influx=influx)
