"""Stage resistance and effective capacity.

Resistance blends a stage's WIP overload with portfolio SLA and stuck
pressure. Stages under heavy pressure push part of it upstream, so a
jammed stage also slows the stages that feed it.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp
from src.workflow_signals.models import WorkflowSignals

from .config import DEFAULT_SIM_CONFIG, SimConfig
from .models import SimState


@dataclass(frozen=True)
class ResistanceResult:
    resistance: Dict[str, float]
    effective_capacity: Dict[str, float]


def stage_wip_pressure(count: float, limit: Optional[float]) -> float:
    """Overload share above the limit, capped at 1; 0 without a positive limit."""
    if limit is None or limit <= 0:
        return 0.0
    return clamp((count - limit) / max(1, limit), 0, 1)


def compute_resistance(
    graph: PolicyGraph,
    state: SimState,
    signals: WorkflowSignals,
    config: SimConfig = DEFAULT_SIM_CONFIG,
) -> ResistanceResult:
    sla_base = clamp(signals.sla.pressure_score / 100, 0, 1)
    stuck_base = clamp(signals.stuck.pressure_score / 100, 0, 1)

    base: Dict[str, float] = {}
    propagated: Dict[str, float] = {}
    for stage_id in graph.stage_ids:
        wip = stage_wip_pressure(state.by_stage_count.get(stage_id, 0), state.wip_limit.get(stage_id))
        sla = clamp(sla_base + (config.top_stage_bonus if signals.sla.top_stage == stage_id else 0), 0, 1)
        stuck = clamp(stuck_base + (config.top_stage_bonus if signals.stuck.top_stage == stage_id else 0), 0, 1)
        base[stage_id] = clamp(config.wip_weight * wip + config.sla_weight * sla + config.stuck_weight * stuck, 0, 1)
        propagated[stage_id] = 0.0

    for _ in range(config.propagation_passes):
        for stage_id in reversed(graph.stage_ids):
            pressure = clamp(base[stage_id] + propagated[stage_id], 0, 1)
            if pressure <= config.propagation_threshold:
                continue
            for predecessor in graph.predecessors(stage_id):
                propagated[predecessor] = clamp(propagated[predecessor] + pressure * config.propagation_factor, 0, 1)

    resistance: Dict[str, float] = {}
    effective: Dict[str, float] = {}
    for stage_id in graph.stage_ids:
        value = clamp(base[stage_id] + propagated[stage_id], 0, 1)
        capacity = clamp(state.capacity.get(stage_id, 1.0), config.min_capacity, config.max_capacity)
        resistance[stage_id] = value
        effective[stage_id] = clamp(capacity / (1 + value), config.min_capacity, config.max_capacity)

    return ResistanceResult(resistance=resistance, effective_capacity=effective)
