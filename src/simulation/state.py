"""Baseline simulation state and knob application."""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, finite, hours_between, require_timestamp, round_half_up

from .config import DEFAULT_SIM_CONFIG, ETA_TOP_RISKS, SimConfig
from .knobs import KnobEffects, policy_wip_limits, resolve_horizon
from .models import SimInput, SimState


def max_eta_days(now: datetime, etas: Iterable[Optional[datetime]]) -> Optional[float]:
    """Furthest ETA in days from ``now``; past ETAs count as 0."""
    days = [max(0.0, hours_between(now, eta) / 24) for eta in etas if eta is not None]
    return max(days) if days else None


def _duration_avg(stats) -> Optional[float]:
    if stats is None:
        return None
    trimmed = finite(stats.trimmed_avg_hours)
    return trimmed if trimmed is not None else finite(stats.avg_hours)


def build_baseline_state(sim_input: SimInput, graph: PolicyGraph, config: SimConfig = DEFAULT_SIM_CONFIG) -> SimState:
    now = require_timestamp(sim_input.now)
    counts = sim_input.stage_counts()
    by_stage_count = {
        stage_id: max(0, round_half_up(float(counts.get(stage_id) or 0)))
        for stage_id in graph.stage_ids
    }

    metrics = sim_input.flow_metrics
    summary = sim_input.predictive_risk
    top_risks = summary.top_risks[:ETA_TOP_RISKS] if summary is not None else ()

    signals = sim_input.signals
    index_score = finite(signals.bottleneck_index.score)
    bottleneck_stage = (
        signals.bottleneck_index.top_stage
        or signals.stuck.top_stage
        or (signals.stages.worst_stages[0] if signals.stages.worst_stages else None)
    )

    return SimState(
        horizon_days=resolve_horizon(sim_input.scenario, config),
        by_stage_count=by_stage_count,
        wip_limit=policy_wip_limits(graph),
        capacity={stage_id: 1.0 for stage_id in graph.stage_ids},
        throughput_per_week=finite(metrics.throughput.per_week) if metrics is not None else None,
        lead_avg_hours=_duration_avg(metrics.lead_time if metrics is not None else None),
        cycle_avg_hours=_duration_avg(metrics.cycle_time if metrics is not None else None),
        bottleneck_index=index_score if index_score is not None else finite(signals.bottleneck.likelihood_score),
        predictive_pressure=finite(summary.pressure_score) if summary is not None else None,
        predictive_critical_count=finite(summary.critical_count) if summary is not None else None,
        eta_p50_days=max_eta_days(now, (r.eta.p50_at for r in top_risks)),
        eta_p90_days=max_eta_days(now, (r.eta.p90_at for r in top_risks)),
        bottleneck_stage=bottleneck_stage,
    )


def apply_knobs(base: SimState, effects: KnobEffects, config: SimConfig = DEFAULT_SIM_CONFIG) -> SimState:
    """Scenario state: influx added to counts, WIP overrides, capacity multiplied."""
    stage_ids = sorted(base.by_stage_count)
    return replace(
        base,
        horizon_days=effects.horizon_days,
        by_stage_count={
            sid: max(0, round_half_up(base.by_stage_count[sid] + effects.influx.get(sid, 0)))
            for sid in stage_ids
        },
        wip_limit={
            sid: effects.wip_limit[sid] if effects.wip_limit.get(sid) is not None else base.wip_limit.get(sid)
            for sid in stage_ids
        },
        capacity={
            sid: clamp(
                base.capacity.get(sid, 1.0) * effects.capacity.get(sid, 1.0),
                config.min_capacity,
                config.max_capacity,
            )
            for sid in stage_ids
        },
    )
