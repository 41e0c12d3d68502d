"""WIP pressure per stage and upstream overload propagation."""

from typing import Dict, Mapping

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, round_half_up

from .config import DEFAULT_SIGNALS_CONFIG, SignalsConfig, WipSeverity
from .models import StageWip, WipRollup


def wip_severity(
    ratio: float,
    has_limit: bool,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> WipSeverity:
    if not has_limit:
        return WipSeverity.NONE
    if ratio >= config.wip_critical_ratio:
        return WipSeverity.CRITICAL
    if ratio >= config.wip_hard_ratio:
        return WipSeverity.HARD
    if ratio >= config.wip_soft_ratio:
        return WipSeverity.SOFT
    return WipSeverity.NONE


def wip_severity_score(count: int, wip_limit) -> int:
    """0 at 75% of the limit, rising 1.2 points per percent; 0 without a limit."""
    if wip_limit is None or wip_limit <= 0:
        return 0
    ratio = count / wip_limit
    return int(clamp(round_half_up((ratio - 0.75) * 120), 0, 100))


def compute_stage_wip(
    graph: PolicyGraph,
    by_stage_count: Mapping[str, int],
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> Dict[str, StageWip]:
    output: Dict[str, StageWip] = {}
    for stage in graph.stages:
        count = int(by_stage_count.get(stage.id, 0))
        limit = stage.wip_limit
        has_limit = limit is not None and limit > 0
        ratio = count / limit if has_limit else 0.0
        output[stage.id] = StageWip(
            stage_id=stage.id,
            count=count,
            overload=max(0, count - limit) if has_limit else 0,
            ratio=ratio,
            severity=wip_severity(ratio, has_limit, config),
            severity_score=wip_severity_score(count, limit),
            wip_limit=limit,
        )
    return output


def rollup_wip(stage_wip: Mapping[str, StageWip]) -> WipRollup:
    """Tier counts, mean score, and the most overloaded stage (if any)."""
    values = list(stage_wip.values())
    if not values:
        return WipRollup()

    ranked = sorted(values, key=lambda w: (-w.severity_score, -w.count, w.stage_id))
    pressure = sum(w.severity_score for w in values) / len(values)
    return WipRollup(
        soft_count=sum(1 for w in values if w.severity == WipSeverity.SOFT),
        hard_count=sum(1 for w in values if w.severity == WipSeverity.HARD),
        critical_count=sum(1 for w in values if w.severity == WipSeverity.CRITICAL),
        pressure_score=int(clamp(round_half_up(pressure), 0, 100)),
        top_stage=ranked[0].stage_id if ranked[0].severity_score > 0 else None,
    )


def propagate_overload(
    graph: PolicyGraph,
    stage_wip: Mapping[str, StageWip],
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> Dict[str, int]:
    """Push pressure from saturated stages onto their direct predecessors.

    Every hard or critical stage adds ``round(score * 0.3)`` to each
    predecessor; totals are clamped to 0-100. Upstream stages light up
    before they breach themselves.
    """
    pressure = {stage_id: 0 for stage_id in graph.stage_ids}
    for stage_id in graph.stage_ids:
        wip = stage_wip.get(stage_id)
        if wip is None or wip.severity not in (WipSeverity.HARD, WipSeverity.CRITICAL):
            continue
        pushed = round_half_up(wip.severity_score * config.propagation_factor)
        for predecessor in graph.predecessors(stage_id):
            pressure[predecessor] = int(clamp(pressure[predecessor] + pushed, 0, 100))
    return pressure
