"""Bottleneck likelihood and bottleneck index.

Two complementary views of which stage constrains flow. The likelihood
only looks at the stage-health gap; the index blends WIP, SLA, stuck,
health-gap and throughput components and names its stage by WIP first.
"""

from typing import Dict, List, Mapping, Optional, Tuple

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, round_half_up

from .config import (
    BOTTLENECK_INDEX_WEIGHTS,
    DEFAULT_SIGNALS_CONFIG,
    BottleneckReasonCode,
    SignalsConfig,
)
from .models import (
    BottleneckIndex,
    BottleneckLikelihood,
    BottleneckReason,
    StageHealth,
    StageWip,
)


def _health_gap(stage_health: Mapping[str, StageHealth]) -> Tuple[int, Optional[str]]:
    """Gap between the mean health of the other stages and the worst one."""
    ranked = sorted(stage_health.values(), key=lambda h: (h.health_score, h.stage_id))
    if len(ranked) < 2:
        return 0, None
    worst, others = ranked[0], ranked[1:]
    avg_others = sum(h.health_score for h in others) / len(others)
    return int(clamp(round_half_up(avg_others - worst.health_score), 0, 100)), worst.stage_id


def compute_bottleneck_likelihood(
    stage_health: Mapping[str, StageHealth],
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> BottleneckLikelihood:
    """Health-gap score; the stage is named only at or above the threshold."""
    score, worst = _health_gap(stage_health)
    return BottleneckLikelihood(
        likelihood_score=score,
        top_stage=worst if score >= config.likelihood_top_stage_min else None,
    )


def low_throughput_penalty(
    graph: PolicyGraph,
    throughput: Optional[Mapping[str, float]],
) -> Tuple[int, Optional[str]]:
    """How far the slowest non-terminal stage trails the non-terminal mean.

    Stages missing from *throughput* count as zero. Returns (0, None) when
    there is no throughput data or the mean is not positive.
    """
    if throughput is None:
        return 0, None
    values = [(throughput.get(stage_id, 0.0), stage_id) for stage_id in graph.non_terminal_stage_ids]
    if not values:
        return 0, None
    avg = sum(v for v, _ in values) / len(values)
    if avg <= 0:
        return 0, None
    slowest_value, slowest_stage = min(values)
    penalty = clamp(round_half_up((avg - slowest_value) / avg * 100), 0, 100)
    return int(penalty), slowest_stage


def _select_top_stage(
    stage_wip: Mapping[str, StageWip],
    stage_health: Mapping[str, StageHealth],
    throughput: Optional[Mapping[str, float]],
) -> Optional[str]:
    if stage_wip:
        highest = min(stage_wip.values(), key=lambda w: (-w.severity_score, w.stage_id))
        if highest.severity_score > 0:
            return highest.stage_id
    if stage_health:
        return min(stage_health.values(), key=lambda h: (h.health_score, h.stage_id)).stage_id
    if throughput:
        return min(throughput.items(), key=lambda kv: (kv[1], kv[0]))[0]
    return None


def compute_bottleneck_index(
    graph: PolicyGraph,
    stage_health: Mapping[str, StageHealth],
    stage_wip: Mapping[str, StageWip],
    sla_pressure: float,
    stuck_pressure: float,
    propagated_pressure: Mapping[str, int],
    throughput: Optional[Mapping[str, float]] = None,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> BottleneckIndex:
    """Weighted 0-100 constraint score with its contributing reasons.

    Components: 0.35 * max(WIP score, propagated pressure), 0.2 * SLA
    pressure, 0.2 * stuck pressure, 0.15 * health gap and 0.1 * low
    throughput penalty. Reasons worth fewer than 5 points are dropped.
    """
    weights = BOTTLENECK_INDEX_WEIGHTS
    max_wip = max((w.severity_score for w in stage_wip.values()), default=0)
    max_propagated = max(propagated_pressure.values(), default=0)
    gap, _ = _health_gap(stage_health)
    penalty, slowest_stage = low_throughput_penalty(graph, throughput)

    components: Dict[BottleneckReasonCode, float] = {
        BottleneckReasonCode.WIP_OVER: max(max_wip, max_propagated) * weights[BottleneckReasonCode.WIP_OVER],
        BottleneckReasonCode.SLA_PRESSURE: sla_pressure * weights[BottleneckReasonCode.SLA_PRESSURE],
        BottleneckReasonCode.STUCK_PRESSURE: stuck_pressure * weights[BottleneckReasonCode.STUCK_PRESSURE],
        BottleneckReasonCode.HEALTH_GAP: gap * weights[BottleneckReasonCode.HEALTH_GAP],
        BottleneckReasonCode.LOW_THROUGHPUT: penalty * weights[BottleneckReasonCode.LOW_THROUGHPUT],
    }
    score = int(clamp(round_half_up(sum(components.values())), 0, 100))
    top_stage = _select_top_stage(stage_wip, stage_health, throughput)
    stage_in_policy = top_stage if top_stage in stage_wip else None

    reason_stage = {
        BottleneckReasonCode.WIP_OVER: top_stage,
        BottleneckReasonCode.SLA_PRESSURE: stage_in_policy,
        BottleneckReasonCode.STUCK_PRESSURE: stage_in_policy,
        BottleneckReasonCode.HEALTH_GAP: top_stage,
        BottleneckReasonCode.LOW_THROUGHPUT: slowest_stage,
    }
    reasons: List[BottleneckReason] = []
    for code, value in components.items():
        points = round_half_up(value)
        if points >= config.reason_min_points:
            reasons.append(BottleneckReason(code=code, points=points, stage_id=reason_stage[code]))

    return BottleneckIndex(
        score=score,
        top_stage=top_stage,
        low_throughput_penalty=penalty,
        reasons=tuple(reasons),
    )
