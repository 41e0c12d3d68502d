"""Stage health aggregation."""

from collections import Counter, defaultdict
from typing import Dict, List, Mapping, Sequence

from src.workflow.graph import PolicyGraph
from src.workflow.models import clamp, round_half_up

from .config import HEALTH_WEIGHTS, SlaSeverity
from .models import SlaStatus, StageHealth, StuckStatus


def compute_stage_health(
    graph: PolicyGraph,
    by_stage_count: Mapping[str, int],
    sla: Sequence[SlaStatus],
    stuck: Sequence[StuckStatus],
) -> Dict[str, StageHealth]:
    """Score every policy stage 0-100, lower meaning less healthy.

    health = 100 - (12*critical SLA + 6*breach SLA + 2*warning SLA
    + 15*critical stuck + 7*stuck + avg SLA score / 10)
    """
    sla_tiers: Dict[str, Counter] = defaultdict(Counter)
    sla_scores: Dict[str, List[int]] = defaultdict(list)
    for status in sla:
        sla_tiers[status.stage_id][status.severity] += 1
        sla_scores[status.stage_id].append(status.severity_score)

    stuck_counts: Counter = Counter()
    critical_stuck: Counter = Counter()
    for status in stuck:
        stuck_counts[status.stage_id] += 1
        if status.severity == SlaSeverity.CRITICAL:
            critical_stuck[status.stage_id] += 1

    output: Dict[str, StageHealth] = {}
    for stage_id in graph.stage_ids:
        tiers = sla_tiers[stage_id]
        scores = sla_scores[stage_id]
        avg_score = sum(scores) / len(scores) if scores else 0.0
        penalty = (
            tiers[SlaSeverity.CRITICAL] * HEALTH_WEIGHTS["sla_critical"]
            + tiers[SlaSeverity.BREACH] * HEALTH_WEIGHTS["sla_breach"]
            + tiers[SlaSeverity.WARNING] * HEALTH_WEIGHTS["sla_warning"]
            + critical_stuck[stage_id] * HEALTH_WEIGHTS["stuck_critical"]
            + stuck_counts[stage_id] * HEALTH_WEIGHTS["stuck"]
            + avg_score / 10
        )
        output[stage_id] = StageHealth(
            stage_id=stage_id,
            count=int(by_stage_count.get(stage_id, 0)),
            sla_warning=tiers[SlaSeverity.WARNING],
            sla_breach=tiers[SlaSeverity.BREACH],
            sla_critical=tiers[SlaSeverity.CRITICAL],
            avg_severity_score=avg_score,
            stuck_count=stuck_counts[stage_id],
            critical_stuck_count=critical_stuck[stage_id],
            health_score=int(clamp(round_half_up(100 - penalty), 0, 100)),
        )
    return output


def worst_stages(stage_health: Mapping[str, StageHealth], top_n: int = 3) -> List[str]:
    """Least healthy stages: health asc, then item count desc, then id."""
    ranked = sorted(
        stage_health.values(),
        key=lambda h: (h.health_score, -h.count, h.stage_id),
    )
    return [h.stage_id for h in ranked[: max(0, top_n)]]
