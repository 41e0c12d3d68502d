"""Per-stage dwell statistics for completed items."""

from collections import defaultdict
from typing import Dict, List, Sequence

from src.workflow.models import hours_between

from .config import ZONE_ORDER, StageZone
from .models import ItemTimeline, StageDwellStats, ZonePolicy
from .stats import duration_stats


def compute_stage_dwell(
    timelines: Sequence[ItemTimeline],
    zones: ZonePolicy,
) -> List[StageDwellStats]:
    """Dwell distribution per stage, truncated at each item's completion.

    Only completed items with positive lead time contribute. Sorted by
    zone (queue, active, done), then lead share desc, then stage id.
    """
    dwell: Dict[str, List[float]] = defaultdict(list)
    share: Dict[str, List[float]] = defaultdict(list)
    zone_by_stage: Dict[str, StageZone] = {}

    for timeline in timelines:
        done_at = timeline.first_done_at
        lead = timeline.lead_hours
        if done_at is None or not lead or lead <= 0:
            continue
        for segment in timeline.segments:
            if segment.entered_at >= done_at:
                continue
            exited = min(segment.exited_at or done_at, done_at)
            hours = max(0.0, hours_between(segment.entered_at, exited))
            dwell[segment.stage_id].append(hours)
            share[segment.stage_id].append(max(0.0, hours / lead))
            zone_by_stage[segment.stage_id] = (
                StageZone(zones.zone_by_stage_id[segment.stage_id])
                if segment.stage_id in zones.zone_by_stage_id
                else segment.zone
            )

    output: List[StageDwellStats] = []
    for stage_id, values in dwell.items():
        stats = duration_stats(values)
        shares = share[stage_id]
        output.append(
            StageDwellStats(
                stage_id=stage_id,
                zone=zone_by_stage[stage_id],
                count=stats.count,
                avg_dwell_hours=stats.avg_hours,
                p50_dwell_hours=stats.p50_hours,
                p90_dwell_hours=stats.p90_hours,
                avg_lead_share=sum(shares) / len(shares) if shares else 0.0,
            )
        )

    output.sort(key=lambda s: (ZONE_ORDER[s.zone], -s.avg_lead_share, s.stage_id))
    return output
