"""Recent per-stage arrival rate from transition events."""

from datetime import datetime, timedelta
from typing import Dict, Optional

from src.workflow.models import EventsByItem, parse_timestamp


def estimate_stage_throughput(
    events_by_item_id: Optional[EventsByItem],
    now: datetime,
    lookback_hours: float = 72.0,
) -> Dict[str, float]:
    """Transitions per hour into each stage over ``[now - lookback, now]``.

    Stages without arrivals in the window are absent from the result.
    """
    if not events_by_item_id or lookback_hours <= 0:
        return {}

    boundary = now - timedelta(hours=lookback_hours)
    counts: Dict[str, int] = {}
    for events in events_by_item_id.values():
        for event in events:
            occurred = parse_timestamp(event.occurred_at)
            if occurred is None or occurred < boundary or occurred > now:
                continue
            counts[event.to_stage_id] = counts.get(event.to_stage_id, 0) + 1

    return {stage_id: counts[stage_id] / lookback_hours for stage_id in sorted(counts)}
