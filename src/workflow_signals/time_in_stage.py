"""Time-in-stage resolution with layered fallbacks."""

from datetime import datetime
from typing import Optional, Sequence

from src.workflow.models import (
    WorkflowItem,
    WorkflowTransitionEvent,
    hours_between,
    parse_timestamp,
)

from .config import TimeSource
from .models import TimeInStage


def _age_hours(now: datetime, entered_at: datetime) -> float:
    return max(0.0, hours_between(entered_at, now))


def _last_entry_event(
    stage_id: str,
    events: Sequence[WorkflowTransitionEvent],
) -> Optional[datetime]:
    """Most recent parseable event that moved the item into *stage_id*."""
    entries = [
        parsed
        for parsed in (parse_timestamp(e.occurred_at) for e in events if e.to_stage_id == stage_id)
        if parsed is not None
    ]
    return max(entries) if entries else None


def resolve_time_in_stage(
    item: WorkflowItem,
    now: datetime,
    events: Optional[Sequence[WorkflowTransitionEvent]] = None,
) -> TimeInStage:
    """Resolve when *item* entered its current stage.

    Precedence: explicit ``stage_entered_at``, then the latest event into
    the current stage, then ``updated_at``, then *now* (age 0). Unparsable
    timestamps fall through to the next tier.
    """
    entered = parse_timestamp(item.stage_entered_at)
    if entered is not None:
        source = TimeSource.STAGE_ENTERED_AT
    else:
        entered = _last_entry_event(item.stage_id, events or ())
        if entered is not None:
            source = TimeSource.EVENT_STREAM
        else:
            entered = parse_timestamp(item.updated_at) or now
            source = TimeSource.UPDATED_AT_FALLBACK

    return TimeInStage(
        item_id=item.id,
        stage_id=item.stage_id,
        entered_at=entered,
        age_hours=_age_hours(now, entered),
        source=source,
    )
