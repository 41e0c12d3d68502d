"""Per-item timeline reconstruction from transition events."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from src.workflow.models import (
    EventsByItem,
    WorkflowTransitionEvent,
    hours_between,
    parse_timestamp,
    timestamp_text,
)

from .config import StageZone
from .models import ItemTimeline, TimelineSegment, ZonePolicy


@dataclass(frozen=True)
class DonePoint:
    """A completed item reduced to the facts the window statistics need."""

    item_id: str
    done_at: datetime
    lead_hours: float
    cycle_hours: float
    active_hours: float


def _span_hours(start: datetime, end: datetime) -> float:
    return max(0.0, hours_between(start, end))


def ordered_events(events: Sequence[WorkflowTransitionEvent]) -> List[tuple]:
    """Parseable events as (time, event), sorted by time, raw text, id, target."""
    keyed = []
    for event in events:
        occurred = parse_timestamp(event.occurred_at)
        if occurred is None:
            continue
        keyed.append((occurred, timestamp_text(event.occurred_at), event.id, event.to_stage_id, event))
    keyed.sort(key=lambda row: row[:4])
    return [(row[0], row[4]) for row in keyed]


def build_segments(
    events: Sequence[WorkflowTransitionEvent],
    zones: ZonePolicy,
    now: datetime,
) -> List[TimelineSegment]:
    """Contiguous stage segments; the last one stays open until *now*."""
    ordered = ordered_events(events)
    segments: List[TimelineSegment] = []
    for index, (entered, event) in enumerate(ordered):
        exited = ordered[index + 1][0] if index + 1 < len(ordered) else None
        segments.append(
            TimelineSegment(
                stage_id=event.to_stage_id,
                entered_at=entered,
                exited_at=exited,
                dwell_hours=_span_hours(entered, exited or now),
                zone=zones.zone_for(event.to_stage_id),
            )
        )
    return segments


def _first_entry(segments: Sequence[TimelineSegment], zone: StageZone) -> Optional[datetime]:
    for segment in segments:
        if segment.zone == zone:
            return segment.entered_at
    return None


def build_timeline(
    item_id: str,
    events: Sequence[WorkflowTransitionEvent],
    zones: ZonePolicy,
    now: datetime,
) -> ItemTimeline:
    segments = build_segments(events, zones, now)
    first_seen = segments[0].entered_at if segments else None
    first_active = _first_entry(segments, StageZone.ACTIVE)
    first_done = _first_entry(segments, StageZone.DONE)

    lead = _span_hours(first_seen, first_done) if first_seen and first_done else None
    cycle = _span_hours(first_active, first_done) if first_active and first_done else None

    active_hours: Optional[float] = None
    queue_hours: Optional[float] = None
    if first_done is not None:
        active_hours = 0.0
        queue_hours = 0.0
        for segment in segments:
            if segment.entered_at >= first_done:
                continue
            exited = min(segment.exited_at or now, first_done)
            hours = _span_hours(segment.entered_at, exited)
            if segment.zone == StageZone.ACTIVE:
                active_hours += hours
            elif segment.zone == StageZone.QUEUE:
                queue_hours += hours

    return ItemTimeline(
        item_id=item_id,
        segments=tuple(segments),
        first_seen_at=first_seen,
        first_active_at=first_active,
        first_done_at=first_done,
        lead_hours=lead,
        cycle_hours=cycle,
        active_hours=active_hours,
        queue_hours=queue_hours,
    )


def build_timelines(
    events_by_item_id: EventsByItem,
    zones: ZonePolicy,
    now: datetime,
) -> List[ItemTimeline]:
    """One timeline per item, in item-id order."""
    return [
        build_timeline(item_id, events_by_item_id[item_id] or (), zones, now)
        for item_id in sorted(events_by_item_id)
    ]


def done_points(timelines: Sequence[ItemTimeline]) -> List[DonePoint]:
    """Completed items sorted by completion time, then id."""
    points = [
        DonePoint(
            item_id=t.item_id,
            done_at=t.first_done_at,
            lead_hours=max(0.0, t.lead_hours or 0.0),
            cycle_hours=max(0.0, t.cycle_hours or 0.0),
            active_hours=max(0.0, t.active_hours or 0.0),
        )
        for t in timelines
        if t.first_done_at is not None
    ]
    points.sort(key=lambda p: (p.done_at, p.item_id))
    return points
