"""Workflow Policy - Data Models.

Immutable value objects for policies, item snapshots and transition
events, plus the lenient timestamp handling shared by every engine.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .config import DEFAULT_POLICY_VERSION

Timestamp = Union[datetime, str, None]


@dataclass(frozen=True)
class WorkflowStage:
    """A named step in a workflow policy."""

    id: str
    order: int
    label: str = ""
    wip_limit: Optional[int] = None
    sla_hours: Optional[float] = None
    requires_approval: bool = False
    terminal: bool = False


@dataclass(frozen=True)
class WorkflowTransition:
    """A permitted directed move between two stages."""

    from_stage: str
    to_stage: str
    reversible: bool = False


@dataclass(frozen=True)
class TransitionGuard:
    """Roles allowed to perform one transition."""

    from_stage: str
    to_stage: str
    allowed_roles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WorkflowPolicy:
    """Versioned state-machine definition: stages, transitions and guards."""

    stages: Tuple[WorkflowStage, ...]
    transitions: Tuple[WorkflowTransition, ...] = ()
    guards: Tuple[TransitionGuard, ...] = ()
    version: str = DEFAULT_POLICY_VERSION


@dataclass(frozen=True)
class WorkflowItem:
    """Current snapshot of a work item."""

    id: str
    stage_id: str
    updated_at: Timestamp = None
    stage_entered_at: Timestamp = None
    requires_approval: Optional[bool] = None


@dataclass(frozen=True)
class EntityRef:
    workspace_id: str
    entity_type: str
    entity_id: str


@dataclass(frozen=True)
class EventActor:
    user_id: str
    role: str


@dataclass(frozen=True)
class WorkflowTransitionEvent:
    """Append-only record of an item moving into ``to_stage_id``."""

    id: str
    occurred_at: Timestamp
    to_stage_id: str
    from_stage_id: Optional[str] = None
    ref: Optional[EntityRef] = None
    actor: Optional[EventActor] = None
    policy_version: str = DEFAULT_POLICY_VERSION
    idempotency_key: str = ""
    reason: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    prev_event_id: Optional[str] = None


EventsByItem = Mapping[str, Sequence[WorkflowTransitionEvent]]


# ── Timestamps ────────────────────────────────────────────────────────


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime.

    Unparsable, empty and missing values return None instead of raising.
    Naive datetimes are interpreted as UTC.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def require_timestamp(value: Any, name: str = "now") -> datetime:
    """Parse an evaluation instant; callers must supply a valid one."""
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid {name} timestamp: {value!r}")
    return parsed


def hours_between(start: datetime, end: datetime) -> float:
    """Signed hours from *start* to *end*."""
    return (end - start).total_seconds() / 3600.0


def timestamp_text(value: Any) -> str:
    """Raw textual form of a timestamp, used as a sort tie-breaker."""
    if isinstance(value, datetime):
        return value.isoformat()
    return "" if value is None else str(value)


# ── Serialization ─────────────────────────────────────────────────────


def to_plain(value: Any) -> Any:
    """Convert nested dataclasses/enums/datetimes into JSON-ready primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_plain(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return 0.0
    return value


def finite(value: Any) -> Optional[float]:
    """Return *value* as a float when it is a finite number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp to [low, high]; non-finite input collapses to *low*."""
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going toward +inf."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def stage_map(policy: WorkflowPolicy) -> Dict[str, WorkflowStage]:
    """First stage definition per id."""
    stages: Dict[str, WorkflowStage] = {}
    for stage in policy.stages:
        stages.setdefault(stage.id, stage)
    return stages
