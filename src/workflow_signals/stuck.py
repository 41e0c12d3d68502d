"""Stuck-item classification and rollup."""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from src.workflow.models import WorkflowItem, WorkflowStage, clamp, round_half_up

from .config import (
    DEFAULT_SIGNALS_CONFIG,
    REVIEW_LIKE_MARKERS,
    STUCK_REASON_BONUS,
    SignalsConfig,
    SlaSeverity,
    StuckReason,
)
from .models import SlaStatus, StuckRollup, StuckStatus


def is_review_like(stage_id: str) -> bool:
    normalized = stage_id.lower()
    return any(marker in normalized for marker in REVIEW_LIKE_MARKERS)


def stuck_severity(
    age_hours: float,
    sla: SlaSeverity,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> SlaSeverity:
    """Coarse tier from age thresholds and the SLA tier; critical wins."""
    if age_hours >= config.critical_age_hours or sla == SlaSeverity.CRITICAL:
        return SlaSeverity.CRITICAL
    if age_hours >= config.min_no_progress_hours or sla == SlaSeverity.BREACH:
        return SlaSeverity.BREACH
    if sla == SlaSeverity.WARNING:
        return SlaSeverity.WARNING
    return SlaSeverity.NONE


def classify_stuck_reason(
    item: WorkflowItem,
    stage: Optional[WorkflowStage],
    age_hours: float,
    sla: SlaStatus,
    stage_count: int,
    has_outgoing: bool,
    is_terminal: bool,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> Optional[StuckReason]:
    """First matching stuck reason, or None when the item is moving."""
    requires_approval = bool(stage and stage.requires_approval) or bool(item.requires_approval)
    wip_limit = stage.wip_limit if stage else None

    if sla.severity in (SlaSeverity.BREACH, SlaSeverity.CRITICAL):
        return StuckReason.SLA_BREACH
    if requires_approval and age_hours >= config.approval_wait_hours:
        return StuckReason.APPROVAL_WAIT
    if not is_terminal and not has_outgoing:
        return StuckReason.NO_OUTGOING_TRANSITION
    if wip_limit is not None and stage_count > wip_limit and age_hours >= config.overload_age_hours:
        return StuckReason.STAGE_OVERLOAD
    if age_hours >= config.min_no_progress_hours and (is_review_like(item.stage_id) or requires_approval):
        return StuckReason.NO_PROGRESS
    return None


def detect_stuck(
    item: WorkflowItem,
    stage: Optional[WorkflowStage],
    age_hours: float,
    sla: SlaStatus,
    stage_count: int,
    has_outgoing: bool,
    is_terminal: bool,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> Optional[StuckStatus]:
    """Classify an item; returns None when no stuck reason applies."""
    reason = classify_stuck_reason(
        item, stage, age_hours, sla, stage_count, has_outgoing, is_terminal, config,
    )
    if reason is None:
        return None

    return StuckStatus(
        item_id=item.id,
        stage_id=item.stage_id,
        age_hours=age_hours,
        severity=stuck_severity(age_hours, sla.severity, config),
        severity_score=int(clamp(sla.severity_score + STUCK_REASON_BONUS[reason], 0, 100)),
        reason=reason,
    )


def rollup_stuck(statuses: Sequence[StuckStatus]) -> StuckRollup:
    """Stuck counts, mean score, and the stage with the highest mean score."""
    if not statuses:
        return StuckRollup()

    per_stage: Dict[str, List[int]] = defaultdict(list)
    for status in statuses:
        per_stage[status.stage_id].append(status.severity_score)

    ranked = sorted(
        (-sum(scores) / len(scores), -len(scores), stage_id)
        for stage_id, scores in per_stage.items()
    )
    pressure = sum(s.severity_score for s in statuses) / len(statuses)

    return StuckRollup(
        stuck_count=len(statuses),
        critical_stuck_count=sum(1 for s in statuses if s.severity == SlaSeverity.CRITICAL),
        pressure_score=int(clamp(round_half_up(pressure), 0, 100)),
        top_stage=ranked[0][2],
    )
