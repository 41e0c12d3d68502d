"""SLA evaluation and pressure rollup."""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from src.workflow.models import WorkflowStage, clamp, finite, round_half_up

from .config import DEFAULT_SIGNALS_CONFIG, SignalsConfig, SlaSeverity
from .models import SlaRollup, SlaStatus


def _usable_sla(sla_hours: Optional[float]) -> Optional[float]:
    value = finite(sla_hours)
    return value if value is not None and value > 0 else None


def sla_severity(
    age_hours: float,
    sla_hours: Optional[float],
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> SlaSeverity:
    """Tier an age against a stage SLA; no SLA never breaches."""
    sla = _usable_sla(sla_hours)
    if sla is None:
        return SlaSeverity.NONE
    if age_hours >= sla * config.sla_critical_ratio:
        return SlaSeverity.CRITICAL
    if age_hours >= sla * config.sla_breach_ratio:
        return SlaSeverity.BREACH
    if age_hours >= sla * config.sla_warning_ratio:
        return SlaSeverity.WARNING
    return SlaSeverity.NONE


def sla_severity_score(age_hours: float, sla_hours: Optional[float]) -> int:
    """Continuous 0-100 score: 0 at half the SLA, 100 at 1.5x the SLA."""
    sla = _usable_sla(sla_hours)
    if sla is None:
        return 0
    ratio = age_hours / sla
    return int(clamp(round_half_up(((ratio - 0.5) / 1.0) * 100), 0, 100))


def evaluate_sla(
    item_id: str,
    stage_id: str,
    stage: Optional[WorkflowStage],
    age_hours: float,
    config: SignalsConfig = DEFAULT_SIGNALS_CONFIG,
) -> SlaStatus:
    sla = _usable_sla(stage.sla_hours if stage else None)
    return SlaStatus(
        item_id=item_id,
        stage_id=stage_id,
        age_hours=age_hours,
        severity=sla_severity(age_hours, sla, config),
        severity_score=sla_severity_score(age_hours, sla),
        sla_hours=sla,
        breach_hours=max(0.0, age_hours - sla) if sla is not None else None,
    )


def rollup_sla(statuses: Sequence[SlaStatus]) -> SlaRollup:
    """Population counts, mean score, and the stage under most SLA pressure.

    Stages are ranked by ``2*breach + 4*critical + warning + avgScore/25``,
    then by item count, then by id.
    """
    if not statuses:
        return SlaRollup()

    counts = {severity: 0 for severity in SlaSeverity}
    per_stage: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {"warning": 0, "breach": 0, "critical": 0, "sum": 0.0, "count": 0}
    )
    for status in statuses:
        counts[status.severity] += 1
        bucket = per_stage[status.stage_id]
        if status.severity != SlaSeverity.NONE:
            bucket[status.severity.value] += 1
        bucket["sum"] += status.severity_score
        bucket["count"] += 1

    ranked: List[tuple] = []
    for stage_id, bucket in per_stage.items():
        avg = bucket["sum"] / bucket["count"]
        stage_score = bucket["breach"] * 2 + bucket["critical"] * 4 + bucket["warning"] + avg / 25
        ranked.append((-stage_score, -bucket["count"], stage_id))
    ranked.sort()

    pressure = sum(s.severity_score for s in statuses) / len(statuses)
    return SlaRollup(
        warning_count=counts[SlaSeverity.WARNING],
        breach_count=counts[SlaSeverity.BREACH],
        critical_count=counts[SlaSeverity.CRITICAL],
        pressure_score=int(clamp(round_half_up(pressure), 0, 100)),
        top_stage=ranked[0][2],
    )
