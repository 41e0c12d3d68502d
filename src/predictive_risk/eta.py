"""Completion ETA estimates from stage or global baselines."""

from datetime import datetime, timedelta
from typing import Optional

from src.workflow.models import finite

from .baselines import baseline_p50, baseline_p90
from .models import EtaEstimate, FlowBaselines, PredictItemInput


def _remaining(baseline: Optional[float], age_hours: float) -> Optional[float]:
    if baseline is None:
        return None
    return max(0.0, baseline - age_hours)


def _at(now: datetime, remaining_hours: Optional[float]) -> Optional[datetime]:
    if remaining_hours is None:
        return None
    return now + timedelta(hours=remaining_hours)


def estimate_eta(item: PredictItemInput, baselines: FlowBaselines, now: datetime) -> EtaEstimate:
    """Remaining time is the baseline minus the item's age, never negative.

    Items with neither a stage nor a global baseline get an empty estimate.
    """
    p50 = baseline_p50(baselines, item.stage_id)
    p90 = baseline_p90(baselines, item.stage_id)
    if p50 is None and p90 is None:
        return EtaEstimate()

    age = max(0.0, finite(item.age_hours) or 0.0)
    remaining_p50 = _remaining(p50, age)
    remaining_p90 = _remaining(p90, age)
    return EtaEstimate(
        p50_at=_at(now, remaining_p50),
        p90_at=_at(now, remaining_p90),
        remaining_p50_hours=remaining_p50,
        remaining_p90_hours=remaining_p90,
    )
