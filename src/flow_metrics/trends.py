"""Short-vs-prior window trends and lead-time volatility."""

from datetime import datetime, timedelta
from typing import Sequence

import numpy as np

from src.workflow.models import round_half_up

from .config import VOLATILITY_WINDOW_MULTIPLIER
from .models import ItemTimeline, TrendStats
from .stats import average, delta_pct, percentile
from .timeline import done_points


def compute_trends(
    timelines: Sequence[ItemTimeline],
    now: datetime,
    short_days: int,
) -> TrendStats:
    """Compare the last short window against the one before it.

    Windows are half-open ``[start, end)``. Volatility is the p90/p50
    lead-time spread over the last ``4 * short_days`` days, as 0-100.
    """
    short_days = max(1, round_half_up(short_days))
    lookback_days = max(short_days * VOLATILITY_WINDOW_MULTIPLIER, 1)

    points = done_points(timelines)
    short_start = now - timedelta(days=short_days)
    prior_start = now - timedelta(days=short_days * 2)
    lookback_start = now - timedelta(days=lookback_days)

    short = [p for p in points if short_start <= p.done_at < now]
    prior = [p for p in points if prior_start <= p.done_at < short_start]
    lookback = [p for p in points if lookback_start <= p.done_at < now]

    short_lead = average(p.lead_hours for p in short)
    prior_lead = average(p.lead_hours for p in prior)
    short_cycle = average(p.cycle_hours for p in short)
    prior_cycle = average(p.cycle_hours for p in prior)

    short_eff = average(p.active_hours for p in short) / short_lead if short_lead > 0 else 0.0
    prior_eff = average(p.active_hours for p in prior) / prior_lead if prior_lead > 0 else 0.0

    leads = [p.lead_hours for p in lookback]
    p50 = percentile(leads, 50)
    p90 = percentile(leads, 90)
    volatility = float(np.clip((p90 - p50) / max(1.0, p50) * 100, 0, 100))

    return TrendStats(
        lead_time_delta_pct=delta_pct(short_lead, prior_lead),
        cycle_time_delta_pct=delta_pct(short_cycle, prior_cycle),
        throughput_delta_pct=delta_pct(len(short), len(prior)),
        efficiency_delta_pct=delta_pct(short_eff, prior_eff),
        volatility_score=volatility,
    )
