"""Flow Metrics engine.

Rebuilds item timelines from transition events and summarises lead time,
cycle time, throughput, efficiency, stage dwell, trends and anomalies.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import numpy as np

from src.logging_config import log_performance
from src.workflow.models import EventsByItem, require_timestamp

from .anomalies import detect_anomalies
from .config import DEFAULT_FLOW_WINDOW, RECENT_DONE_LIMIT, FlowWindow
from .dwell import compute_stage_dwell
from .models import EfficiencyStats, FlowMetricsSnapshot, ThroughputStats, ZonePolicy
from .stats import average, delta_pct, duration_stats
from .timeline import DonePoint, build_timelines, done_points
from .trends import compute_trends

logger = logging.getLogger(__name__)


def _efficiency(points: Sequence[DonePoint]) -> float:
    avg_lead = average(p.lead_hours for p in points)
    if avg_lead <= 0:
        return 0.0
    avg_active = average(p.active_hours for p in points)
    return float(np.clip(avg_active / max(1e-6, avg_lead), 0, 1))


class FlowMetricsEngine:
    """Historical flow statistics from per-item transition events.

    Example:
        engine = FlowMetricsEngine(FlowWindow(lookback_days=30, short_days=7))
        snapshot = engine.compute(events_by_item_id, now, zones)
        snapshot.throughput.per_week
    """

    def __init__(self, window: Optional[FlowWindow] = None):
        self.window = (window or DEFAULT_FLOW_WINDOW).normalized()

    @log_performance()
    def compute(
        self,
        events_by_item_id: Optional[EventsByItem],
        now,
        zones: Optional[ZonePolicy] = None,
    ) -> FlowMetricsSnapshot:
        """Compute the snapshot; no events yields an all-zero snapshot."""
        window = self.window
        now_dt: datetime = require_timestamp(now)
        zones = zones or ZonePolicy()

        if not events_by_item_id:
            logger.debug("No transition events; returning empty flow snapshot")
            return FlowMetricsSnapshot(window=window)

        timelines = build_timelines(events_by_item_id, zones, now_dt)
        points = done_points(timelines)

        lookback_start = now_dt - timedelta(days=window.lookback_days)
        short_start = now_dt - timedelta(days=window.short_days)
        prior_start = now_dt - timedelta(days=window.short_days * 2)

        done_lookback = [p for p in points if lookback_start <= p.done_at <= now_dt]
        done_short = [p for p in points if short_start <= p.done_at < now_dt]
        done_prior = [p for p in points if prior_start <= p.done_at < short_start]

        throughput = ThroughputStats(
            last_short=len(done_short),
            prior_short=len(done_prior),
            last_lookback=len(done_lookback),
            per_week=len(done_lookback) / (window.lookback_days / 7),
            delta_pct=delta_pct(len(done_short), len(done_prior)),
        )
        efficiency = EfficiencyStats(
            efficiency=_efficiency(done_lookback),
            avg_active_hours=average(p.active_hours for p in done_lookback),
            avg_lead_hours=average(p.lead_hours for p in done_lookback),
            delta_pct=delta_pct(_efficiency(done_short), _efficiency(done_prior)),
        )
        trends = compute_trends(timelines, now_dt, window.short_days)

        recent: List[DonePoint] = sorted(done_lookback, key=lambda p: (-p.done_at.timestamp(), p.item_id))

        snapshot = FlowMetricsSnapshot(
            window=window,
            lead_time=duration_stats(p.lead_hours for p in done_lookback),
            cycle_time=duration_stats(p.cycle_hours for p in done_lookback),
            throughput=throughput,
            efficiency=efficiency,
            stage_dwell=tuple(compute_stage_dwell(timelines, zones)),
            trends=trends,
            anomalies=tuple(detect_anomalies(throughput, efficiency, trends)),
            recent_done_item_ids=tuple(p.item_id for p in recent[:RECENT_DONE_LIMIT]),
        )

        logger.debug(
            "Flow metrics computed: %d timelines, %d done in lookback, %d anomalies",
            len(timelines),
            len(done_lookback),
            len(snapshot.anomalies),
        )
        return snapshot


def compute_flow_metrics(
    events_by_item_id: Optional[EventsByItem],
    now,
    zones: Optional[ZonePolicy] = None,
    window: Optional[FlowWindow] = None,
) -> FlowMetricsSnapshot:
    """Functional shortcut for :meth:`FlowMetricsEngine.compute`."""
    return FlowMetricsEngine(window).compute(events_by_item_id, now, zones)
