"""Flow Metrics: timelines, lead/cycle time, throughput, efficiency and anomalies."""

from .config import (
    AnomalyCode,
    AnomalySeverity,
    DEFAULT_FLOW_WINDOW,
    FlowWindow,
    InsightCode,
    InsightTone,
    StageZone,
)
from .models import (
    DurationStats,
    EfficiencyStats,
    FlowAnomaly,
    FlowInsight,
    FlowMetricsSnapshot,
    ItemTimeline,
    StageDwellStats,
    ThroughputStats,
    TimelineSegment,
    TrendStats,
    ZonePolicy,
)
from .stats import delta_pct, duration_stats, percentile, trimmed_mean
from .timeline import build_timeline, build_timelines, done_points
from .dwell import compute_stage_dwell
from .trends import compute_trends
from .anomalies import detect_anomalies, severity_for
from .insights import build_insights
from .engine import FlowMetricsEngine, compute_flow_metrics

__all__ = [
    # Config
    "AnomalyCode",
    "AnomalySeverity",
    "DEFAULT_FLOW_WINDOW",
    "FlowWindow",
    "InsightCode",
    "InsightTone",
    "StageZone",
    # Models
    "DurationStats",
    "EfficiencyStats",
    "FlowAnomaly",
    "FlowInsight",
    "FlowMetricsSnapshot",
    "ItemTimeline",
    "StageDwellStats",
    "ThroughputStats",
    "TimelineSegment",
    "TrendStats",
    "ZonePolicy",
    # Statistics
    "delta_pct",
    "duration_stats",
    "percentile",
    "trimmed_mean",
    # Timelines & analysis
    "build_timeline",
    "build_timelines",
    "done_points",
    "compute_stage_dwell",
    "compute_trends",
    "detect_anomalies",
    "severity_for",
    "build_insights",
    # Engine
    "FlowMetricsEngine",
    "compute_flow_metrics",
]
