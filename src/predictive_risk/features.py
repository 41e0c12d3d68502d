"""Per-item risk features, each normalised to [0, 1]."""

from datetime import datetime
from typing import Optional

from src.workflow.models import Timestamp, clamp, finite, hours_between, parse_timestamp

from .baselines import baseline_p90
from .config import DEFAULT_PREDICT_CONFIG, PredictConfig
from .models import FlowBaselines, ItemFeatures, PredictItemInput


def normalize_score(value: Optional[float]) -> float:
    """0-100 severity score to [0, 1]; missing or non-finite is 0."""
    number = finite(value)
    if number is None:
        return 0.0
    return clamp(number / 100, 0, 1)


def due_soon_factor(due_at: Timestamp, now: datetime, config: PredictConfig = DEFAULT_PREDICT_CONFIG) -> float:
    """1 within a day of the due date (or past it), 0.5 within three days."""
    due = parse_timestamp(due_at)
    if due is None:
        return 0.0
    remaining = hours_between(now, due)
    if remaining <= config.due_soon_hours:
        return 1.0
    if remaining <= config.due_near_hours:
        return 0.5
    return 0.0


def flow_slowdown_factor(throughput_per_week: Optional[float], config: PredictConfig = DEFAULT_PREDICT_CONFIG) -> float:
    if throughput_per_week is None:
        return 0.0
    if throughput_per_week <= config.slow_throughput_per_week:
        return 1.0
    if throughput_per_week <= config.sluggish_throughput_per_week:
        return 0.6
    return 0.0


def compute_item_features(
    item: PredictItemInput,
    baselines: FlowBaselines,
    now: datetime,
    data_quality: float,
    config: PredictConfig = DEFAULT_PREDICT_CONFIG,
) -> ItemFeatures:
    p90 = baseline_p90(baselines, item.stage_id)
    age = max(0.0, finite(item.age_hours) or 0.0)
    age_outlier = clamp(age / p90 - 1, 0, 1) if p90 else 0.0

    return ItemFeatures(
        sla=normalize_score(item.sla_severity_score),
        stuck=normalize_score(item.stuck_severity_score),
        wip=normalize_score(item.stage_wip_severity_score),
        bottleneck=1.0 if item.is_bottleneck_stage else 0.0,
        age_outlier=age_outlier,
        due_soon=due_soon_factor(item.due_at, now, config),
        flow_slowdown=flow_slowdown_factor(baselines.throughput_per_week, config),
        volatility=clamp((baselines.volatility_score or 0.0) / 100, 0, 1),
        data_quality=clamp(data_quality, 0, 1),
    )
