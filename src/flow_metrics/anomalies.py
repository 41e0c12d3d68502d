"""Rule-based flow anomaly detection."""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    ANOMALY_HIGH_SCORE,
    ANOMALY_MEDIUM_SCORE,
    ANOMALY_MESSAGES,
    EFFICIENCY_DROP_CEILING,
    EFFICIENCY_DROP_DELTA,
    EFFICIENCY_DROP_SCORES,
    EFFICIENCY_SEVERE_CEILING,
    THROUGHPUT_DROP_TIERS,
    TIME_SPIKE_TIERS,
    VOLATILITY_TIERS,
    AnomalyCode,
    AnomalySeverity,
)
from .models import EfficiencyStats, FlowAnomaly, ThroughputStats, TrendStats


def severity_for(score: float) -> AnomalySeverity:
    if score >= ANOMALY_HIGH_SCORE:
        return AnomalySeverity.HIGH
    if score >= ANOMALY_MEDIUM_SCORE:
        return AnomalySeverity.MEDIUM
    return AnomalySeverity.LOW


def _tier_score(value: float, tiers: Sequence[Tuple[float, int]], rising: bool) -> Optional[int]:
    """Score of the furthest tier *value* reaches, or None below the first."""
    score = None
    for threshold, tier_score in tiers:
        reached = value >= threshold if rising else value <= threshold
        if reached:
            score = tier_score
    return score


def _anomaly(code: AnomalyCode, score: int) -> FlowAnomaly:
    return FlowAnomaly(
        code=code,
        severity=severity_for(score),
        score=score,
        message=ANOMALY_MESSAGES[code],
    )


def detect_anomalies(
    throughput: ThroughputStats,
    efficiency: EfficiencyStats,
    trends: TrendStats,
) -> List[FlowAnomaly]:
    """Evaluate the five anomaly rules; sorted by score desc, then code."""
    anomalies: List[FlowAnomaly] = []

    score = _tier_score(throughput.delta_pct, THROUGHPUT_DROP_TIERS, rising=False)
    if score is not None:
        anomalies.append(_anomaly(AnomalyCode.THROUGHPUT_DROP, score))

    score = _tier_score(trends.lead_time_delta_pct, TIME_SPIKE_TIERS, rising=True)
    if score is not None:
        anomalies.append(_anomaly(AnomalyCode.LEAD_TIME_SPIKE, score))

    score = _tier_score(trends.cycle_time_delta_pct, TIME_SPIKE_TIERS, rising=True)
    if score is not None:
        anomalies.append(_anomaly(AnomalyCode.CYCLE_TIME_SPIKE, score))

    if (
        efficiency.efficiency <= EFFICIENCY_DROP_CEILING
        and trends.efficiency_delta_pct <= EFFICIENCY_DROP_DELTA
    ):
        moderate, severe = EFFICIENCY_DROP_SCORES
        score = severe if efficiency.efficiency <= EFFICIENCY_SEVERE_CEILING else moderate
        anomalies.append(_anomaly(AnomalyCode.EFFICIENCY_DROP, score))

    volatility = float(np.clip(trends.volatility_score, 0, 100))
    score = _tier_score(volatility, VOLATILITY_TIERS, rising=True)
    if score is not None:
        anomalies.append(_anomaly(AnomalyCode.VOLATILITY_RISE, score))

    anomalies.sort(key=lambda a: (-a.score, a.code.value))
    return anomalies
