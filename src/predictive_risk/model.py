"""Additive risk scoring model.

Each feature contributes ``round(weight * value)`` points; the six largest
contributions sum to the risk score, which then drives an S-curve delay
probability. Confidence drops with weak baselines, missing signals and
volatile flow.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.workflow.models import clamp, round_half_up

from .config import (
    DEFAULT_PREDICT_CONFIG,
    DETAIL_MAX_CHARS,
    MAX_CONTRIBUTIONS,
    RISK_DETAILS,
    RISK_LEVEL_FLOORS,
    RISK_WEIGHTS,
    PredictConfig,
    RiskFactorCode,
    RiskLevel,
)
from .models import DataQuality, FlowBaselines, ItemFeatures, RiskContribution


@dataclass(frozen=True)
class RiskScore:
    risk_score: int
    delay_probability: float
    confidence: float
    contributions: Tuple[RiskContribution, ...]
    top_driver: Optional[RiskFactorCode] = None


def risk_level_from_score(score: float) -> RiskLevel:
    for floor, level in RISK_LEVEL_FLOORS:
        if score >= floor:
            return level
    return RiskLevel.LOW


def quality_feature(quality: DataQuality) -> float:
    """Penalty for missing signals (60%) and uncovered baselines (40%)."""
    return clamp(
        (1 - quality.avg_signal_completeness) * 0.6 + (1 - quality.baseline_coverage) * 0.4,
        0,
        1,
    )


def no_baseline_applied(
    baselines: FlowBaselines,
    quality: DataQuality,
    config: PredictConfig = DEFAULT_PREDICT_CONFIG,
) -> bool:
    return not baselines.has_baselines or quality.baseline_coverage < config.min_baseline_coverage


def delay_probability(risk_score: float, config: PredictConfig = DEFAULT_PREDICT_CONFIG) -> float:
    """Smoothstep of the risk score above the probability floor."""
    floor = config.probability_floor_score
    x = clamp((risk_score - floor) / (100 - floor), 0, 1)
    return clamp(x * x * (3 - 2 * x), 0, 1)


def score_risk(
    features: ItemFeatures,
    baselines: FlowBaselines,
    quality: DataQuality,
    config: PredictConfig = DEFAULT_PREDICT_CONFIG,
) -> RiskScore:
    no_baseline = no_baseline_applied(baselines, quality, config)

    raw = (
        (RiskFactorCode.STUCK, features.stuck),
        (RiskFactorCode.SLA_PRESSURE, features.sla),
        (RiskFactorCode.WIP_OVERLOAD, features.wip),
        (RiskFactorCode.BOTTLENECK, features.bottleneck),
        (RiskFactorCode.AGE_OUTLIER, features.age_outlier),
        (RiskFactorCode.DUE_SOON, features.due_soon),
        (RiskFactorCode.FLOW_SLOWDOWN, features.flow_slowdown),
        (RiskFactorCode.VOLATILITY, features.volatility),
        (RiskFactorCode.DATA_QUALITY, quality_feature(quality)),
        (RiskFactorCode.NO_BASELINE, 1.0 if no_baseline else 0.0),
    )

    scored: List[RiskContribution] = []
    for code, value in raw:
        points = round_half_up(RISK_WEIGHTS[code] * clamp(value, 0, 1))
        if points > 0:
            scored.append(RiskContribution(
                code=code,
                points=points,
                detail=RISK_DETAILS[code][:DETAIL_MAX_CHARS],
            ))
    scored.sort(key=lambda c: (-c.points, c.code.value))
    contributions = tuple(scored[:MAX_CONTRIBUTIONS])

    risk_score = int(clamp(sum(c.points for c in contributions), 0, 100))

    confidence = (
        0.55
        + 0.2 * clamp(quality.baseline_coverage, 0, 1)
        + 0.1 * clamp(quality.avg_signal_completeness, 0, 1)
        - 0.15 * clamp(features.volatility, 0, 1)
        - (0.1 if no_baseline else 0.0)
    )

    return RiskScore(
        risk_score=risk_score,
        delay_probability=delay_probability(risk_score, config),
        confidence=clamp(confidence, config.min_confidence, config.max_confidence),
        contributions=contributions,
        top_driver=contributions[0].code if contributions else None,
    )
