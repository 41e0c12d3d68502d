"""Portfolio rollup of item predictions."""

from collections import defaultdict
from typing import Dict, List, Sequence

import numpy as np

from src.workflow.models import round_half_up

from .config import DEFAULT_PREDICT_CONFIG, PredictConfig, RiskFactorCode, RiskLevel
from .models import ItemPrediction, PortfolioDriver, PortfolioRollup


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def compute_portfolio(
    predictions: Sequence[ItemPrediction],
    config: PredictConfig = DEFAULT_PREDICT_CONFIG,
) -> PortfolioRollup:
    """Pressure, tail risk, stage concentration and leading risk drivers.

    Slices are taken from predictions ranked by risk score desc, item id asc.
    """
    ranked = sorted(predictions, key=lambda p: (-p.risk_score, p.item_id))
    top_window = ranked[:config.concentration_top_n]

    stage_mass: Dict[str, int] = defaultdict(int)
    for prediction in top_window:
        stage_mass[prediction.stage_id] += prediction.risk_score
    top_stage = None
    stage_concentration = 0
    if stage_mass:
        top_stage, mass = min(stage_mass.items(), key=lambda kv: (-kv[1], kv[0]))
        total = sum(p.risk_score for p in top_window)
        stage_concentration = round_half_up(mass / total * 100) if total > 0 else 0

    driver_points: Dict[RiskFactorCode, int] = defaultdict(int)
    for prediction in top_window:
        for contribution in prediction.contributions:
            driver_points[contribution.code] += contribution.points
    all_points = sum(driver_points.values())
    drivers: List[PortfolioDriver] = [
        PortfolioDriver(
            code=code,
            share_pct=round_half_up(points / all_points * 100) if all_points > 0 else 0,
        )
        for code, points in driver_points.items()
    ]
    drivers.sort(key=lambda d: (-d.share_pct, d.code.value))

    return PortfolioRollup(
        pressure_score=_mean([p.risk_score for p in ranked[:config.pressure_top_n]]),
        tail_risk_score=_mean([p.risk_score for p in ranked[:config.tail_top_n]]),
        critical_count=sum(1 for p in predictions if p.risk_level == RiskLevel.CRITICAL),
        high_count=sum(1 for p in predictions if p.risk_level == RiskLevel.HIGH),
        top_stage=top_stage,
        stage_concentration_pct=stage_concentration,
        top_drivers=tuple(drivers[:config.top_drivers_n]),
    )
