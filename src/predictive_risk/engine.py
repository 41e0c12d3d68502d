"""Predictive Risk engine.

Scores each work item's risk of delay over a horizon, estimates its ETA
and rolls the predictions up into a portfolio outlook.
"""

import logging
from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from src.flow_metrics.models import FlowMetricsSnapshot
from src.logging_config import log_performance
from src.workflow.models import Timestamp, require_timestamp, round_half_up
from src.workflow_signals.models import WorkflowSignals

from .baselines import build_baselines
from .config import DEFAULT_PREDICT_CONFIG, PredictConfig
from .coverage import compute_data_quality
from .eta import estimate_eta
from .explain import build_rationale
from .features import compute_item_features
from .model import risk_level_from_score, score_risk
from .models import ItemPrediction, PredictItemInput, PredictSummary, TopRisk
from .portfolio import compute_portfolio

logger = logging.getLogger(__name__)


class PredictiveRiskEngine:
    """Per-item delay risk and portfolio pressure.

    Example:
        engine = PredictiveRiskEngine()
        summary = engine.predict(items, now, flow_metrics=snapshot, horizon_days=7)
        summary.top_risks[0].risk_level
    """

    def __init__(self, config: Optional[PredictConfig] = None):
        self.config = config or DEFAULT_PREDICT_CONFIG

    def _horizon(self, horizon_days: Optional[float]) -> int:
        if not horizon_days:
            return self.config.normalized_horizon()
        return max(1, round_half_up(horizon_days))

    @log_performance()
    def predict(
        self,
        items: Sequence[PredictItemInput],
        now,
        flow_metrics: Optional[FlowMetricsSnapshot] = None,
        horizon_days: Optional[float] = None,
        include_per_item: bool = False,
    ) -> PredictSummary:
        """Score items and summarise the portfolio.

        Args:
            items: Per-item severity inputs.
            now: Evaluation instant (datetime or ISO string).
            flow_metrics: Historical snapshot providing baselines; without
                it every item carries the NO_BASELINE factor.
            horizon_days: Prediction horizon, at least one day.
            include_per_item: Attach the full prediction list.

        Returns:
            PredictSummary with predictions ordered by risk desc,
            confidence asc, item id asc.
        """
        cfg = self.config
        now_dt: datetime = require_timestamp(now)
        horizon = self._horizon(horizon_days)

        baselines = build_baselines(flow_metrics)
        quality = compute_data_quality(items, baselines)

        predictions: List[ItemPrediction] = []
        for item in items:
            features = compute_item_features(item, baselines, now_dt, quality.score, cfg)
            scored = score_risk(features, baselines, quality, cfg)
            level = risk_level_from_score(scored.risk_score)
            predictions.append(ItemPrediction(
                item_id=item.item_id,
                stage_id=item.stage_id,
                risk_score=scored.risk_score,
                risk_level=level,
                delay_probability=scored.delay_probability,
                eta=estimate_eta(item, baselines, now_dt),
                confidence=scored.confidence,
                contributions=scored.contributions,
                rationale=build_rationale(level, scored.contributions),
                top_driver=scored.top_driver,
            ))
        predictions.sort(key=lambda p: (-p.risk_score, p.confidence, p.item_id))

        portfolio = compute_portfolio(predictions, cfg)
        summary = PredictSummary(
            horizon_days=horizon,
            pressure_score=portfolio.pressure_score,
            tail_risk_score=portfolio.tail_risk_score,
            critical_count=portfolio.critical_count,
            high_count=portfolio.high_count,
            top_stage=portfolio.top_stage,
            stage_concentration_pct=portfolio.stage_concentration_pct,
            top_drivers=portfolio.top_drivers,
            top_risks=tuple(
                TopRisk(
                    item_id=p.item_id,
                    stage_id=p.stage_id,
                    risk_score=p.risk_score,
                    risk_level=p.risk_level,
                    confidence=p.confidence,
                    eta=p.eta,
                )
                for p in predictions[:cfg.top_risks_n]
            ),
            data_quality=quality,
            predictions=tuple(predictions) if include_per_item else None,
        )

        logger.debug(
            "Risk predicted: %d items, pressure=%.1f, critical=%d, high=%d",
            len(predictions),
            summary.pressure_score,
            summary.critical_count,
            summary.high_count,
        )
        return summary


def predict_workflow_risk(
    items: Sequence[PredictItemInput],
    now,
    flow_metrics: Optional[FlowMetricsSnapshot] = None,
    horizon_days: Optional[float] = None,
    include_per_item: bool = False,
    config: Optional[PredictConfig] = None,
) -> PredictSummary:
    """Functional shortcut for :meth:`PredictiveRiskEngine.predict`."""
    return PredictiveRiskEngine(config).predict(
        items, now, flow_metrics=flow_metrics, horizon_days=horizon_days, include_per_item=include_per_item,
    )


def items_from_signals(
    signals: WorkflowSignals,
    due_at_by_item_id: Optional[Mapping[str, Timestamp]] = None,
) -> List[PredictItemInput]:
    """Build prediction inputs from a signals snapshot with per-item detail.

    Items that are not stuck get a stuck score of 0. The bottleneck flag
    marks items sitting in the signals' bottleneck stage.

    Raises:
        ValueError: If the signals were computed without per-item detail.
    """
    if signals.item_time is None or signals.item_sla is None or signals.item_stuck is None:
        raise ValueError("Signals carry no per-item detail; compute with include_per_item=True")

    due = due_at_by_item_id or {}
    sla_by_item = {s.item_id: s for s in signals.item_sla}
    stuck_by_item = {s.item_id: s for s in signals.item_stuck}
    bottleneck_stage = signals.bottleneck.top_stage

    inputs: List[PredictItemInput] = []
    for entry in signals.item_time:
        sla = sla_by_item.get(entry.item_id)
        stuck = stuck_by_item.get(entry.item_id)
        wip = signals.stage_wip.get(entry.stage_id)
        inputs.append(PredictItemInput(
            item_id=entry.item_id,
            stage_id=entry.stage_id,
            age_hours=entry.age_hours,
            sla_severity_score=sla.severity_score if sla else None,
            stuck_severity_score=stuck.severity_score if stuck else 0,
            stage_wip_severity_score=wip.severity_score if wip else None,
            is_bottleneck_stage=bottleneck_stage is not None and entry.stage_id == bottleneck_stage,
            due_at=due.get(entry.item_id),
        ))
    return inputs
