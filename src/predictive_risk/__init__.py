"""Predictive Risk: per-item delay risk, ETAs and portfolio pressure."""

from .config import (
    DEFAULT_PREDICT_CONFIG,
    RISK_WEIGHTS,
    PredictConfig,
    RiskFactorCode,
    RiskLevel,
)
from .models import (
    DataQuality,
    EtaEstimate,
    FlowBaselines,
    ItemFeatures,
    ItemPrediction,
    PortfolioDriver,
    PortfolioRollup,
    PredictItemInput,
    PredictSummary,
    RiskContribution,
    StageBaseline,
    TopRisk,
)
from .baselines import baseline_p50, baseline_p90, build_baselines
from .coverage import compute_data_quality, signal_completeness
from .features import compute_item_features, due_soon_factor, normalize_score
from .model import RiskScore, delay_probability, risk_level_from_score, score_risk
from .eta import estimate_eta
from .explain import build_rationale
from .portfolio import compute_portfolio
from .engine import PredictiveRiskEngine, items_from_signals, predict_workflow_risk

__all__ = [
    # Config
    "DEFAULT_PREDICT_CONFIG",
    "RISK_WEIGHTS",
    "PredictConfig",
    "RiskFactorCode",
    "RiskLevel",
    # Models
    "DataQuality",
    "EtaEstimate",
    "FlowBaselines",
    "ItemFeatures",
    "ItemPrediction",
    "PortfolioDriver",
    "PortfolioRollup",
    "PredictItemInput",
    "PredictSummary",
    "RiskContribution",
    "StageBaseline",
    "TopRisk",
    # Baselines & quality
    "baseline_p50",
    "baseline_p90",
    "build_baselines",
    "compute_data_quality",
    "signal_completeness",
    # Scoring
    "compute_item_features",
    "due_soon_factor",
    "normalize_score",
    "RiskScore",
    "delay_probability",
    "risk_level_from_score",
    "score_risk",
    "estimate_eta",
    "build_rationale",
    "compute_portfolio",
    # Engine
    "PredictiveRiskEngine",
    "items_from_signals",
    "predict_workflow_risk",
]
