"""Intelligence Pipeline Configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.flow_metrics.config import DEFAULT_FLOW_WINDOW, FlowWindow
from src.predictive_risk.config import DEFAULT_PREDICT_CONFIG, PredictConfig
from src.simulation.config import DEFAULT_SIM_CONFIG, SimConfig
from src.workflow_signals.config import DEFAULT_SIGNALS_CONFIG, SignalsConfig


class PipelineStepName(str, Enum):
    VALIDATE = "validate"
    SIGNALS = "signals"
    FLOW_METRICS = "flow_metrics"
    PREDICT = "predict"
    SIMULATE = "simulate"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineConfig:
    """Engine settings for a full intelligence run."""

    signals: SignalsConfig = DEFAULT_SIGNALS_CONFIG
    flow_window: FlowWindow = DEFAULT_FLOW_WINDOW
    predict: PredictConfig = DEFAULT_PREDICT_CONFIG
    simulation: SimConfig = DEFAULT_SIM_CONFIG
    horizon_days: Optional[float] = None
    workspace_id: str = ""


DEFAULT_PIPELINE_CONFIG = PipelineConfig()
