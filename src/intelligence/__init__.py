"""Intelligence: one-call run of every workflow engine over a snapshot."""

from .config import DEFAULT_PIPELINE_CONFIG, PipelineConfig, PipelineStepName, StepStatus
from .pipeline import IntelligencePipeline, IntelligenceReport, PipelineStep, run_intelligence

__all__ = [
    # Config
    "DEFAULT_PIPELINE_CONFIG",
    "PipelineConfig",
    "PipelineStepName",
    "StepStatus",
    # Pipeline
    "IntelligencePipeline",
    "IntelligenceReport",
    "PipelineStep",
    "run_intelligence",
]
