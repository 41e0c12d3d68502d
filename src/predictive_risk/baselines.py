"""Historical baselines for risk prediction, taken from a flow metrics snapshot."""

from typing import Dict, Optional

from src.flow_metrics.models import FlowMetricsSnapshot
from src.workflow.models import finite

from .models import FlowBaselines, StageBaseline


def build_baselines(flow_metrics: Optional[FlowMetricsSnapshot] = None) -> FlowBaselines:
    """Stage dwell p50/p90 plus global lead/cycle percentiles.

    Without a snapshot there are no baselines, and throughput and
    volatility are unknown.
    """
    if flow_metrics is None:
        return FlowBaselines()

    stage: Dict[str, StageBaseline] = {}
    for entry in flow_metrics.stage_dwell:
        stage[entry.stage_id] = StageBaseline(
            stage_id=entry.stage_id,
            p50_dwell_hours=finite(entry.p50_dwell_hours),
            p90_dwell_hours=finite(entry.p90_dwell_hours),
        )

    lead_p50 = finite(flow_metrics.lead_time.p50_hours)
    lead_p90 = finite(flow_metrics.lead_time.p90_hours)
    cycle_p50 = finite(flow_metrics.cycle_time.p50_hours)
    cycle_p90 = finite(flow_metrics.cycle_time.p90_hours)
    has_global = any(v is not None for v in (lead_p50, lead_p90, cycle_p50, cycle_p90))

    return FlowBaselines(
        has_baselines=bool(stage) or has_global,
        throughput_per_week=finite(flow_metrics.throughput.per_week),
        volatility_score=finite(flow_metrics.trends.volatility_score),
        stage=stage,
        lead_p50_hours=lead_p50,
        lead_p90_hours=lead_p90,
        cycle_p50_hours=cycle_p50,
        cycle_p90_hours=cycle_p90,
    )


def _positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def baseline_p50(baselines: FlowBaselines, stage_id: str) -> Optional[float]:
    """Stage p50 dwell when positive, else the global cycle p50 when positive."""
    entry = baselines.stage.get(stage_id)
    stage_value = _positive(entry.p50_dwell_hours) if entry else None
    return stage_value if stage_value is not None else _positive(baselines.cycle_p50_hours)


def baseline_p90(baselines: FlowBaselines, stage_id: str) -> Optional[float]:
    """Stage p90 dwell when positive, else the global cycle p90 when positive."""
    entry = baselines.stage.get(stage_id)
    stage_value = _positive(entry.p90_dwell_hours) if entry else None
    return stage_value if stage_value is not None else _positive(baselines.cycle_p90_hours)
