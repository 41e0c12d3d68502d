"""Baseline coverage and signal completeness of a prediction population."""

from typing import Sequence

from src.workflow.models import finite, parse_timestamp

from .models import DataQuality, FlowBaselines, PredictItemInput


def signal_completeness(item: PredictItemInput) -> float:
    """Fraction of the SLA, stuck and WIP scores that are present and finite."""
    parts = (item.sla_severity_score, item.stuck_severity_score, item.stage_wip_severity_score)
    return sum(1 for value in parts if finite(value) is not None) / 3


def compute_data_quality(items: Sequence[PredictItemInput], baselines: FlowBaselines) -> DataQuality:
    if not items:
        return DataQuality(
            baseline_coverage=1.0 if baselines.has_baselines else 0.0,
            avg_signal_completeness=0.0,
            has_due_dates=False,
        )

    cycle_p50 = baselines.cycle_p50_hours
    has_global_cycle = cycle_p50 is not None and cycle_p50 > 0

    covered = 0
    due_dates = 0
    completeness = 0.0
    for item in items:
        entry = baselines.stage.get(item.stage_id)
        stage_covered = entry is not None and entry.p50_dwell_hours is not None and entry.p50_dwell_hours > 0
        if stage_covered or has_global_cycle:
            covered += 1
        if parse_timestamp(item.due_at) is not None:
            due_dates += 1
        completeness += signal_completeness(item)

    return DataQuality(
        baseline_coverage=covered / len(items),
        avg_signal_completeness=completeness / len(items),
        has_due_dates=due_dates > 0,
    )
