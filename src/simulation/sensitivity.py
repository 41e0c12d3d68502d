"""Capacity sensitivity: re-run a scenario with a stage boosted by 10% and 25%."""

from dataclasses import replace
from typing import List, Optional

from .config import SimConfig
from .engine import SimulationEngine
from .models import CapacityKnob, SensitivityRun, SimInput

SENSITIVITY_STEPS = ((10, 1.1), (25, 1.25))


def run_sensitivity(sim_input: SimInput, stage_id: str, config: Optional[SimConfig] = None) -> List[SensitivityRun]:
    engine = SimulationEngine(config)
    scenario = sim_input.scenario
    runs: List[SensitivityRun] = []
    for pct, multiplier in SENSITIVITY_STEPS:
        variant = replace(
            scenario,
            id=f"{scenario.id}_sens_{pct}",
            name=f"{scenario.name} +{pct}% {stage_id}",
            knobs=scenario.knobs + (CapacityKnob(stage_id=stage_id, multiplier=multiplier),),
        )
        runs.append(SensitivityRun(
            label=f"{stage_id}+{pct}%",
            result=engine.run(replace(sim_input, scenario=variant)),
        ))
    return runs
