"""Attribute a scenario's outcome to its knob kinds.

Each knob kind is re-run on its own and compared with an empty-knob run of
the same input, so interactions between kinds are not attributed.
"""

from dataclasses import fields, replace
from typing import Callable, Dict, List, Optional

from src.workflow.models import clamp, round_half_up

from .config import (
    ATTRIBUTION_IMPACT_WEIGHTS,
    ATTRIBUTION_NOTES,
    DRIVER_FOR_KIND,
    DRIVER_ORDER,
    MAX_ATTRIBUTIONS,
    AttributionDriver,
)
from .models import Attribution, CapacityKnob, Scenario, SimDelta, SimInput, SimResult

# ETA deltas are not part of attribution
_ATTRIBUTED_METRICS = tuple(
    f.name for f in fields(SimDelta) if not f.name.startswith("eta_")
)


def impact_score(metrics: Dict[str, float]) -> int:
    weighted = sum(abs(metrics.get(name, 0.0)) * weight for name, weight in ATTRIBUTION_IMPACT_WEIGHTS.items())
    return int(clamp(round_half_up(weighted), 0, 100))


def _driver_stage(scenario: Scenario, driver: AttributionDriver) -> Optional[str]:
    for knob in scenario.knobs:
        if DRIVER_FOR_KIND[knob.kind] != driver:
            continue
        if isinstance(knob, CapacityKnob) and not knob.stage_id:
            continue
        return knob.stage_id
    return None


def _variant(sim_input: SimInput, suffix: str, label: str, knobs) -> SimInput:
    scenario = sim_input.scenario
    return replace(
        sim_input,
        scenario=replace(
            scenario,
            id=f"{scenario.id}_{suffix}",
            name=f"{scenario.name} {label}",
            knobs=tuple(knobs),
        ),
    )


def compute_attribution(sim_input: SimInput, run: Callable[[SimInput], SimResult]) -> List[Attribution]:
    """Top drivers by impact score desc, driver name asc."""
    baseline = run(_variant(sim_input, "baseline", "baseline", ()))

    attributions: List[Attribution] = []
    for driver in DRIVER_ORDER:
        knobs = [k for k in sim_input.scenario.knobs if DRIVER_FOR_KIND[k.kind] == driver]
        if not knobs:
            continue
        result = run(_variant(sim_input, driver.value.lower(), driver.value, knobs))
        metrics = {
            name: getattr(result.delta, name) - getattr(baseline.delta, name)
            for name in _ATTRIBUTED_METRICS
        }
        attributions.append(Attribution(
            driver=driver,
            impact_score=impact_score(metrics),
            metrics=metrics,
            note=ATTRIBUTION_NOTES[driver],
            stage_id=_driver_stage(sim_input.scenario, driver),
        ))

    attributions.sort(key=lambda a: (-a.impact_score, a.driver.value))
    return attributions[:MAX_ATTRIBUTIONS]
