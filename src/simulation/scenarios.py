"""Scenario builders and preset scenarios."""

from typing import Iterable, Optional, Tuple

from .models import CapacityKnob, InfluxKnob, OutageKnob, Scenario, ScenarioKnob


def make_scenario(
    scenario_id: str,
    name: str,
    knobs: Iterable[ScenarioKnob] = (),
    horizon_days: Optional[float] = None,
) -> Scenario:
    return Scenario(id=scenario_id, name=name, knobs=tuple(knobs), horizon_days=horizon_days)


def baseline_scenario() -> Scenario:
    return make_scenario("baseline", "Baseline")


def stage_capacity_scenario(stage_id: str, multiplier: float) -> Scenario:
    return make_scenario(
        f"capacity_{stage_id}",
        f"Capacity + {stage_id}",
        [CapacityKnob(stage_id=stage_id, multiplier=multiplier)],
    )


def stage_outage_scenario(stage_id: str, days: float, multiplier: float) -> Scenario:
    return make_scenario(
        f"outage_{stage_id}",
        f"Outage {stage_id}",
        [OutageKnob(stage_id=stage_id, days=days, multiplier=multiplier)],
    )


PRESET_SCENARIOS: Tuple[Scenario, ...] = (
    baseline_scenario(),
    make_scenario(
        "capacity_boost_review",
        "Capacity Boost Review",
        [CapacityKnob(stage_id="review", multiplier=1.2)],
    ),
    make_scenario(
        "influx_shock_review",
        "Influx Shock Review",
        [InfluxKnob(stage_id="review", add_count=4)],
    ),
)


def get_preset(scenario_id: str) -> Scenario:
    for scenario in PRESET_SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    raise KeyError(f"Unknown preset scenario: {scenario_id}")
