"""Tests for what-if scenario simulation."""

from dataclasses import replace

import pytest

from conftest import make_item
from src.flow_metrics.engine import compute_flow_metrics
from src.predictive_risk.engine import items_from_signals, predict_workflow_risk
from src.simulation.attribution import impact_score
from src.simulation.config import FALLBACK_NOTE, INFLUX_NOTE, OUTAGE_NOTE, AttributionDriver, KnobKind
from src.simulation.engine import SimulationEngine, run_simulation, safe_delta
from src.simulation.knobs import compile_knobs, outage_factor, resolve_horizon
from src.simulation.models import (
    CapacityKnob,
    InfluxKnob,
    OutageKnob,
    Scenario,
    SimDelta,
    SimInput,
    WipLimitKnob,
)
from src.simulation.projection import resolve_bottleneck_stage
from src.simulation.resistance import stage_wip_pressure
from src.simulation.scenarios import (
    PRESET_SCENARIOS,
    baseline_scenario,
    get_preset,
    make_scenario,
    stage_capacity_scenario,
    stage_outage_scenario,
)
from src.simulation.sensitivity import run_sensitivity
from src.workflow.graph import PolicyGraph
from src.workflow_signals.engine import compute_workflow_signals


@pytest.fixture
def world(sla_policy, now, history, zones):
    """Review holds twice its WIP limit; everything else is light."""
    items = [make_item(f"d{i}", "draft", 1) for i in range(2)]
    items += [make_item(f"r{i}", "review", 2) for i in range(6)]
    items.append(make_item("a0", "approved", 2))
    signals = compute_workflow_signals(sla_policy, items, now, events_by_item_id=history, include_per_item=True)
    flow = compute_flow_metrics(history, now, zones)
    summary = predict_workflow_risk(items_from_signals(signals), now, flow_metrics=flow)
    return {"policy": sla_policy, "now": now, "signals": signals, "flow": flow, "predict": summary}


@pytest.fixture
def light_world(sla_policy, now, history, zones):
    """Only review is loaded, one item past its WIP limit."""
    items = [make_item(f"r{i}", "review", 2) for i in range(4)]
    signals = compute_workflow_signals(sla_policy, items, now, events_by_item_id=history, include_per_item=True)
    flow = compute_flow_metrics(history, now, zones)
    summary = predict_workflow_risk(items_from_signals(signals), now, flow_metrics=flow)
    return {"policy": sla_policy, "now": now, "signals": signals, "flow": flow, "predict": summary}


def _input(world, scenario, **kwargs):
    return SimInput(
        policy=world["policy"],
        now=world["now"],
        signals=world["signals"],
        scenario=scenario,
        flow_metrics=world["flow"],
        predictive_risk=world["predict"],
        **kwargs,
    )


def _run(world, *knobs, **scenario_kwargs):
    scenario = make_scenario("test", "Test", knobs, **scenario_kwargs)
    return run_simulation(_input(world, scenario))


# ── Knobs ────────────────────────────────────────────────────────────


class TestKnobs:
    @pytest.mark.parametrize("requested,expected", [(None, 14), (3, 7), (10.4, 10), (100, 60)])
    def test_horizon_clamped(self, requested, expected):
        assert resolve_horizon(Scenario("s", "S", horizon_days=requested)) == expected

    def test_outage_factor(self):
        assert outage_factor(5, 0.4, 14) == pytest.approx(11 / 14)
        assert outage_factor(30, 0.4, 14) == pytest.approx(0.4)
        assert outage_factor(0, 0.4, 14) == pytest.approx(1.0)

    def test_compile_compounds_and_clamps(self, sla_policy):
        graph = PolicyGraph.from_policy(sla_policy)
        scenario = make_scenario("s", "S", [
            CapacityKnob(stage_id="review", multiplier=1.5),
            CapacityKnob(stage_id="review", multiplier=1.5),
            CapacityKnob(multiplier=0.5),
            WipLimitKnob(stage_id="review", limit=7.6),
            InfluxKnob(stage_id="draft", add_count=2),
            InfluxKnob(stage_id="draft", add_count=3),
            InfluxKnob(stage_id="ghost", add_count=3),
        ])
        effects = compile_knobs(graph, scenario)
        assert effects.capacity["review"] == pytest.approx(1.0)
        assert effects.capacity["draft"] == pytest.approx(0.5)
        assert effects.wip_limit["review"] == 8
        assert effects.wip_limit["draft"] == 6
        assert effects.influx["draft"] == 5
        assert "ghost" not in effects.influx

    def test_unsupported_knob(self, sla_policy):
        graph = PolicyGraph.from_policy(sla_policy)
        with pytest.raises(TypeError):
            compile_knobs(graph, Scenario("s", "S", knobs=("faster please",)))

    def test_knob_kinds(self):
        scenario = make_scenario("s", "S", [OutageKnob("review", 2, 0.5), InfluxKnob("draft", 1)])
        assert scenario.has_kind(KnobKind.OUTAGE)
        assert not scenario.has_kind(KnobKind.CAPACITY)
        assert len(scenario.knobs_of(KnobKind.INFLUX)) == 1


class TestHelpers:
    def test_stage_wip_pressure(self):
        assert stage_wip_pressure(6, 3) == 1.0
        assert stage_wip_pressure(4, 3) == pytest.approx(1 / 3)
        assert stage_wip_pressure(2, 3) == 0.0
        assert stage_wip_pressure(50, None) == 0.0
        assert stage_wip_pressure(50, 0) == 0.0

    def test_safe_delta(self):
        assert safe_delta(3.0, 1.0) == 2.0
        assert safe_delta(None, 1.0) == 0.0
        assert safe_delta(float("nan"), 1.0) == 0.0

    def test_resolve_bottleneck_stage_ties_in_graph_order(self, sla_policy):
        graph = PolicyGraph.from_policy(sla_policy)
        assert resolve_bottleneck_stage(graph, {}) == "draft"
        assert resolve_bottleneck_stage(graph, {"approved": 0.5, "review": 0.5}) == "review"
        # Terminal stages are never the bottleneck
        assert resolve_bottleneck_stage(graph, {"published": 0.1}) == "draft"

    def test_impact_score(self):
        assert impact_score({}) == 0
        assert impact_score({"throughput_per_week_delta": -10, "lead_avg_hours_delta": 4}) == 14
        assert impact_score({"bottleneck_index_delta": 500}) == 100


# ── Engine ───────────────────────────────────────────────────────────


class TestSimulationEngine:
    def test_baseline_scenario_is_neutral(self, world):
        result = run_simulation(_input(world, baseline_scenario()))
        assert result.delta == SimDelta()
        assert result.attribution == ()
        assert result.notes == ()
        assert result.horizon_days == 14
        assert result.baseline.throughput_per_week == pytest.approx(world["flow"].throughput.per_week * (1 / 1.5875))

    def test_outage_slows_flow(self, world):
        result = _run(world, OutageKnob(stage_id="review", days=5, multiplier=0.4))
        assert result.delta.throughput_per_week_delta < 0
        assert result.delta.eta_p90_days_delta > 0
        assert result.delta.eta_p50_days_delta > 0
        assert OUTAGE_NOTE in result.notes
        assert result.attribution[0].driver == AttributionDriver.OUTAGE
        assert result.attribution[0].stage_id == "review"

    def test_global_capacity_speeds_flow(self, world):
        result = _run(world, CapacityKnob(multiplier=1.5))
        assert result.delta.throughput_per_week_delta > 0
        assert result.delta.lead_avg_hours_delta < 0
        assert result.delta.eta_p90_days_delta < 0
        assert result.attribution[0].stage_id is None

    def test_more_capacity_never_hurts(self, world):
        deltas = [
            _run(world, CapacityKnob(stage_id="review", multiplier=m)).delta.throughput_per_week_delta
            for m in (0.5, 0.8, 1.0, 1.2, 1.5)
        ]
        assert deltas == sorted(deltas)
        assert deltas[2] == 0.0

    def test_influx_adds_load(self, world):
        result = _run(world, InfluxKnob(stage_id="draft", add_count=10))
        draft = result.stage("draft")
        assert draft.delta.count_delta == 10
        assert draft.projected.wip_pressure == 1.0
        assert result.delta.lead_avg_hours_delta > 0
        assert result.delta.throughput_per_week_delta == 0.0
        assert INFLUX_NOTE in result.notes

    def test_raising_wip_limit_relieves_pressure(self, world):
        result = _run(world, WipLimitKnob(stage_id="review", limit=10))
        review = result.stage("review")
        assert review.baseline.wip_pressure == 1.0
        assert review.projected.wip_pressure == 0.0
        assert review.projected.wip_limit == 10
        assert result.delta.throughput_per_week_delta > 0
        assert result.attribution[0].driver == AttributionDriver.WIP

    def test_bottleneck_shift_note(self, world):
        result = _run(world, CapacityKnob(stage_id="review", multiplier=2.0))
        assert result.notes[0] == "Bottleneck shifted from review to draft."

    def test_unknown_stage_knobs_ignored(self, world):
        result = _run(world, OutageKnob(stage_id="ghost", days=5, multiplier=0.1))
        assert result.delta == SimDelta()

    def test_attribution_per_driver(self, world):
        result = _run(
            world,
            CapacityKnob(stage_id="review", multiplier=1.2),
            InfluxKnob(stage_id="draft", add_count=10),
        )
        drivers = {a.driver for a in result.attribution}
        assert drivers == {AttributionDriver.CAPACITY, AttributionDriver.INFLUX}
        scores = [a.impact_score for a in result.attribution]
        assert scores == sorted(scores, reverse=True)
        for attribution in result.attribution:
            assert 0 <= attribution.impact_score <= 100
            assert "eta_p90_days_delta" not in attribution.metrics

    def test_per_stage_detail(self, world):
        result = _run(world, OutageKnob(stage_id="review", days=5, multiplier=0.4))
        assert [s.stage_id for s in result.stages] == ["draft", "review", "approved", "scheduled", "published"]
        review = result.stage("review")
        assert review.projected.capacity == pytest.approx(11 / 14)
        assert review.delta.effective_capacity_delta < 0
        assert result.stage("draft").delta.effective_capacity_delta == 0.0
        assert result.stage("ghost") is None

    def test_signals_only_input(self, world):
        sim_input = SimInput(
            policy=world["policy"],
            now=world["now"],
            signals=world["signals"],
            scenario=stage_outage_scenario("review", 5, 0.4),
        )
        result = run_simulation(sim_input)
        assert result.baseline.throughput_per_week is None
        assert result.delta.throughput_per_week_delta == 0.0
        assert result.baseline.bottleneck_index is not None
        assert result.delta.bottleneck_index_delta > 0

    def test_stage_count_override(self, world):
        scenario = stage_capacity_scenario("review", 1.2)
        result = run_simulation(_input(world, scenario, by_stage_count={"review": 1}))
        assert result.stage("review").baseline.count == 1
        assert result.stage("draft").baseline.count == 0

    def test_invalid_state_falls_back(self, world):
        scenario = stage_outage_scenario("review", 5, 0.4)
        result = SimulationEngine().run(_input(world, scenario, by_stage_count={"review": "lots"}))
        assert result.notes == (FALLBACK_NOTE,)
        assert result.delta == SimDelta()
        assert result.stages == ()
        assert result.scenario_id == "outage_review"

    def test_invalid_now_falls_back(self, world):
        sim_input = _input(world, baseline_scenario())
        result = run_simulation(replace(sim_input, now="not a time"))
        assert result.notes == (FALLBACK_NOTE,)

    def test_to_dict(self, world):
        result = _run(world, OutageKnob(stage_id="review", days=5, multiplier=0.4))
        plain = result.to_dict()
        assert plain["scenario_id"] == "test"
        assert plain["attribution"][0]["driver"] == "OUTAGE"


class TestSimulationMonotonicity:
    def test_longer_outage_never_shortens_lead_time(self, world):
        leads = [
            _run(world, OutageKnob(stage_id="review", days=days, multiplier=0.4)).projected.lead_avg_hours
            for days in (0, 2, 5, 10, 14)
        ]
        assert leads == sorted(leads)
        assert leads[-1] > leads[0]

    @pytest.mark.parametrize("stage_id", ["draft", "review"])
    def test_influx_into_loaded_stage_never_lowers_bottleneck_index(self, world, stage_id):
        indexes = [
            _run(world, InfluxKnob(stage_id=stage_id, add_count=n)).projected.bottleneck_index
            for n in (0, 1, 2, 5, 20)
        ]
        assert indexes == sorted(indexes)

    def test_influx_grows_bottleneck_index_on_busy_stage(self, light_world):
        indexes = [
            _run(light_world, InfluxKnob(stage_id="review", add_count=n)).projected.bottleneck_index
            for n in (0, 1, 2, 5, 20)
        ]
        assert indexes == sorted(indexes)
        assert indexes[-1] > indexes[0]

    def test_first_item_in_empty_stage_dilutes_average_resistance(self, light_world):
        # Averages only cover loaded stages, so a calm stage joining the set
        # lowers the mean resistance before its own load counts.
        indexes = [
            _run(light_world, InfluxKnob(stage_id="scheduled", add_count=n)).projected.bottleneck_index
            for n in (0, 1, 20)
        ]
        assert indexes[1] < indexes[0]
        assert indexes[2] > indexes[0]

    def test_tighter_wip_limit_never_lowers_pressure(self, world):
        pressures = [
            _run(world, WipLimitKnob(stage_id="review", limit=limit)).stage("review").projected.wip_pressure
            for limit in (12, 8, 6, 4, 2)
        ]
        assert pressures == sorted(pressures)


# ── Presets & sensitivity ────────────────────────────────────────────


class TestScenarios:
    def test_presets(self):
        assert [s.id for s in PRESET_SCENARIOS] == ["baseline", "capacity_boost_review", "influx_shock_review"]
        influx = get_preset("influx_shock_review")
        assert influx.knobs == (InfluxKnob(stage_id="review", add_count=4),)

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("nope")

    def test_capacity_preset_improves_throughput(self, world):
        result = run_simulation(_input(world, get_preset("capacity_boost_review")))
        assert result.delta.throughput_per_week_delta > 0


class TestSensitivity:
    def test_two_boosts(self, world):
        runs = run_sensitivity(_input(world, baseline_scenario()), "review")
        assert [r.label for r in runs] == ["review+10%", "review+25%"]
        small, large = (r.result.delta.throughput_per_week_delta for r in runs)
        assert 0 < small < large
        assert runs[1].result.scenario_id == "baseline_sens_25"
