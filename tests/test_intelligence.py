"""Tests for the end-to-end intelligence pipeline."""

from datetime import timedelta

import pytest

from conftest import make_item
from src.flow_metrics.config import InsightTone
from src.intelligence.config import PipelineConfig, PipelineStepName, StepStatus
from src.intelligence.pipeline import IntelligencePipeline, IntelligenceReport, run_intelligence
from src.simulation.scenarios import PRESET_SCENARIOS
from src.workflow.models import WorkflowPolicy, WorkflowStage


@pytest.fixture
def items():
    items = [make_item(f"d{i}", "draft", 1) for i in range(2)]
    items += [make_item(f"r{i}", "review", 2 + i * 10) for i in range(5)]
    items.append(make_item("a0", "approved", 3))
    return items


class TestIntelligencePipeline:
    def test_full_run(self, sla_policy, items, now, history):
        report = IntelligencePipeline().run(
            sla_policy, items, now, events_by_item_id=history, scenarios=PRESET_SCENARIOS,
        )
        assert isinstance(report, IntelligenceReport)
        assert report.validation.valid
        assert report.signals.total_items == len(items)
        assert report.signals.item_stuck is not None
        assert report.flow_metrics.lead_time.count == 2
        assert {p.item_id for p in report.predict.predictions} == {i.id for i in items}
        assert [r.scenario_id for r in report.simulations] == [s.id for s in PRESET_SCENARIOS]
        assert all(status == StepStatus.COMPLETED.value for _, status in report.steps)

    def test_steps_run_in_dependency_order(self, sla_policy, items, now):
        report = IntelligencePipeline().run(sla_policy, items, now)
        assert [name for name, _ in report.steps] == [s.value for s in PipelineStepName]

    def test_simulate_skipped_without_scenarios(self, sla_policy, items, now, history):
        report = run_intelligence(sla_policy, items, now, events_by_item_id=history)
        assert report.simulations == ()
        assert dict(report.steps)["simulate"] == StepStatus.SKIPPED.value

    def test_simulation_lookup(self, sla_policy, items, now, history):
        report = run_intelligence(sla_policy, items, now, events_by_item_id=history, scenarios=PRESET_SCENARIOS)
        boost = report.simulation("capacity_boost_review")
        assert boost is not None
        assert boost.delta.throughput_per_week_delta >= 0
        assert report.simulation("nope") is None

    def test_zones_default_from_policy(self, sla_policy, items, now, history, zones):
        derived = run_intelligence(sla_policy, items, now, events_by_item_id=history)
        explicit = run_intelligence(sla_policy, items, now, events_by_item_id=history, zones=zones)
        assert derived.flow_metrics == explicit.flow_metrics

    def test_invalid_policy_still_evaluated(self, now):
        policy = WorkflowPolicy(stages=(WorkflowStage(id="a", order=1), WorkflowStage(id="b", order=2)))
        report = run_intelligence(policy, [make_item("x", "a", 5)], now)
        assert report.validation.valid is False
        assert report.signals.total_items == 1
        assert report.predict.predictions[0].item_id == "x"

    def test_due_dates_reach_predictions(self, sla_policy, items, now):
        due = {"d0": now + timedelta(hours=2)}
        report = run_intelligence(sla_policy, items, now, due_at_by_item_id=due)
        assert report.predict.data_quality.has_due_dates

    def test_config_horizon(self, sla_policy, items, now):
        pipeline = IntelligencePipeline(PipelineConfig(horizon_days=21, workspace_id="ws_1"))
        report = pipeline.run(sla_policy, items, now)
        assert report.predict.horizon_days == 21

    def test_insights_match_flow_snapshot(self, sla_policy, items, now, history):
        report = run_intelligence(sla_policy, items, now, events_by_item_id=history)
        assert report.insights[0].tone == InsightTone.DANGER
        assert len(report.insights) <= 2

    def test_string_now_accepted(self, sla_policy, items, history):
        report = run_intelligence(sla_policy, items, "2026-02-15T12:00:00Z", events_by_item_id=history)
        assert report.flow_metrics.lead_time.count == 2

    def test_invalid_now_raises(self, sla_policy, items):
        with pytest.raises(ValueError):
            run_intelligence(sla_policy, items, "not a time")

    def test_to_dict(self, sla_policy, items, now, history):
        plain = run_intelligence(sla_policy, items, now, events_by_item_id=history,
                                 scenarios=PRESET_SCENARIOS).to_dict()
        assert plain["validation"]["valid"] is True
        assert plain["simulations"][0]["scenario_id"] == "baseline"
        assert plain["steps"][0] == ["validate", "completed"]
