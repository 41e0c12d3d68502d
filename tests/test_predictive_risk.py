"""Tests for per-item delay risk prediction and portfolio rollup."""

from datetime import timedelta

import pytest

from conftest import make_item
from src.flow_metrics.engine import compute_flow_metrics
from src.predictive_risk.baselines import baseline_p50, baseline_p90, build_baselines
from src.predictive_risk.config import PredictConfig, RiskFactorCode, RiskLevel
from src.predictive_risk.coverage import compute_data_quality, signal_completeness
from src.predictive_risk.engine import PredictiveRiskEngine, items_from_signals, predict_workflow_risk
from src.predictive_risk.explain import build_rationale
from src.predictive_risk.features import due_soon_factor, flow_slowdown_factor, normalize_score
from src.predictive_risk.model import delay_probability, risk_level_from_score
from src.predictive_risk.models import (
    EtaEstimate,
    FlowBaselines,
    ItemPrediction,
    PredictItemInput,
    RiskContribution,
)
from src.predictive_risk.portfolio import compute_portfolio
from src.workflow_signals.engine import compute_workflow_signals


@pytest.fixture
def flow_snapshot(history, now, zones):
    return compute_flow_metrics(history, now, zones)


def _full_items():
    return [
        PredictItemInput("hot", "review", 40, sla_severity_score=100, stuck_severity_score=100,
                         stage_wip_severity_score=70, is_bottleneck_stage=True),
        PredictItemInput("warm", "review", 20, sla_severity_score=33, stuck_severity_score=0,
                         stage_wip_severity_score=70, is_bottleneck_stage=True),
        PredictItemInput("cold", "draft", 1, sla_severity_score=0, stuck_severity_score=0,
                         stage_wip_severity_score=0),
    ]


def _stripped(items):
    return [PredictItemInput(i.item_id, i.stage_id, i.age_hours) for i in items]


def _prediction(item_id, stage_id, score, contributions):
    return ItemPrediction(
        item_id=item_id,
        stage_id=stage_id,
        risk_score=score,
        risk_level=risk_level_from_score(score),
        delay_probability=delay_probability(score),
        eta=EtaEstimate(),
        confidence=0.5,
        contributions=tuple(RiskContribution(code, pts, "") for code, pts in contributions),
    )


# ── Features ─────────────────────────────────────────────────────────


class TestFeatures:
    def test_normalize_score(self):
        assert normalize_score(None) == 0.0
        assert normalize_score(float("nan")) == 0.0
        assert normalize_score(50) == 0.5
        assert normalize_score(250) == 1.0

    @pytest.mark.parametrize("hours,expected", [(-5, 1.0), (12, 1.0), (48, 0.5), (100, 0.0)])
    def test_due_soon(self, now, hours, expected):
        assert due_soon_factor(now + timedelta(hours=hours), now) == expected

    def test_due_soon_missing(self, now):
        assert due_soon_factor(None, now) == 0.0
        assert due_soon_factor("not a date", now) == 0.0

    def test_flow_slowdown(self):
        assert flow_slowdown_factor(None) == 0.0
        assert flow_slowdown_factor(0.4) == 1.0
        assert flow_slowdown_factor(0.9) == 0.6
        assert flow_slowdown_factor(3.0) == 0.0


class TestBaselines:
    def test_no_snapshot(self):
        baselines = build_baselines(None)
        assert baselines == FlowBaselines()
        assert baseline_p50(baselines, "review") is None

    def test_stage_then_global(self, flow_snapshot):
        baselines = build_baselines(flow_snapshot)
        assert baselines.has_baselines
        assert baseline_p50(baselines, "review") == pytest.approx(9)
        assert baseline_p90(baselines, "review") == pytest.approx(9.8)
        # No dwell history for this stage: falls back to global cycle time
        assert baseline_p50(baselines, "limbo") == pytest.approx(15.5)

    def test_data_quality(self, flow_snapshot):
        baselines = build_baselines(flow_snapshot)
        items = _full_items() + [PredictItemInput("bare", "review", 2)]
        quality = compute_data_quality(items, baselines)
        assert quality.baseline_coverage == 1.0
        assert quality.avg_signal_completeness == pytest.approx(0.75)
        assert quality.has_due_dates is False
        assert signal_completeness(PredictItemInput("x", "a", 1, sla_severity_score=10)) == pytest.approx(1 / 3)


# ── Scoring model ────────────────────────────────────────────────────


class TestScoring:
    @pytest.mark.parametrize("score,level", [
        (100, RiskLevel.CRITICAL),
        (80, RiskLevel.CRITICAL),
        (60, RiskLevel.HIGH),
        (35, RiskLevel.MEDIUM),
        (34, RiskLevel.LOW),
        (0, RiskLevel.LOW),
    ])
    def test_risk_level(self, score, level):
        assert risk_level_from_score(score) == level

    def test_delay_probability_curve(self):
        assert delay_probability(0) == 0.0
        assert delay_probability(15) == 0.0
        assert delay_probability(100) == 1.0
        values = [delay_probability(score) for score in range(0, 101)]
        assert values == sorted(values)
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_rationale(self):
        contributions = [
            RiskContribution(RiskFactorCode.STUCK, 28, ""),
            RiskContribution(RiskFactorCode.SLA_PRESSURE, 20, ""),
            RiskContribution(RiskFactorCode.BOTTLENECK, 10, ""),
        ]
        assert build_rationale(RiskLevel.HIGH, contributions) == "High risk: stuck + sla pressure."
        assert build_rationale(RiskLevel.LOW, []) == "Low risk."


# ── Engine ───────────────────────────────────────────────────────────


class TestPredictiveRiskEngine:
    def test_ranking(self, now, flow_snapshot):
        summary = predict_workflow_risk(_full_items(), now, flow_metrics=flow_snapshot, include_per_item=True)
        ids = [p.item_id for p in summary.predictions]
        assert ids == ["hot", "warm", "cold"]
        hot = summary.predictions[0]
        assert hot.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL)
        assert hot.top_driver == RiskFactorCode.STUCK
        assert hot.rationale.startswith(hot.risk_level.value.capitalize() + " risk: stuck")

    def test_contributions_capped_and_sorted(self, now, flow_snapshot):
        summary = predict_workflow_risk(_full_items(), now, flow_metrics=flow_snapshot, include_per_item=True)
        for prediction in summary.predictions:
            assert len(prediction.contributions) <= 6
            keys = [(-c.points, c.code.value) for c in prediction.contributions]
            assert keys == sorted(keys)
            assert prediction.risk_score == sum(c.points for c in prediction.contributions)
            assert 0.2 <= prediction.confidence <= 0.95

    def test_missing_signals_lower_confidence(self, now, flow_snapshot):
        full = predict_workflow_risk(_full_items(), now, flow_metrics=flow_snapshot, include_per_item=True)
        bare = predict_workflow_risk(_stripped(_full_items()), now, include_per_item=True)

        def avg_confidence(summary):
            return sum(p.confidence for p in summary.predictions) / len(summary.predictions)

        assert avg_confidence(bare) < avg_confidence(full)
        for prediction in bare.predictions:
            assert RiskFactorCode.NO_BASELINE in {c.code for c in prediction.contributions}
        for prediction in full.predictions:
            assert RiskFactorCode.NO_BASELINE not in {c.code for c in prediction.contributions}

    def test_eta_from_baselines(self, now, flow_snapshot):
        items = [PredictItemInput("early", "review", 4), PredictItemInput("late", "review", 20)]
        summary = predict_workflow_risk(items, now, flow_metrics=flow_snapshot, include_per_item=True)
        by_id = {p.item_id: p for p in summary.predictions}
        assert by_id["early"].eta.remaining_p50_hours == pytest.approx(5)
        assert by_id["early"].eta.p50_at == now + timedelta(hours=5)
        assert by_id["late"].eta.remaining_p90_hours == 0.0

    def test_no_baseline_no_eta(self, now):
        summary = predict_workflow_risk([PredictItemInput("x", "review", 4)], now, include_per_item=True)
        assert summary.predictions[0].eta == EtaEstimate()

    def test_due_date_raises_risk(self, now, flow_snapshot):
        base = PredictItemInput("x", "review", 4, sla_severity_score=0, stuck_severity_score=0,
                                stage_wip_severity_score=0)
        due = PredictItemInput("x", "review", 4, sla_severity_score=0, stuck_severity_score=0,
                               stage_wip_severity_score=0, due_at=now + timedelta(hours=6))
        engine = PredictiveRiskEngine()
        plain = engine.predict([base], now, flow_metrics=flow_snapshot, include_per_item=True)
        urgent = engine.predict([due], now, flow_metrics=flow_snapshot, include_per_item=True)
        assert urgent.predictions[0].risk_score > plain.predictions[0].risk_score
        assert urgent.data_quality.has_due_dates

    @pytest.mark.parametrize("requested,expected", [
        (None, 7), (0, 7), (2.6, 3), (0.2, 1), (30, 30), (2.5, 3), (3.5, 4), (0.5, 1),
    ])
    def test_horizon(self, now, requested, expected):
        summary = PredictiveRiskEngine().predict([], now, horizon_days=requested)
        assert summary.horizon_days == expected

    def test_config_horizon(self, now):
        summary = PredictiveRiskEngine(PredictConfig(horizon_days=14)).predict([], now)
        assert summary.horizon_days == 14

    @pytest.mark.parametrize("configured,expected", [(2.5, 3), (6.5, 7), (10.4, 10)])
    def test_config_horizon_rounds_half_up(self, configured, expected):
        assert PredictConfig(horizon_days=configured).normalized_horizon() == expected

    def test_empty_population(self, now):
        summary = predict_workflow_risk([], now)
        assert summary.pressure_score == 0.0
        assert summary.top_risks == ()
        assert summary.top_stage is None
        assert summary.predictions is None

    def test_top_risks_limited(self, now):
        items = [PredictItemInput(f"i{n}", "review", n, sla_severity_score=n * 10) for n in range(8)]
        summary = predict_workflow_risk(items, now)
        assert len(summary.top_risks) == 5
        assert summary.top_risks[0].item_id == "i7"
        assert summary.to_dict()["top_risks"][0]["risk_level"] in {level.value for level in RiskLevel}


class TestPortfolio:
    def test_rollup(self):
        predictions = [
            _prediction("a", "review", 80, [(RiskFactorCode.STUCK, 50), (RiskFactorCode.SLA_PRESSURE, 30)]),
            _prediction("b", "review", 60, [(RiskFactorCode.STUCK, 30), (RiskFactorCode.WIP_OVERLOAD, 30)]),
            _prediction("c", "draft", 20, [(RiskFactorCode.DATA_QUALITY, 20)]),
        ]
        rollup = compute_portfolio(predictions)
        assert rollup.pressure_score == pytest.approx(160 / 3)
        assert rollup.tail_risk_score == pytest.approx(160 / 3)
        assert rollup.critical_count == 1
        assert rollup.high_count == 1
        assert rollup.top_stage == "review"
        assert rollup.stage_concentration_pct == 88
        assert [(d.code, d.share_pct) for d in rollup.top_drivers] == [
            (RiskFactorCode.STUCK, 50),
            (RiskFactorCode.SLA_PRESSURE, 19),
            (RiskFactorCode.WIP_OVERLOAD, 19),
        ]

    def test_empty(self):
        rollup = compute_portfolio([])
        assert rollup.pressure_score == 0.0
        assert rollup.top_drivers == ()


# ── Signals adapter ──────────────────────────────────────────────────


class TestItemsFromSignals:
    def test_requires_per_item_detail(self, sla_policy, now):
        signals = compute_workflow_signals(sla_policy, [make_item("x", "review", 2)], now)
        with pytest.raises(ValueError):
            items_from_signals(signals)

    def test_maps_scores(self, sla_policy, now):
        items = [make_item(f"r{i}", "review", 30 + i) for i in range(4)]
        items.append(make_item("d", "draft", 1))
        signals = compute_workflow_signals(sla_policy, items, now, include_per_item=True)
        due = {"d": now + timedelta(hours=2)}
        inputs = {i.item_id: i for i in items_from_signals(signals, due)}

        assert inputs["d"].stuck_severity_score == 0
        assert inputs["d"].is_bottleneck_stage is False
        assert inputs["d"].due_at == due["d"]
        assert inputs["r0"].is_bottleneck_stage is True
        assert inputs["r0"].stuck_severity_score > 0
        assert inputs["r0"].stage_wip_severity_score == signals.stage_wip["review"].severity_score
        assert inputs["r0"].age_hours == pytest.approx(30)


class TestPredictMonotonicity:
    def _score(self, now, flow_snapshot, item):
        summary = predict_workflow_risk([item], now, flow_metrics=flow_snapshot, include_per_item=True)
        return summary.predictions[0]

    def test_older_items_never_score_lower(self, now, flow_snapshot):
        scores = [
            self._score(now, flow_snapshot, PredictItemInput("x", "review", age, sla_severity_score=20,
                                                             stuck_severity_score=0,
                                                             stage_wip_severity_score=30)).risk_score
            for age in (1, 5, 10, 12, 15, 20, 40)
        ]
        assert scores == sorted(scores)
        assert scores[-1] > scores[0]

    def test_stuck_severity_never_lowers_delay_probability(self, now, flow_snapshot):
        probabilities = [
            self._score(now, flow_snapshot, PredictItemInput("x", "review", 12, sla_severity_score=60,
                                                             stuck_severity_score=stuck,
                                                             stage_wip_severity_score=70,
                                                             is_bottleneck_stage=True)).delay_probability
            for stuck in (0, 25, 50, 75, 100)
        ]
        assert probabilities == sorted(probabilities)
        assert probabilities[-1] > probabilities[0]
