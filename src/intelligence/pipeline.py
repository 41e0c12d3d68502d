"""Intelligence Pipeline Runner.

Runs the engines in dependency order over one policy and item snapshot:
validation, live signals, flow metrics, risk prediction, then each
requested scenario. Every step receives the shared run context and
stores its output under its own name.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from src.flow_metrics import FlowInsight, FlowMetricsEngine, FlowMetricsSnapshot, ZonePolicy, build_insights
from src.logging_config import EvaluationContext, log_performance
from src.predictive_risk import PredictiveRiskEngine, PredictSummary, items_from_signals
from src.simulation import Scenario, SimInput, SimResult, SimulationEngine
from src.workflow import PolicyValidation, validate_policy
from src.workflow.models import EventsByItem, Timestamp, WorkflowItem, WorkflowPolicy, require_timestamp, to_plain
from src.workflow_signals import SignalsEngine, WorkflowSignals

from .config import DEFAULT_PIPELINE_CONFIG, PipelineConfig, PipelineStepName, StepStatus

logger = logging.getLogger(__name__)


@dataclass
class PipelineStep:
    """A single step in the intelligence run."""

    name: PipelineStepName
    action: Callable[[Dict[str, Any]], Any]
    condition: Optional[Callable[[Dict[str, Any]], bool]] = None
    status: StepStatus = StepStatus.PENDING
    error: Optional[str] = None


@dataclass(frozen=True)
class IntelligenceReport:
    """Combined engine outputs for one evaluation instant.

    Invalid policies are still evaluated; ``validation`` tells the caller
    whether to trust the stage graph behind the figures.
    """

    validation: PolicyValidation
    signals: WorkflowSignals
    flow_metrics: FlowMetricsSnapshot
    predict: PredictSummary
    simulations: Tuple[SimResult, ...] = ()
    insights: Tuple[FlowInsight, ...] = ()
    steps: Tuple[Tuple[str, str], ...] = field(default=())

    def simulation(self, scenario_id: str) -> Optional[SimResult]:
        for result in self.simulations:
            if result.scenario_id == scenario_id:
                return result
        return None

    def to_dict(self) -> dict:
        return to_plain(self)


class IntelligencePipeline:
    """Runs every engine over one snapshot and collects the outputs.

    Example:
        pipeline = IntelligencePipeline()
        report = pipeline.run(policy, items, now, events_by_item_id=events,
                              scenarios=PRESET_SCENARIOS)
        report.predict.top_risks
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or DEFAULT_PIPELINE_CONFIG
        self.signals_engine = SignalsEngine(self.config.signals)
        self.flow_engine = FlowMetricsEngine(self.config.flow_window)
        self.risk_engine = PredictiveRiskEngine(self.config.predict)
        self.sim_engine = SimulationEngine(self.config.simulation)

    # ── Steps ─────────────────────────────────────────────────────────

    def _validate(self, ctx: Dict[str, Any]) -> PolicyValidation:
        validation = validate_policy(ctx["policy"])
        if not validation.valid:
            logger.warning(
                "Policy %s is invalid (%d errors); evaluating anyway",
                ctx["policy"].version,
                len(validation.errors),
            )
        return validation

    def _signals(self, ctx: Dict[str, Any]) -> WorkflowSignals:
        return self.signals_engine.compute(
            ctx["policy"],
            ctx["items"],
            ctx["now"],
            events_by_item_id=ctx["events"],
            include_per_item=True,
        )

    def _flow_metrics(self, ctx: Dict[str, Any]) -> FlowMetricsSnapshot:
        zones = ctx["zones"] or ZonePolicy.from_policy(ctx["policy"])
        return self.flow_engine.compute(ctx["events"], ctx["now"], zones)

    def _predict(self, ctx: Dict[str, Any]) -> PredictSummary:
        inputs = items_from_signals(ctx[PipelineStepName.SIGNALS], ctx["due_at"])
        return self.risk_engine.predict(
            inputs,
            ctx["now"],
            flow_metrics=ctx[PipelineStepName.FLOW_METRICS],
            horizon_days=self.config.horizon_days,
            include_per_item=True,
        )

    def _simulate(self, ctx: Dict[str, Any]) -> Tuple[SimResult, ...]:
        results: List[SimResult] = []
        for scenario in ctx["scenarios"]:
            with EvaluationContext(extra={"scenario_id": scenario.id}):
                results.append(self.sim_engine.run(SimInput(
                    policy=ctx["policy"],
                    now=ctx["now"],
                    signals=ctx[PipelineStepName.SIGNALS],
                    scenario=scenario,
                    flow_metrics=ctx[PipelineStepName.FLOW_METRICS],
                    predictive_risk=ctx[PipelineStepName.PREDICT],
                )))
        return tuple(results)

    def build_steps(self) -> List[PipelineStep]:
        return [
            PipelineStep(PipelineStepName.VALIDATE, self._validate),
            PipelineStep(PipelineStepName.SIGNALS, self._signals),
            PipelineStep(PipelineStepName.FLOW_METRICS, self._flow_metrics),
            PipelineStep(PipelineStepName.PREDICT, self._predict),
            PipelineStep(
                PipelineStepName.SIMULATE,
                self._simulate,
                condition=lambda ctx: bool(ctx["scenarios"]),
            ),
        ]

    # ── Run ───────────────────────────────────────────────────────────

    @log_performance()
    def run(
        self,
        policy: WorkflowPolicy,
        items: Sequence[WorkflowItem],
        now,
        events_by_item_id: Optional[EventsByItem] = None,
        zones: Optional[ZonePolicy] = None,
        scenarios: Sequence[Scenario] = (),
        due_at_by_item_id: Optional[Mapping[str, Timestamp]] = None,
    ) -> IntelligenceReport:
        """Execute all steps sequentially.

        Step failures are logged with the step name and re-raised; only the
        simulation engine absorbs its own failures into a fallback result.

        Zones default to :meth:`ZonePolicy.from_policy`.
        """
        context: Dict[str, Any] = {
            "policy": policy,
            "items": list(items),
            "now": require_timestamp(now),
            "events": events_by_item_id or {},
            "zones": zones,
            "scenarios": tuple(scenarios),
            "due_at": due_at_by_item_id or {},
        }
        steps = self.build_steps()

        with EvaluationContext(workspace_id=self.config.workspace_id) as evaluation:
            for step in steps:
                if step.condition is not None and not step.condition(context):
                    step.status = StepStatus.SKIPPED
                    context[step.name] = ()
                    continue
                try:
                    context[step.name] = step.action(context)
                except Exception as exc:
                    step.status = StepStatus.FAILED
                    step.error = str(exc)
                    logger.error("Pipeline step %s failed: %s", step.name.value, exc)
                    raise
                step.status = StepStatus.COMPLETED

            logger.info(
                "Intelligence run %s completed: %d items, %d scenarios",
                evaluation.evaluation_id,
                len(context["items"]),
                len(context["scenarios"]),
            )

        return IntelligenceReport(
            validation=context[PipelineStepName.VALIDATE],
            signals=context[PipelineStepName.SIGNALS],
            flow_metrics=context[PipelineStepName.FLOW_METRICS],
            predict=context[PipelineStepName.PREDICT],
            simulations=context[PipelineStepName.SIMULATE],
            insights=tuple(build_insights(context[PipelineStepName.FLOW_METRICS])),
            steps=tuple((s.name.value, s.status.value) for s in steps),
        )


def run_intelligence(
    policy: WorkflowPolicy,
    items: Sequence[WorkflowItem],
    now,
    events_by_item_id: Optional[EventsByItem] = None,
    zones: Optional[ZonePolicy] = None,
    scenarios: Sequence[Scenario] = (),
    due_at_by_item_id: Optional[Mapping[str, Timestamp]] = None,
    config: Optional[PipelineConfig] = None,
) -> IntelligenceReport:
    """Functional shortcut for :meth:`IntelligencePipeline.run`."""
    return IntelligencePipeline(config).run(
        policy,
        items,
        now,
        events_by_item_id=events_by_item_id,
        zones=zones,
        scenarios=scenarios,
        due_at_by_item_id=due_at_by_item_id,
    )
