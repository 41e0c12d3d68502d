"""Workflow Signals engine.

Composes time-in-stage, SLA, stuck, stage health, WIP, throughput and
bottleneck scoring into one :class:`WorkflowSignals` snapshot.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from src.logging_config import log_performance
from src.workflow.graph import PolicyGraph
from src.workflow.models import (
    EventsByItem,
    WorkflowItem,
    WorkflowPolicy,
    require_timestamp,
)

from .bottleneck import compute_bottleneck_index, compute_bottleneck_likelihood
from .config import DEFAULT_SIGNALS_CONFIG, SignalsConfig
from .health import compute_stage_health, worst_stages
from .models import BottleneckLikelihood, StageSummary, StuckStatus, WorkflowSignals
from .sla import evaluate_sla, rollup_sla
from .stuck import detect_stuck, rollup_stuck
from .throughput import estimate_stage_throughput
from .time_in_stage import resolve_time_in_stage
from .wip import compute_stage_wip, propagate_overload, rollup_wip

logger = logging.getLogger(__name__)


def count_by_stage(graph: PolicyGraph, items: Sequence[WorkflowItem]) -> Dict[str, int]:
    """Zero-filled counts per policy stage, then any unknown stages by id."""
    counts = Counter(item.stage_id for item in items)
    by_stage = {stage_id: counts.get(stage_id, 0) for stage_id in graph.stage_ids}
    for stage_id in sorted(set(counts) - set(by_stage)):
        by_stage[stage_id] = counts[stage_id]
    return by_stage


class SignalsEngine:
    """Live workflow diagnostics for one policy and item snapshot.

    Example:
        engine = SignalsEngine()
        signals = engine.compute(policy, items, now, events_by_item_id=events)
        signals.bottleneck.top_stage
    """

    def __init__(self, config: Optional[SignalsConfig] = None):
        self.config = config or DEFAULT_SIGNALS_CONFIG

    @log_performance()
    def compute(
        self,
        policy: WorkflowPolicy,
        items: Sequence[WorkflowItem],
        now,
        events_by_item_id: Optional[EventsByItem] = None,
        include_per_item: bool = False,
    ) -> WorkflowSignals:
        """Compute the signals snapshot.

        Args:
            policy: Workflow policy the items move through.
            items: Current item snapshot; order does not matter.
            now: Evaluation instant (datetime or ISO string).
            events_by_item_id: Transition history keyed by item id.
            include_per_item: Attach per-item time/SLA/stuck detail.

        Returns:
            WorkflowSignals with every score clamped to its range.
        """
        cfg = self.config
        now_dt: datetime = require_timestamp(now)
        graph = PolicyGraph.from_policy(policy)
        events = events_by_item_id or {}

        ordered = sorted(items, key=lambda i: (i.id, i.stage_id))
        by_stage_count = count_by_stage(graph, ordered)

        item_time = [resolve_time_in_stage(item, now_dt, events.get(item.id)) for item in ordered]
        item_sla = [
            evaluate_sla(item.id, item.stage_id, graph.stage(item.stage_id), t.age_hours, cfg)
            for item, t in zip(ordered, item_time)
        ]

        item_stuck: List[StuckStatus] = []
        for item, t, sla in zip(ordered, item_time, item_sla):
            stuck = detect_stuck(
                item=item,
                stage=graph.stage(item.stage_id),
                age_hours=t.age_hours,
                sla=sla,
                stage_count=by_stage_count.get(item.stage_id, 0),
                has_outgoing=bool(graph.successors(item.stage_id)),
                is_terminal=graph.is_terminal(item.stage_id),
                config=cfg,
            )
            if stuck is not None:
                item_stuck.append(stuck)

        stage_health = compute_stage_health(graph, by_stage_count, item_sla, item_stuck)
        sla_rollup = rollup_sla(item_sla)
        stuck_rollup = rollup_stuck(item_stuck)
        stage_wip = compute_stage_wip(graph, by_stage_count, cfg)
        propagated = propagate_overload(graph, stage_wip, cfg)
        throughput = estimate_stage_throughput(events, now_dt, cfg.throughput_lookback_hours)

        index = compute_bottleneck_index(
            graph,
            stage_health,
            stage_wip,
            sla_pressure=sla_rollup.pressure_score,
            stuck_pressure=stuck_rollup.pressure_score,
            propagated_pressure=propagated,
            throughput=throughput,
            config=cfg,
        )
        likelihood = compute_bottleneck_likelihood(stage_health, cfg)

        signals = WorkflowSignals(
            total_items=len(ordered),
            by_stage_count=by_stage_count,
            stage_wip=stage_wip,
            wip=rollup_wip(stage_wip),
            propagated_pressure=propagated,
            throughput=throughput,
            sla=sla_rollup,
            stuck=stuck_rollup,
            stages=StageSummary(
                worst_stages=tuple(worst_stages(stage_health, cfg.worst_stages_top_n)),
                stage_health=stage_health,
            ),
            bottleneck=BottleneckLikelihood(
                likelihood_score=max(likelihood.likelihood_score, index.score),
                top_stage=index.top_stage or likelihood.top_stage,
            ),
            bottleneck_index=index,
            item_time=tuple(item_time) if include_per_item else None,
            item_sla=tuple(item_sla) if include_per_item else None,
            item_stuck=tuple(item_stuck) if include_per_item else None,
        )

        logger.debug(
            "Signals computed: %d items, %d stuck, bottleneck=%s (%d)",
            signals.total_items,
            stuck_rollup.stuck_count,
            signals.bottleneck.top_stage,
            signals.bottleneck.likelihood_score,
        )
        return signals


def compute_workflow_signals(
    policy: WorkflowPolicy,
    items: Sequence[WorkflowItem],
    now,
    events_by_item_id: Optional[EventsByItem] = None,
    include_per_item: bool = False,
    config: Optional[SignalsConfig] = None,
) -> WorkflowSignals:
    """Functional shortcut for :meth:`SignalsEngine.compute`."""
    return SignalsEngine(config).compute(
        policy, items, now, events_by_item_id=events_by_item_id, include_per_item=include_per_item,
    )
