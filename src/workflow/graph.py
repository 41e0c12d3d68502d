"""Workflow Policy - Directed Graph View.

The policy is turned into an adjacency structure once and then shared
read-only by every engine that needs predecessor/successor lookups.
"""

from typing import Dict, List, Optional, Tuple

from .models import WorkflowPolicy, WorkflowStage, WorkflowTransition, stage_map


class PolicyGraph:
    """Read-only adjacency view over a workflow policy.

    Stages are ranked by (order, id). Transitions whose endpoints are not
    known stages are left out of the adjacency; :func:`validate_policy`
    reports them.

    Example:
        graph = PolicyGraph.from_policy(policy)
        graph.predecessors("review")   # ("draft", "approved")
    """

    def __init__(self, policy: WorkflowPolicy):
        self.policy = policy
        self._stages = stage_map(policy)
        ordered = sorted(self._stages.values(), key=lambda s: (s.order, s.id))
        self.stages: Tuple[WorkflowStage, ...] = tuple(ordered)
        self.stage_ids: Tuple[str, ...] = tuple(s.id for s in ordered)
        self._rank: Dict[str, int] = {sid: i for i, sid in enumerate(self.stage_ids)}

        self._outgoing: Dict[str, List[WorkflowTransition]] = {sid: [] for sid in self.stage_ids}
        self._incoming: Dict[str, List[WorkflowTransition]] = {sid: [] for sid in self.stage_ids}
        for transition in policy.transitions:
            if transition.from_stage in self._stages and transition.to_stage in self._stages:
                self._outgoing[transition.from_stage].append(transition)
                self._incoming[transition.to_stage].append(transition)

        self._successors = {
            sid: self._ranked({t.to_stage for t in self._outgoing[sid]})
            for sid in self.stage_ids
        }
        self._predecessors = {
            sid: self._ranked({t.from_stage for t in self._incoming[sid]})
            for sid in self.stage_ids
        }

    @classmethod
    def from_policy(cls, policy: WorkflowPolicy) -> "PolicyGraph":
        return cls(policy)

    def _ranked(self, stage_ids) -> Tuple[str, ...]:
        return tuple(sorted(stage_ids, key=lambda sid: self._rank[sid]))

    # ── Lookups ───────────────────────────────────────────────────────

    def stage(self, stage_id: str) -> Optional[WorkflowStage]:
        return self._stages.get(stage_id)

    def has_stage(self, stage_id: str) -> bool:
        return stage_id in self._stages

    def rank(self, stage_id: str) -> int:
        """Position in (order, id) ranking; unknown stages sort last."""
        return self._rank.get(stage_id, len(self.stage_ids))

    def outgoing(self, stage_id: str) -> Tuple[WorkflowTransition, ...]:
        return tuple(self._outgoing.get(stage_id, ()))

    def incoming(self, stage_id: str) -> Tuple[WorkflowTransition, ...]:
        return tuple(self._incoming.get(stage_id, ()))

    def successors(self, stage_id: str) -> Tuple[str, ...]:
        return self._successors.get(stage_id, ())

    def predecessors(self, stage_id: str) -> Tuple[str, ...]:
        return self._predecessors.get(stage_id, ())

    def is_terminal(self, stage_id: str) -> bool:
        stage = self._stages.get(stage_id)
        return bool(stage and stage.terminal)

    @property
    def start_stage_ids(self) -> Tuple[str, ...]:
        """Stages sharing the lowest ``order``."""
        if not self.stages:
            return ()
        first = self.stages[0].order
        return tuple(s.id for s in self.stages if s.order == first)

    @property
    def non_terminal_stage_ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self.stages if not s.terminal)

    def to_adjacency(self) -> Dict[str, List[str]]:
        """Plain adjacency list, e.g. for rendering or logging."""
        return {sid: list(self._successors[sid]) for sid in self.stage_ids}
