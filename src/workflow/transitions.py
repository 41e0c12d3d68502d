"""Workflow Policy - Transition Checks & WIP Counting.

Read-only questions a transition executor asks before it mutates an
item: may this role move the item, and where can it go next.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .config import TransitionDenial
from .graph import PolicyGraph
from .models import WorkflowItem, WorkflowPolicy
from .validation import validate_policy


@dataclass(frozen=True)
class TransitionCheck:
    allowed: bool
    reason: Optional[TransitionDenial] = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value if self.reason else None,
        }


def role_can_transition(policy: WorkflowPolicy, from_stage: str, to_stage: str, role: str) -> bool:
    """Whether *role* passes the guard on ``from_stage -> to_stage``.

    A transition without a guard is open to every role.
    """
    guards = [g for g in policy.guards if g.from_stage == from_stage and g.to_stage == to_stage]
    if not guards:
        return True
    return any(role in guard.allowed_roles for guard in guards)


def can_transition(
    policy: WorkflowPolicy,
    current_stage: str,
    target_stage: str,
    role: str,
) -> TransitionCheck:
    """Check a requested move; the first failing rule is reported."""
    if not validate_policy(policy).valid:
        return TransitionCheck(False, TransitionDenial.POLICY_INVALID)

    graph = PolicyGraph.from_policy(policy)
    if not graph.has_stage(current_stage) or not graph.has_stage(target_stage):
        return TransitionCheck(False, TransitionDenial.INVALID_STAGE)

    if target_stage not in graph.successors(current_stage):
        return TransitionCheck(False, TransitionDenial.INVALID_TRANSITION)

    if not role_can_transition(policy, current_stage, target_stage, role):
        return TransitionCheck(False, TransitionDenial.ROLE_NOT_ALLOWED)

    return TransitionCheck(True)


def available_transitions(policy: WorkflowPolicy, current_stage: str, role: str) -> List[str]:
    """Target stages *role* may move an item to from *current_stage*."""
    graph = PolicyGraph.from_policy(policy)
    if not graph.has_stage(current_stage):
        return []
    return [
        target
        for target in graph.successors(current_stage)
        if role_can_transition(policy, current_stage, target, role)
    ]


def calculate_wip(policy: WorkflowPolicy, items: Iterable[WorkflowItem]) -> Dict[str, int]:
    """Items per policy stage, zero-filled; unknown stages are ignored."""
    graph = PolicyGraph.from_policy(policy)
    counts = {stage_id: 0 for stage_id in graph.stage_ids}
    for item in items:
        if item.stage_id in counts:
            counts[item.stage_id] += 1
    return counts


def detect_wip_limit_breaches(policy: WorkflowPolicy, items: Iterable[WorkflowItem]) -> List[str]:
    """Stages whose item count exceeds their WIP limit, in policy order."""
    graph = PolicyGraph.from_policy(policy)
    counts = calculate_wip(policy, items)
    return [
        stage.id
        for stage in graph.stages
        if stage.wip_limit is not None and counts[stage.id] > stage.wip_limit
    ]
