"""Workflow Policy - Validation."""

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set, Tuple

from .models import WorkflowPolicy


@dataclass(frozen=True)
class PolicyValidation:
    """Outcome of checking a policy; ``errors`` lists every violation."""

    valid: bool
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def _adjacency(policy: WorkflowPolicy) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {}
    for transition in policy.transitions:
        adjacency.setdefault(transition.from_stage, []).append(transition.to_stage)
    return adjacency


def _reachable(adjacency: Dict[str, List[str]], starts: Iterable[str]) -> Set[str]:
    seen: Set[str] = set()
    queue = deque(starts)
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        queue.extend(n for n in adjacency.get(current, ()) if n not in seen)
    return seen


def validate_policy(policy: WorkflowPolicy) -> PolicyValidation:
    """Check every structural invariant of a policy.

    Does not stop at the first problem: all violations are collected so
    they can be surfaced together.

    Returns:
        PolicyValidation with ``valid`` False when any error was found.
    """
    errors: List[str] = []
    stage_ids = [stage.id for stage in policy.stages]
    known = set(stage_ids)

    if not policy.stages:
        errors.append("Workflow policy must define at least one stage.")

    if len(known) != len(stage_ids):
        errors.append("Workflow policy contains duplicate stage IDs.")

    terminal_ids = {stage.id for stage in policy.stages if stage.terminal}
    if not terminal_ids:
        errors.append("Workflow policy must define at least one terminal stage.")

    for transition in policy.transitions:
        if transition.from_stage not in known or transition.to_stage not in known:
            errors.append(
                f"Transition {transition.from_stage} -> {transition.to_stage} references an invalid stage."
            )

    for guard in policy.guards:
        if guard.from_stage not in known or guard.to_stage not in known:
            errors.append(f"Guard {guard.from_stage} -> {guard.to_stage} references an invalid stage.")

    adjacency = _adjacency(policy)

    if policy.stages:
        start_order = min(stage.order for stage in policy.stages)
        starts = [stage.id for stage in policy.stages if stage.order == start_order]
        reachable = _reachable(adjacency, starts)
        for stage_id in stage_ids:
            if stage_id not in reachable:
                errors.append(f"Stage {stage_id} is unreachable from workflow start.")

    for stage in policy.stages:
        if not stage.terminal and not adjacency.get(stage.id):
            errors.append(f"Non-terminal stage {stage.id} has no outgoing transitions.")

    for stage in policy.stages:
        if not (_reachable(adjacency, [stage.id]) & terminal_ids):
            errors.append(f"Stage {stage.id} cannot reach a terminal stage.")

    return PolicyValidation(valid=not errors, errors=tuple(errors))
