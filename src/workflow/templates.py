"""Workflow Policy - Templates."""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import DEFAULT_POLICY_VERSION, WorkflowRole
from .models import TransitionGuard, WorkflowPolicy, WorkflowStage, WorkflowTransition
from .validation import validate_policy


@dataclass(frozen=True)
class PolicyTemplate:
    """A reusable, named workflow policy."""

    name: str
    description: str
    policy: WorkflowPolicy
    tags: Tuple[str, ...] = field(default_factory=tuple)


class PolicyTemplateRegistry:
    """Registry of workflow policy templates with built-in templates."""

    def __init__(self, load_builtins: bool = True):
        self.templates: Dict[str, PolicyTemplate] = {}
        if load_builtins:
            self._register_builtins()

    def register_template(self, template: PolicyTemplate) -> None:
        """Register a template; the policy must validate."""
        validation = validate_policy(template.policy)
        if not validation.valid:
            raise ValueError(f"Invalid policy template {template.name}: {'; '.join(validation.errors)}")
        self.templates[template.name] = template

    def get_template(self, name: str) -> PolicyTemplate:
        """Retrieve a template by name."""
        tmpl = self.templates.get(name)
        if tmpl is None:
            raise KeyError(f"Unknown template: {name}")
        return tmpl

    def list_templates(self) -> List[PolicyTemplate]:
        """List all registered templates, sorted by name."""
        return [self.templates[name] for name in sorted(self.templates)]

    def create_policy(
        self,
        name: str,
        stage_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> WorkflowPolicy:
        """Instantiate a policy from a named template.

        *stage_overrides* maps stage id to field replacements, e.g.
        ``{"review": {"sla_hours": 24, "wip_limit": 3}}``. Unknown stage
        ids are ignored.
        """
        policy = self.get_template(name).policy
        overrides = stage_overrides or {}
        stages = tuple(
            dataclasses.replace(stage, **overrides[stage.id]) if stage.id in overrides else stage
            for stage in policy.stages
        )
        return dataclasses.replace(policy, stages=stages)

    # ── Built-in templates ────────────────────────────────────────────

    def _register_builtins(self) -> None:
        self.register_template(_content_publishing_template())
        self.register_template(_simple_review_template())


def _content_publishing_template() -> PolicyTemplate:
    owner = WorkflowRole.OWNER.value
    stages = (
        WorkflowStage(id="draft", label="Draft", order=1),
        WorkflowStage(id="review", label="Review", order=2, requires_approval=True),
        WorkflowStage(id="approved", label="Approved", order=3),
        WorkflowStage(id="scheduled", label="Scheduled", order=4),
        WorkflowStage(id="published", label="Published", order=5, terminal=True),
    )
    transitions = (
        WorkflowTransition("draft", "review"),
        WorkflowTransition("review", "approved"),
        WorkflowTransition("review", "draft", reversible=True),
        WorkflowTransition("approved", "scheduled"),
        WorkflowTransition("approved", "review", reversible=True),
        WorkflowTransition("scheduled", "published"),
    )
    guards = (
        TransitionGuard("draft", "review", (WorkflowRole.EDITOR.value, owner)),
        TransitionGuard("review", "approved", (WorkflowRole.MANAGER.value, owner)),
        TransitionGuard("review", "draft", (owner,)),
        TransitionGuard("approved", "scheduled", (owner,)),
        TransitionGuard("approved", "review", (owner,)),
        TransitionGuard("scheduled", "published", (owner,)),
    )
    return PolicyTemplate(
        name="content_publishing",
        description="Editorial pipeline with an approval gate before scheduling",
        policy=WorkflowPolicy(
            stages=stages, transitions=transitions, guards=guards, version=DEFAULT_POLICY_VERSION,
        ),
        tags=("content", "approval"),
    )


def _simple_review_template() -> PolicyTemplate:
    stages = (
        WorkflowStage(id="todo", label="To do", order=1),
        WorkflowStage(id="in_progress", label="In progress", order=2),
        WorkflowStage(id="review", label="Review", order=3, requires_approval=True),
        WorkflowStage(id="done", label="Done", order=4, terminal=True),
    )
    transitions = (
        WorkflowTransition("todo", "in_progress"),
        WorkflowTransition("in_progress", "review"),
        WorkflowTransition("review", "in_progress", reversible=True),
        WorkflowTransition("review", "done"),
    )
    guards = (
        TransitionGuard("review", "done", (WorkflowRole.MANAGER.value, WorkflowRole.OWNER.value)),
    )
    return PolicyTemplate(
        name="simple_review",
        description="Minimal work/review loop with a single approval gate",
        policy=WorkflowPolicy(stages=stages, transitions=transitions, guards=guards),
        tags=("review",),
    )


DEFAULT_WORKFLOW_POLICY = _content_publishing_template().policy
