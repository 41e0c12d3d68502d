"""Workflow Policy: model, graph, validation and transition checks."""

from .config import (
    DEFAULT_POLICY_VERSION,
    TransitionDenial,
    WorkflowRole,
)
from .models import (
    EntityRef,
    EventActor,
    TransitionGuard,
    WorkflowItem,
    WorkflowPolicy,
    WorkflowStage,
    WorkflowTransition,
    WorkflowTransitionEvent,
    parse_timestamp,
    to_plain,
)
from .graph import PolicyGraph
from .validation import PolicyValidation, validate_policy
from .transitions import (
    TransitionCheck,
    available_transitions,
    calculate_wip,
    can_transition,
    detect_wip_limit_breaches,
    role_can_transition,
)
from .templates import (
    DEFAULT_WORKFLOW_POLICY,
    PolicyTemplate,
    PolicyTemplateRegistry,
)

__all__ = [
    # Config
    "DEFAULT_POLICY_VERSION",
    "TransitionDenial",
    "WorkflowRole",
    # Models
    "EntityRef",
    "EventActor",
    "TransitionGuard",
    "WorkflowItem",
    "WorkflowPolicy",
    "WorkflowStage",
    "WorkflowTransition",
    "WorkflowTransitionEvent",
    "parse_timestamp",
    "to_plain",
    # Graph & Validation
    "PolicyGraph",
    "PolicyValidation",
    "validate_policy",
    # Transitions
    "TransitionCheck",
    "available_transitions",
    "calculate_wip",
    "can_transition",
    "detect_wip_limit_breaches",
    "role_can_transition",
    # Templates
    "DEFAULT_WORKFLOW_POLICY",
    "PolicyTemplate",
    "PolicyTemplateRegistry",
]
