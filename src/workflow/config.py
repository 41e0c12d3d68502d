"""Workflow Policy - Configuration."""

from enum import Enum

DEFAULT_POLICY_VERSION = "1"


class TransitionDenial(str, Enum):
    """Why a requested stage transition is refused.

    Members are listed in evaluation order: the first failing check wins.
    """

    POLICY_INVALID = "POLICY_INVALID"
    INVALID_STAGE = "INVALID_STAGE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ROLE_NOT_ALLOWED = "ROLE_NOT_ALLOWED"


class WorkflowRole(str, Enum):
    """Workspace roles referenced by the built-in guards."""

    OWNER = "owner"
    MANAGER = "manager"
    EDITOR = "editor"
    VIEWER = "viewer"
