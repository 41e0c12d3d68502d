"""Evaluation Context Management.

Context-local binding of evaluation, workspace and scenario identifiers
so that every log line emitted while an engine runs can be traced back
to the snapshot it belongs to.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


_evaluation_id_var: ContextVar[str] = ContextVar("evaluation_id", default="")
_workspace_id_var: ContextVar[str] = ContextVar("workspace_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_evaluation_id() -> str:
    """Generate a unique evaluation ID using UUID4."""
    return str(uuid.uuid4())


def get_evaluation_id() -> str:
    """Get the current evaluation ID from context."""
    return _evaluation_id_var.get()


def get_workspace_id() -> str:
    """Get the current workspace ID from context."""
    return _workspace_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    evaluation_id = _evaluation_id_var.get()
    if evaluation_id:
        ctx["evaluation_id"] = evaluation_id
    workspace_id = _workspace_id_var.get()
    if workspace_id:
        ctx["workspace_id"] = workspace_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class EvaluationContext:
    """Context manager for evaluation-scoped logging context.

    Binds evaluation_id and workspace_id to all log entries emitted
    inside the block. Previous values are restored on exit, so contexts
    may be nested (e.g. one per simulated scenario inside a pipeline run).

    Example:
        with EvaluationContext(workspace_id="ws_1"):
            signals = SignalsEngine().compute(policy, items, now)
    """

    evaluation_id: str = ""
    workspace_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.evaluation_id:
            self.evaluation_id = generate_evaluation_id()

    def __enter__(self) -> "EvaluationContext":
        merged = {**_extra_context_var.get(), **self.extra}
        self._tokens = [
            (_evaluation_id_var, _evaluation_id_var.set(self.evaluation_id)),
            (_workspace_id_var, _workspace_id_var.set(
                self.workspace_id or _workspace_id_var.get()
            )),
            (_extra_context_var, _extra_context_var.set(merged)),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the active context."""
        current = _extra_context_var.get()
        _extra_context_var.set({**current, **kwargs})
        self.extra.update(kwargs)
