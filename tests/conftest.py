"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.flow_metrics import StageZone, ZonePolicy  # noqa: E402
from src.workflow import (  # noqa: E402
    DEFAULT_WORKFLOW_POLICY,
    PolicyTemplateRegistry,
    WorkflowItem,
    WorkflowTransitionEvent,
)

FIXED_NOW = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)

PUBLISHING_ZONES = ZonePolicy({
    "draft": StageZone.QUEUE,
    "review": StageZone.ACTIVE,
    "approved": StageZone.ACTIVE,
    "scheduled": StageZone.ACTIVE,
    "published": StageZone.DONE,
})


def hours_ago(hours: float, now: datetime = FIXED_NOW) -> datetime:
    return now - timedelta(hours=hours)


def make_item(item_id: str, stage_id: str, age_hours: float, **kwargs) -> WorkflowItem:
    """Item that entered its stage ``age_hours`` before FIXED_NOW."""
    return WorkflowItem(
        id=item_id,
        stage_id=stage_id,
        stage_entered_at=hours_ago(age_hours),
        **kwargs,
    )


def make_path(item_id: str, stages, start: datetime, step_hours) -> list:
    """Events moving an item through *stages*, one step every ``step_hours``.

    ``step_hours`` may be a number or one duration per hop.
    """
    if isinstance(step_hours, (int, float)):
        step_hours = [step_hours] * (len(stages) - 1)
    events = []
    at = start
    previous = None
    for index, stage_id in enumerate(stages):
        events.append(WorkflowTransitionEvent(
            id=f"{item_id}-e{index}",
            occurred_at=at,
            from_stage_id=previous,
            to_stage_id=stage_id,
        ))
        previous = stage_id
        if index < len(step_hours):
            at = at + timedelta(hours=step_hours[index])
    return events


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def policy():
    return DEFAULT_WORKFLOW_POLICY


@pytest.fixture
def sla_policy():
    """Publishing policy with a 24h review SLA and WIP limits."""
    return PolicyTemplateRegistry().create_policy(
        "content_publishing",
        {
            "draft": {"wip_limit": 6},
            "review": {"sla_hours": 24, "wip_limit": 3},
            "approved": {"wip_limit": 5, "sla_hours": 48},
            "scheduled": {"wip_limit": 4},
        },
    )


@pytest.fixture
def zones():
    return PUBLISHING_ZONES


@pytest.fixture
def history():
    """Two completed items plus one still in review."""
    stages = ["draft", "review", "approved", "scheduled", "published"]
    return {
        "item_a": make_path("item_a", stages, FIXED_NOW - timedelta(days=5), [4, 10, 6, 2]),
        "item_b": make_path("item_b", stages, FIXED_NOW - timedelta(days=3), [2, 8, 4, 1]),
        "item_c": make_path("item_c", ["draft", "review"], FIXED_NOW - timedelta(days=2), [6]),
    }
