"""Types for multi-day autonomous plans.

Plans, tasks and reports are immutable snapshots. The engine keeps the
canonical records and replaces them on every change, so a snapshot handed to
a caller (or to an executor) never changes underneath it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from daybreak.foundation.clock import to_iso
from daybreak.quality.guardrails.types import AutonomyUsage

DEFAULT_TASK_RUNTIME_MINUTES = 20.0


class TaskStatus(Enum):
    """Status of a task within a plan."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    APPROVAL_REQUIRED = "approval_required"

    @property
    def is_open(self) -> bool:
        """Work that still needs attention."""
        return self in (TaskStatus.PENDING, TaskStatus.RUNNING, TaskStatus.APPROVAL_REQUIRED)

    @property
    def is_done(self) -> bool:
        """Work execution never revisits."""
        return self in (TaskStatus.COMPLETED, TaskStatus.SKIPPED)


class PlanStatus(Enum):
    """Status of an autonomous plan.

    ``active`` and ``paused`` flip back and forth; ``completed``, ``failed``
    and ``halted`` never return to ``active`` on their own.
    """

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    HALTED = "halted"

    @property
    def accepts_execution(self) -> bool:
        return self not in (PlanStatus.COMPLETED, PlanStatus.HALTED)


@dataclass(frozen=True, slots=True)
class SeedTask:
    """Caller-supplied template for a day's task."""

    title: str
    description: str = ""
    is_irreversible: bool = False
    estimated_tokens: int | None = None
    estimated_api_calls: int | None = None
    estimated_connector_actions: int | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SeedTask":
        return cls(
            title=str(data["title"]),
            description=str(data.get("description", "")),
            is_irreversible=bool(data.get("is_irreversible", data.get("irreversible", False))),
            estimated_tokens=data.get("estimated_tokens"),
            estimated_api_calls=data.get("estimated_api_calls"),
            estimated_connector_actions=data.get("estimated_connector_actions"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True, slots=True)
class AutonomousTask:
    """A unit of work scheduled on one day of a plan."""

    id: str
    plan_id: str
    day_index: int
    title: str
    description: str
    created_at: datetime
    updated_at: datetime
    status: TaskStatus = TaskStatus.PENDING
    is_irreversible: bool = False
    estimated_tokens: int = 0
    estimated_api_calls: int = 0
    estimated_connector_actions: int = 0
    runtime_minutes: float = DEFAULT_TASK_RUNTIME_MINUTES
    notes: str | None = None

    @property
    def estimated_usage(self) -> AutonomyUsage:
        """Estimate handed to the guardrails before running the task."""
        return AutonomyUsage(
            tokens_used=self.estimated_tokens,
            api_calls=self.estimated_api_calls,
            connector_actions=self.estimated_connector_actions,
            runtime_minutes=self.runtime_minutes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "day_index": self.day_index,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "is_irreversible": self.is_irreversible,
            "estimated_tokens": self.estimated_tokens,
            "estimated_api_calls": self.estimated_api_calls,
            "estimated_connector_actions": self.estimated_connector_actions,
            "runtime_minutes": self.runtime_minutes,
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class DailyProgressReport:
    """What one execute_day call achieved."""

    id: str
    plan_id: str
    day_index: int
    completed_tasks: int
    failed_tasks: int
    blocked_tasks: int
    summary: str
    created_at: datetime
    adaptations: tuple[str, ...] = ()
    next_steps: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "day_index": self.day_index,
            "completed_tasks": self.completed_tasks,
            "failed_tasks": self.failed_tasks,
            "blocked_tasks": self.blocked_tasks,
            "summary": self.summary,
            "adaptations": list(self.adaptations),
            "next_steps": list(self.next_steps),
            "created_at": to_iso(self.created_at),
        }


@dataclass(frozen=True, slots=True)
class AutonomousPlan:
    """Snapshot of a plan: its schedule, usage, reports and history."""

    id: str
    user_id: str
    workspace_id: str
    goal: str
    status: PlanStatus
    duration_days: int
    current_day_index: int
    created_at: datetime
    updated_at: datetime
    tasks: tuple[AutonomousTask, ...] = ()
    usage: AutonomyUsage = field(default_factory=AutonomyUsage)
    reports: tuple[DailyProgressReport, ...] = ()
    """Most recent first."""
    history: tuple[str, ...] = ()

    def tasks_for_day(self, day_index: int) -> tuple[AutonomousTask, ...]:
        return tuple(task for task in self.tasks if task.day_index == day_index)

    def progress_summary(self) -> str:
        """One-line progress string for monitors."""
        total = len(self.tasks)
        completed = sum(1 for t in self.tasks if t.status is TaskStatus.COMPLETED)
        blocked = sum(1 for t in self.tasks if t.status is TaskStatus.APPROVAL_REQUIRED)
        failed = sum(1 for t in self.tasks if t.status is TaskStatus.FAILED)
        return f"{completed}/{total} complete • blocked {blocked} • failed {failed}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict (for external checkpoints)."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "workspace_id": self.workspace_id,
            "goal": self.goal,
            "status": self.status.value,
            "duration_days": self.duration_days,
            "current_day_index": self.current_day_index,
            "tasks": [t.to_dict() for t in self.tasks],
            "usage": self.usage.to_dict(),
            "reports": [r.to_dict() for r in self.reports],
            "history": list(self.history),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class ExecuteDayResult:
    """Outcome of PlanEngine.execute_day."""

    plan: AutonomousPlan
    day_index: int
    report: DailyProgressReport
