"""Task executor seam for the plan engine.

The engine never decides how a task is carried out. It hands each allowed
task to a TaskExecutor and interprets the tagged outcome. An executor that
raises is treated exactly like one that returns TaskFailed.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from daybreak.quality.guardrails.types import AutonomyUsage

if TYPE_CHECKING:
    from daybreak.planning.types import AutonomousPlan, AutonomousTask


@dataclass(frozen=True, slots=True)
class TaskCompleted:
    """The task finished successfully."""

    summary: str = ""
    usage: AutonomyUsage | None = None
    """Actual usage; the task's estimate is charged when None."""


@dataclass(frozen=True, slots=True)
class TaskFailed:
    """The task ran but did not achieve its goal."""

    summary: str = ""
    usage: AutonomyUsage | None = None
    """Usage burned before failing; the task's estimate is charged when None."""


TaskOutcome = TaskCompleted | TaskFailed


@runtime_checkable
class TaskExecutor(Protocol):
    """Carries out one task on behalf of the engine.

    Enables swapping real connectors for test doubles.
    """

    async def execute(
        self,
        plan: AutonomousPlan,
        task: AutonomousTask,
        day_index: int,
    ) -> TaskOutcome:
        """Execute a task.

        Args:
            plan: Snapshot of the plan at the moment of execution
            task: Snapshot of the task (status ``running``)
            day_index: Day being executed

        Returns:
            TaskCompleted or TaskFailed
        """
        ...


class AutoCompleteExecutor:
    """Completes every task using its estimated usage.

    Default executor for dry runs and rehearsals.
    """

    async def execute(
        self,
        plan: AutonomousPlan,
        task: AutonomousTask,
        day_index: int,
    ) -> TaskOutcome:
        return TaskCompleted(summary=f"Auto-executed {task.title}", usage=task.estimated_usage)


TaskFunction = Callable[
    ["AutonomousPlan", "AutonomousTask", int],
    "TaskOutcome | Awaitable[TaskOutcome]",
]


class CallableExecutor:
    """Adapts a plain function (sync or async) to the TaskExecutor protocol.

    Example:
        >>> def run(plan, task, day_index):
        ...     return TaskCompleted(summary=f"ran {task.title}")
        >>> executor = CallableExecutor(run)
    """

    def __init__(self, func: TaskFunction) -> None:
        self._func = func

    async def execute(
        self,
        plan: AutonomousPlan,
        task: AutonomousTask,
        day_index: int,
    ) -> TaskOutcome:
        result = self._func(plan, task, day_index)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, (TaskCompleted, TaskFailed)):
            raise TypeError(
                f"Task function returned {type(result).__name__}, "
                "expected TaskCompleted or TaskFailed"
            )
        return result
