"""Plan Engine - multi-day autonomous execution under guardrails.

Turns a goal and a duration into a day-by-day task schedule, drives each
day's tasks through the guardrails and an injected executor, and adapts the
schedule when work fails by inserting compensating tasks on the next day.

The engine keeps one mutable record per plan and hands out frozen
``AutonomousPlan`` snapshots. Callers run at most one ``execute_day`` per
plan at a time; nothing here locks.

Example:
    >>> guardrails = AutonomyGuardrails()
    >>> engine = PlanEngine(guardrails)
    >>> plan = engine.create_plan("user-1", "ws-1", "Ship the beta", 3)
    >>> result = await engine.execute_day(plan.id)
    >>> result.report.summary
    'Executed day 1. Completed 1, failed 0, blocked 0.'
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from daybreak.foundation.clock import Clock, IdGenerator, utc_now, uuid_ids
from daybreak.foundation.config import DaybreakConfig, EstimateDefaults, get_config
from daybreak.foundation.errors import (
    DaybreakError,
    ErrorCode,
    plan_not_found,
    plan_terminal,
    task_error,
)
from daybreak.planning.executor import (
    AutoCompleteExecutor,
    TaskCompleted,
    TaskExecutor,
    TaskFailed,
)
from daybreak.planning.synthesis import (
    COMPENSATING_DESCRIPTION,
    clamp_duration,
    compensating_day,
    compensating_title,
    default_task_description,
    default_task_title,
)
from daybreak.planning.types import (
    AutonomousPlan,
    AutonomousTask,
    DailyProgressReport,
    ExecuteDayResult,
    PlanStatus,
    SeedTask,
    TaskStatus,
)
from daybreak.quality.guardrails import (
    AutonomyGuardrails,
    AutonomyUsage,
    GuardrailPolicy,
    policy_from_defaults,
)

logger = logging.getLogger(__name__)

_MAX_NEXT_STEPS = 3


@dataclass(slots=True)
class _PlanRecord:
    """Canonical mutable state for one plan. Never leaves the engine."""

    id: str
    user_id: str
    workspace_id: str
    goal: str
    status: PlanStatus
    duration_days: int
    current_day_index: int
    created_at: datetime
    updated_at: datetime
    tasks: list[AutonomousTask] = field(default_factory=list)
    usage: AutonomyUsage = field(default_factory=AutonomyUsage)
    reports: list[DailyProgressReport] = field(default_factory=list)
    history: list[str] = field(default_factory=list)

    def snapshot(self) -> AutonomousPlan:
        return AutonomousPlan(
            id=self.id,
            user_id=self.user_id,
            workspace_id=self.workspace_id,
            goal=self.goal,
            status=self.status,
            duration_days=self.duration_days,
            current_day_index=self.current_day_index,
            created_at=self.created_at,
            updated_at=self.updated_at,
            tasks=tuple(self.tasks),
            usage=self.usage,
            reports=tuple(self.reports),
            history=tuple(self.history),
        )


class PlanEngine:
    """Schedules and executes autonomous plans.

    Args:
        guardrails: The guardrail system every action is evaluated against.
            Share one instance across engines so the kill switch reaches
            every plan.
        clock: Source of timestamps when callers pass no ``now``
        ids: Id generator (``prefix -> id``)
        config: Defaults for estimates and the fallback policy
        executor: Executor used when ``execute_day`` gets none
    """

    def __init__(
        self,
        guardrails: AutonomyGuardrails,
        *,
        clock: Clock = utc_now,
        ids: IdGenerator = uuid_ids,
        config: DaybreakConfig | None = None,
        executor: TaskExecutor | None = None,
    ) -> None:
        self.guardrails = guardrails
        self._clock = clock
        self._ids = ids
        self._config = config or get_config()
        self._default_executor = executor or AutoCompleteExecutor()
        self._plans: dict[str, _PlanRecord] = {}

    @property
    def default_policy(self) -> GuardrailPolicy:
        """Policy registered for plans created without one."""
        return policy_from_defaults(self._config.policy)

    # -------------------------------------------------------------------------
    # Creation & queries
    # -------------------------------------------------------------------------

    def create_plan(
        self,
        user_id: str,
        workspace_id: str,
        goal: str,
        duration_days: float,
        seed_tasks_by_day: Sequence[Sequence[SeedTask | Mapping[str, Any]]] | None = None,
        policy: GuardrailPolicy | None = None,
        now: datetime | None = None,
    ) -> AutonomousPlan:
        """Build a day-by-day schedule and register its guardrail policy.

        Days with seed tasks use them verbatim, in order. Every other day gets
        one synthesized task phrased for its position in the plan.

        Args:
            user_id: Owner of the plan
            workspace_id: Workspace the plan runs in
            goal: What the plan is for
            duration_days: Requested length, rounded and clamped to 1-30
            seed_tasks_by_day: Optional caller tasks, indexed by day
            policy: Guardrail policy (default: ``default_policy``)
            now: Creation timestamp

        Returns:
            Snapshot of the new plan (status ``active``, day 0)
        """
        now = now or self._clock()
        plan_defaults = self._config.plans
        days = clamp_duration(duration_days, plan_defaults.max_duration_days)
        plan_id = self._ids("autonomy-plan")

        tasks: list[AutonomousTask] = []
        for day_index in range(days):
            seeds = ()
            if seed_tasks_by_day and day_index < len(seed_tasks_by_day):
                seeds = seed_tasks_by_day[day_index] or ()
            if seeds:
                for raw in seeds:
                    seed = raw if isinstance(raw, SeedTask) else SeedTask.from_dict(raw)
                    tasks.append(self._new_task(
                        plan_id,
                        day_index,
                        seed.title,
                        seed.description,
                        plan_defaults.seed,
                        now,
                        is_irreversible=seed.is_irreversible,
                        tokens=seed.estimated_tokens,
                        api_calls=seed.estimated_api_calls,
                        connector_actions=seed.estimated_connector_actions,
                        notes=seed.notes,
                    ))
                continue

            tasks.append(self._new_task(
                plan_id,
                day_index,
                default_task_title(goal, day_index, days),
                default_task_description(goal, day_index, days),
                plan_defaults.synthesized,
                now,
            ))

        record = _PlanRecord(
            id=plan_id,
            user_id=user_id,
            workspace_id=workspace_id,
            goal=goal,
            status=PlanStatus.ACTIVE,
            duration_days=days,
            current_day_index=0,
            created_at=now,
            updated_at=now,
            tasks=tasks,
            history=[f"Plan created with {days} day(s)."],
        )
        self._plans[plan_id] = record
        self.guardrails.register_plan(plan_id, policy or self.default_policy, now=now)

        logger.info("Created plan %s (%d day(s), %d task(s)): %s", plan_id, days, len(tasks), goal)
        return record.snapshot()

    def get_plan(self, plan_id: str) -> AutonomousPlan | None:
        record = self._plans.get(plan_id)
        return record.snapshot() if record else None

    def list_plans(
        self,
        user_id: str | None = None,
        workspace_id: str | None = None,
        statuses: Iterable[PlanStatus] | None = None,
    ) -> list[AutonomousPlan]:
        """List plans, most recently updated first."""
        wanted = set(statuses) if statuses else None
        records = [
            record
            for record in self._plans.values()
            if (user_id is None or record.user_id == user_id)
            and (workspace_id is None or record.workspace_id == workspace_id)
            and (wanted is None or record.status in wanted)
        ]
        records.sort(key=lambda r: r.updated_at, reverse=True)
        return [record.snapshot() for record in records]

    def recent_reports(
        self,
        user_id: str | None = None,
        workspace_id: str | None = None,
        limit: int = 12,
    ) -> list[DailyProgressReport]:
        """Daily reports across plans, newest first."""
        reports = [
            report
            for plan in self.list_plans(user_id=user_id, workspace_id=workspace_id)
            for report in plan.reports
        ]
        reports.sort(key=lambda r: r.created_at, reverse=True)
        return reports[:limit]

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute_day(
        self,
        plan_id: str,
        day_index: int | None = None,
        task_executor: TaskExecutor | None = None,
        now: datetime | None = None,
    ) -> ExecuteDayResult:
        """Run one day of a plan.

        Tasks of the day run in stored order. The first guardrail denial marks
        its task ``approval_required``, pauses the plan and ends the day; the
        remaining tasks wait for the next call. Failed tasks (including
        executor exceptions and malformed outcomes) get a compensating task on
        the following day.

        Args:
            plan_id: Plan to run
            day_index: Day to run (default: the plan's current day), clamped
            task_executor: Executor for this call (default: engine executor)
            now: Timestamp for every record touched by this call

        Returns:
            ExecuteDayResult with the plan snapshot and the day's report

        Raises:
            DaybreakError: Unknown plan, or plan ``completed``/``halted``
        """
        now = now or self._clock()
        record = self._require(plan_id)

        if self.guardrails.is_kill_switch_active():
            return self._halt_for_kill_switch(record, day_index, now)

        if not record.status.accepts_execution:
            raise plan_terminal(record.id, record.status.value)

        if record.status is PlanStatus.PAUSED and not self.guardrails.is_plan_paused(record.id):
            record.status = PlanStatus.ACTIVE

        day = self._clamp_day(record, record.current_day_index if day_index is None else day_index)
        executor = task_executor or self._default_executor
        positions = [i for i, task in enumerate(record.tasks) if task.day_index == day]

        completed = failed = blocked = 0
        adaptations: list[str] = []

        for position in positions:
            task = record.tasks[position]
            if task.status.is_done:
                completed += 1
                continue

            evaluation = self.guardrails.evaluate_action(
                record.id,
                task.id,
                irreversible=task.is_irreversible,
                estimated_usage=task.estimated_usage,
                now=now,
            )
            if not evaluation.allow:
                notes = (evaluation.escalation.reason if evaluation.escalation else "") or "Blocked by guardrail."
                record.tasks[position] = replace(
                    task, status=TaskStatus.APPROVAL_REQUIRED, notes=notes, updated_at=now
                )
                blocked += 1
                record.status = PlanStatus.PAUSED
                record.updated_at = now
                record.history.append(f"Execution paused at day {day + 1}: {notes}")
                logger.info("Plan %s paused at task %s: %s", record.id, task.id, notes)
                break

            task = replace(task, status=TaskStatus.RUNNING, updated_at=now)
            record.tasks[position] = task

            try:
                outcome = await executor.execute(record.snapshot(), task, day)
                if not isinstance(outcome, (TaskCompleted, TaskFailed)):
                    raise TypeError(
                        f"Executor returned {type(outcome).__name__}, "
                        "expected TaskCompleted or TaskFailed"
                    )
            except Exception as e:
                logger.warning(
                    "Task %s on plan %s raised: %s", task.id, record.id, e, exc_info=True
                )
                record.tasks[position] = replace(
                    task, status=TaskStatus.FAILED, notes=str(e) or type(e).__name__, updated_at=now
                )
                failed += 1
                self._add_compensating_task(record, day, now)
                adaptations.append(
                    f'Added compensating task after runtime failure in "{task.title}".'
                )
                continue

            match outcome:
                case TaskFailed(summary=summary):
                    record.tasks[position] = replace(
                        task,
                        status=TaskStatus.FAILED,
                        notes=summary or "Task execution failed.",
                        updated_at=now,
                    )
                    failed += 1
                    self._add_compensating_task(record, day, now)
                    adaptations.append(f'Added compensating task after failure in "{task.title}".')
                    logger.warning("Task %s on plan %s failed: %s", task.id, record.id, summary)
                case _:
                    record.tasks[position] = replace(
                        task,
                        status=TaskStatus.COMPLETED,
                        notes=outcome.summary or None,
                        updated_at=now,
                    )
                    completed += 1
                    logger.debug("Task %s on plan %s completed", task.id, record.id)

            delta = outcome.usage if outcome.usage is not None else task.estimated_usage
            record.usage = record.usage.merge(delta)
            self.guardrails.record_usage(record.id, delta)

        if record.status is not PlanStatus.PAUSED:
            if any(task.status.is_open for task in record.tasks):
                record.status = PlanStatus.ACTIVE
            elif failed > 0:
                record.status = PlanStatus.FAILED
            else:
                record.status = PlanStatus.COMPLETED
                logger.info("Plan %s completed", record.id)

        if record.status is PlanStatus.ACTIVE:
            open_days = [
                task.day_index
                for task in record.tasks
                if task.status in (TaskStatus.PENDING, TaskStatus.APPROVAL_REQUIRED)
            ]
            record.current_day_index = (
                min(open_days) if open_days else min(record.duration_days - 1, day + 1)
            )

        record.updated_at = now
        next_steps = [
            task.title
            for task in record.tasks
            if task.day_index >= day and task.status is TaskStatus.PENDING
        ][:_MAX_NEXT_STEPS]

        if record.status is PlanStatus.PAUSED:
            summary = "Execution paused for guardrail review."
        else:
            summary = (
                f"Executed day {day + 1}. Completed {completed}, failed {failed}, blocked {blocked}."
            )

        report = self._new_report(
            record,
            day,
            now,
            summary=summary,
            completed=completed,
            failed=failed,
            blocked=blocked,
            adaptations=adaptations,
            next_steps=next_steps,
        )
        record.history.append(summary)
        return ExecuteDayResult(plan=record.snapshot(), day_index=day, report=report)

    def _halt_for_kill_switch(
        self,
        record: _PlanRecord,
        day_index: int | None,
        now: datetime,
    ) -> ExecuteDayResult:
        record.status = PlanStatus.HALTED
        record.updated_at = now
        record.history.append("Kill switch active. Execution halted.")
        day = self._clamp_day(record, record.current_day_index if day_index is None else day_index)
        report = self._new_report(
            record, day, now, summary="Execution blocked by kill switch."
        )
        logger.warning(
            "Plan %s halted by kill switch: %s", record.id, self.guardrails.kill_switch_reason
        )
        return ExecuteDayResult(plan=record.snapshot(), day_index=day, report=report)

    # -------------------------------------------------------------------------
    # Operator controls
    # -------------------------------------------------------------------------

    def resume_plan(self, plan_id: str, now: datetime | None = None) -> AutonomousPlan:
        """Return a paused plan to ``active`` once its escalations are resolved.

        If the guardrails still hold the plan paused, the status is re-asserted
        as ``paused`` and nothing else changes.

        Raises:
            DaybreakError: Unknown plan, plan ``completed``/``halted``, or the
                kill switch is active
        """
        record = self._require(plan_id)
        if not record.status.accepts_execution:
            raise plan_terminal(record.id, record.status.value)
        if self.guardrails.is_kill_switch_active():
            raise DaybreakError(
                code=ErrorCode.KILL_SWITCH_ACTIVE,
                context={"plan_id": plan_id, "reason": self.guardrails.kill_switch_reason},
            )

        record.updated_at = now or self._clock()
        if self.guardrails.is_plan_paused(plan_id):
            record.status = PlanStatus.PAUSED
            return record.snapshot()

        record.status = PlanStatus.ACTIVE
        record.history.append("Plan resumed.")
        logger.info("Plan %s resumed", plan_id)
        return record.snapshot()

    def halt_plan(
        self,
        plan_id: str,
        reason: str = "manual halt",
        now: datetime | None = None,
    ) -> AutonomousPlan:
        """Stop a plan for good. Succeeds from any status."""
        record = self._require(plan_id)
        record.status = PlanStatus.HALTED
        record.updated_at = now or self._clock()
        record.history.append(f"Plan halted: {reason}")
        logger.info("Plan %s halted: %s", plan_id, reason)
        return record.snapshot()

    def skip_task(
        self,
        plan_id: str,
        task_id: str,
        reason: str = "",
        now: datetime | None = None,
    ) -> AutonomousPlan:
        """Drop a pending or blocked task without running it.

        Typically follows rejecting the task's escalation. Skipped tasks count
        as done for progress and plan completion.

        Raises:
            DaybreakError: Unknown plan or task, terminal plan, or a task
                that already ran
        """
        record = self._require(plan_id)
        if not record.status.accepts_execution:
            raise plan_terminal(record.id, record.status.value)

        for position, task in enumerate(record.tasks):
            if task.id == task_id:
                break
        else:
            raise task_error(ErrorCode.TASK_NOT_FOUND, plan_id, task_id)

        if task.status not in (TaskStatus.PENDING, TaskStatus.APPROVAL_REQUIRED):
            raise task_error(ErrorCode.TASK_NOT_SKIPPABLE, plan_id, task_id, task.status.value)

        now = now or self._clock()
        note = reason or "Skipped by operator."
        record.tasks[position] = replace(task, status=TaskStatus.SKIPPED, notes=note, updated_at=now)
        record.updated_at = now
        record.history.append(f'Skipped "{task.title}": {note}')
        logger.info("Skipped task %s on plan %s: %s", task_id, plan_id, note)
        return record.snapshot()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require(self, plan_id: str) -> _PlanRecord:
        record = self._plans.get(plan_id)
        if record is None:
            raise plan_not_found(plan_id)
        return record

    @staticmethod
    def _clamp_day(record: _PlanRecord, day_index: int) -> int:
        return max(0, min(record.duration_days - 1, day_index))

    def _new_task(
        self,
        plan_id: str,
        day_index: int,
        title: str,
        description: str,
        estimates: EstimateDefaults,
        now: datetime,
        *,
        is_irreversible: bool = False,
        tokens: int | None = None,
        api_calls: int | None = None,
        connector_actions: int | None = None,
        notes: str | None = None,
    ) -> AutonomousTask:
        return AutonomousTask(
            id=self._ids("autonomy-task"),
            plan_id=plan_id,
            day_index=day_index,
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
            is_irreversible=is_irreversible,
            estimated_tokens=estimates.tokens if tokens is None else tokens,
            estimated_api_calls=estimates.api_calls if api_calls is None else api_calls,
            estimated_connector_actions=(
                estimates.connector_actions if connector_actions is None else connector_actions
            ),
            runtime_minutes=self._config.plans.task_runtime_minutes,
            notes=notes,
        )

    def _add_compensating_task(self, record: _PlanRecord, failed_day: int, now: datetime) -> None:
        task = self._new_task(
            record.id,
            compensating_day(failed_day, record.duration_days),
            compensating_title(failed_day),
            COMPENSATING_DESCRIPTION,
            self._config.plans.compensating,
            now,
        )
        record.tasks.append(task)
        logger.info("Plan %s: scheduled %s on day %d", record.id, task.title, task.day_index + 1)

    def _new_report(
        self,
        record: _PlanRecord,
        day_index: int,
        now: datetime,
        *,
        summary: str,
        completed: int = 0,
        failed: int = 0,
        blocked: int = 0,
        adaptations: Sequence[str] = (),
        next_steps: Sequence[str] = (),
    ) -> DailyProgressReport:
        report = DailyProgressReport(
            id=self._ids("autonomy-report"),
            plan_id=record.id,
            day_index=day_index,
            completed_tasks=completed,
            failed_tasks=failed,
            blocked_tasks=blocked,
            summary=summary,
            created_at=now,
            adaptations=tuple(adaptations),
            next_steps=tuple(next_steps),
        )
        record.reports.insert(0, report)
        return report
