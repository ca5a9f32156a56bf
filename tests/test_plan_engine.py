"""Tests for the PlanEngine.

Covers schedule synthesis, guarded day execution, failure adaptation with
compensating tasks, operator controls and snapshot isolation.
"""

import dataclasses
import json

import pytest

from daybreak.foundation.config import DaybreakConfig, EstimateDefaults, PlanDefaults
from daybreak.foundation.errors import DaybreakError, ErrorCode
from daybreak.planning import (
    AutonomousPlan,
    CallableExecutor,
    PlanEngine,
    PlanStatus,
    SeedTask,
    TaskCompleted,
    TaskFailed,
    TaskStatus,
)
from daybreak.quality.guardrails import (
    AutonomyUsage,
    EscalationStatus,
    EscalationType,
    GuardrailPolicy,
)


def fail_on_day(day_index: int) -> CallableExecutor:
    def run(plan, task, current_day):
        if task.day_index == day_index:
            return TaskFailed(summary=f"{task.title} broke")
        return TaskCompleted(summary=f"did {task.title}")

    return CallableExecutor(run)


def pending_escalations(engine: PlanEngine, plan_id: str):
    return engine.guardrails.list_escalations(plan_id, EscalationStatus.PENDING)


# =============================================================================
# Plan Creation
# =============================================================================


class TestCreatePlan:
    """Schedule synthesis and registration."""

    def test_synthesized_schedule(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "launch the beta", 5)

        assert plan.id == "autonomy-plan-0001"
        assert plan.status is PlanStatus.ACTIVE
        assert plan.current_day_index == 0
        assert plan.duration_days == 5
        assert [t.title for t in plan.tasks] == [
            "Clarify constraints for launch the beta",
            "Execute milestone 2 for launch the beta",
            "Execute milestone 3 for launch the beta",
            "Execute milestone 4 for launch the beta",
            "Synthesize outcomes for launch the beta",
        ]
        assert [t.day_index for t in plan.tasks] == [0, 1, 2, 3, 4]
        first = plan.tasks[0]
        assert (first.estimated_tokens, first.estimated_api_calls, first.estimated_connector_actions) == (
            1800,
            2,
            1,
        )
        assert first.runtime_minutes == 20
        assert plan.history == ("Plan created with 5 day(s).",)

    def test_single_day_plan_clarifies_constraints(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "triage inbox", 1)
        assert [t.title for t in plan.tasks] == ["Clarify constraints for triage inbox"]

    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(0, 1), (-3, 1), (45, 30), (2.4, 2), (2.5, 3)],
    )
    def test_duration_is_rounded_and_clamped(self, engine, requested, expected):
        plan = engine.create_plan("user-1", "ws-1", "goal", requested)
        assert plan.duration_days == expected
        assert len(plan.tasks) == expected

    def test_seed_tasks_used_verbatim(self, engine):
        plan = engine.create_plan(
            "user-1",
            "ws-1",
            "migrate billing",
            3,
            seed_tasks_by_day=[
                [
                    SeedTask(title="Inventory jobs", description="list cron jobs"),
                    {"title": "Snapshot ledger", "estimated_tokens": 300, "notes": "read-only"},
                ],
                [],
            ],
        )

        assert [(t.day_index, t.title) for t in plan.tasks] == [
            (0, "Inventory jobs"),
            (0, "Snapshot ledger"),
            (1, "Execute milestone 2 for migrate billing"),
            (2, "Synthesize outcomes for migrate billing"),
        ]
        inventory, snapshot = plan.tasks[0], plan.tasks[1]
        assert (inventory.estimated_tokens, inventory.estimated_api_calls) == (1200, 1)
        assert inventory.estimated_connector_actions == 0
        assert snapshot.estimated_tokens == 300
        assert snapshot.notes == "read-only"

    def test_registers_default_policy(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        assert engine.guardrails.get_policy(plan.id) == GuardrailPolicy()

    def test_registers_given_policy(self, engine, small_policy):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2, policy=small_policy)
        assert engine.guardrails.get_policy(plan.id) == small_policy

    def test_config_drives_estimates(self, guardrails, clock, ids):
        config = DaybreakConfig(
            plans=PlanDefaults(
                synthesized=EstimateDefaults(tokens=100, api_calls=1, connector_actions=0),
                task_runtime_minutes=30,
            )
        )
        engine = PlanEngine(guardrails, clock=clock, ids=ids, config=config)
        task = engine.create_plan("user-1", "ws-1", "goal", 1).tasks[0]
        assert task.estimated_tokens == 100
        assert task.estimated_usage == AutonomyUsage(
            tokens_used=100, api_calls=1, connector_actions=0, runtime_minutes=30
        )

    def test_duration_never_exceeds_thirty_days(self, guardrails, clock, ids):
        """A looser configured ceiling still stops at 30 days."""
        config = DaybreakConfig(plans=PlanDefaults(max_duration_days=45))
        engine = PlanEngine(guardrails, clock=clock, ids=ids, config=config)

        plan = engine.create_plan("user-1", "ws-1", "goal", 40)
        assert plan.duration_days == 30
        assert len(plan.tasks) == 30

    def test_get_plan_round_trip(self, engine):
        created = engine.create_plan("user-1", "ws-1", "goal", 4)
        fetched = engine.get_plan(created.id)
        assert fetched == created
        assert len(fetched.tasks) == 4
        assert fetched.status is PlanStatus.ACTIVE

    def test_get_unknown_plan(self, engine):
        assert engine.get_plan("missing") is None


# =============================================================================
# Listing
# =============================================================================


class TestListing:
    """list_plans and recent_reports."""

    def test_most_recently_updated_first(self, engine, clock):
        older = engine.create_plan("user-1", "ws-1", "older", 1)
        clock.advance(minutes=5)
        newer = engine.create_plan("user-2", "ws-1", "newer", 1)

        assert [p.id for p in engine.list_plans()] == [newer.id, older.id]

        clock.advance(minutes=5)
        engine.halt_plan(older.id)
        assert [p.id for p in engine.list_plans()] == [older.id, newer.id]

    def test_filters(self, engine):
        alice = engine.create_plan("alice", "ws-1", "a", 1)
        bob = engine.create_plan("bob", "ws-2", "b", 1)
        engine.halt_plan(bob.id)

        assert [p.id for p in engine.list_plans(user_id="alice")] == [alice.id]
        assert [p.id for p in engine.list_plans(workspace_id="ws-2")] == [bob.id]
        assert [p.id for p in engine.list_plans(statuses=[PlanStatus.HALTED])] == [bob.id]
        assert engine.list_plans(user_id="carol") == []

    @pytest.mark.asyncio
    async def test_recent_reports_newest_first(self, engine, clock):
        first = engine.create_plan("alice", "ws-1", "a", 2)
        second = engine.create_plan("bob", "ws-1", "b", 2)

        await engine.execute_day(first.id)
        clock.advance(minutes=1)
        await engine.execute_day(second.id)

        reports = engine.recent_reports()
        assert [r.plan_id for r in reports] == [second.id, first.id]
        assert [r.plan_id for r in engine.recent_reports(limit=1)] == [second.id]
        assert [r.plan_id for r in engine.recent_reports(user_id="alice")] == [first.id]


# =============================================================================
# Day Execution
# =============================================================================


class TestExecuteDay:
    """The scheduler core."""

    @pytest.mark.asyncio
    async def test_default_executor_completes_day(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 3)
        result = await engine.execute_day(plan.id)

        assert result.day_index == 0
        assert result.report.summary == "Executed day 1. Completed 1, failed 0, blocked 0."
        assert result.report.next_steps == ("Execute milestone 2 for goal", "Synthesize outcomes for goal")
        assert result.plan.status is PlanStatus.ACTIVE
        assert result.plan.current_day_index == 1
        assert result.plan.tasks[0].status is TaskStatus.COMPLETED
        assert result.plan.tasks[0].notes == "Auto-executed Clarify constraints for goal"
        assert result.plan.usage == AutonomyUsage(
            tokens_used=1800, api_calls=2, connector_actions=1, runtime_minutes=20
        )
        assert engine.guardrails.get_usage(plan.id) == result.plan.usage
        assert result.plan.reports[0] == result.report
        assert result.plan.history[-1] == result.report.summary

    @pytest.mark.asyncio
    async def test_five_day_recovery_scenario(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "ship", 5)
        executor = fail_on_day(1)

        await engine.execute_day(plan.id, task_executor=executor)
        day2 = await engine.execute_day(plan.id, task_executor=executor)

        assert day2.day_index == 1
        assert day2.report.failed_tasks == 1
        assert day2.report.adaptations == (
            'Added compensating task after failure in "Execute milestone 2 for ship".',
        )
        assert day2.plan.status is PlanStatus.ACTIVE
        assert day2.plan.current_day_index == 2
        failed = day2.plan.tasks_for_day(1)[0]
        assert failed.status is TaskStatus.FAILED
        assert failed.notes == "Execute milestone 2 for ship broke"

        day3_titles = [t.title for t in day2.plan.tasks_for_day(2)]
        assert any("recovery loop" in title.lower() for title in day3_titles)
        recovery = day2.plan.tasks[-1]
        assert recovery.title == "Recovery loop for day 2"
        assert recovery.description == (
            "Compensate for previous failure, restore baseline progress, "
            "and unblock downstream tasks."
        )
        assert (recovery.estimated_tokens, recovery.estimated_api_calls) == (1500, 2)

        day3 = await engine.execute_day(plan.id, task_executor=executor)
        assert day3.report.completed_tasks == 2
        await engine.execute_day(plan.id, task_executor=executor)
        final = await engine.execute_day(plan.id, task_executor=executor)

        assert final.plan.status is PlanStatus.COMPLETED
        assert final.plan.usage.tokens_used == 5 * 1800 + 1500
        assert final.plan.progress_summary() == "5/6 complete • blocked 0 • failed 1"

    @pytest.mark.asyncio
    async def test_exactly_one_compensating_task_per_failure(self, engine):
        plan = engine.create_plan(
            "user-1",
            "ws-1",
            "goal",
            2,
            seed_tasks_by_day=[[SeedTask("a"), SeedTask("b"), SeedTask("c")]],
        )
        result = await engine.execute_day(
            plan.id,
            task_executor=CallableExecutor(
                lambda p, t, d: TaskFailed("nope") if t.title != "b" else TaskCompleted()
            ),
        )

        recoveries = [t for t in result.plan.tasks if t.title == "Recovery loop for day 1"]
        assert len(recoveries) == 2
        assert all(t.day_index == 1 for t in recoveries)
        assert len(result.report.adaptations) == 2
        assert result.report.failed_tasks == 2
        assert result.report.completed_tasks == 1

    @pytest.mark.asyncio
    async def test_executor_exception_is_a_failure(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)

        async def explode(p, t, d):
            raise RuntimeError("connector timed out")

        result = await engine.execute_day(plan.id, task_executor=CallableExecutor(explode))

        task = result.plan.tasks[0]
        assert task.status is TaskStatus.FAILED
        assert task.notes == "connector timed out"
        assert result.report.failed_tasks == 1
        assert result.report.adaptations == (
            'Added compensating task after runtime failure in "Clarify constraints for goal".',
        )
        assert result.plan.tasks[-1].day_index == 1
        assert result.plan.usage == AutonomyUsage()

    @pytest.mark.asyncio
    async def test_malformed_outcome_is_a_failure(self, engine):
        """An executor returning something other than an outcome fails the task."""

        class ReturnsNothing:
            async def execute(self, plan, task, day_index):
                return None

        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        result = await engine.execute_day(plan.id, task_executor=ReturnsNothing())

        task = result.plan.tasks[0]
        assert task.status is TaskStatus.FAILED
        assert "NoneType" in task.notes
        assert result.report.failed_tasks == 1
        assert result.report.adaptations == (
            'Added compensating task after runtime failure in "Clarify constraints for goal".',
        )
        assert result.plan.tasks[-1].title == "Recovery loop for day 1"
        assert result.plan.usage == AutonomyUsage()

        await engine.execute_day(plan.id)
        assert engine.get_plan(plan.id).status is PlanStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_task_usage_is_charged(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        spent = AutonomyUsage(tokens_used=42, api_calls=1)
        result = await engine.execute_day(
            plan.id, task_executor=CallableExecutor(lambda p, t, d: TaskFailed("x", usage=spent))
        )
        assert result.plan.usage == spent
        assert engine.guardrails.get_usage(plan.id) == spent

    @pytest.mark.asyncio
    async def test_last_day_failure_recovers_on_same_day(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 1)
        calls = []

        def flaky(p, t, d):
            calls.append(t.id)
            return TaskFailed("first try") if len(calls) == 1 else TaskCompleted("ok")

        first = await engine.execute_day(plan.id, task_executor=CallableExecutor(flaky))
        assert first.plan.status is PlanStatus.ACTIVE
        assert first.plan.current_day_index == 0
        assert first.plan.tasks[-1].title == "Recovery loop for day 1"
        assert first.plan.tasks[-1].day_index == 0
        assert len(calls) == 1

        second = await engine.execute_day(plan.id, task_executor=CallableExecutor(flaky))
        assert second.report.completed_tasks == 2
        assert second.plan.status is PlanStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_day_index_argument_is_clamped(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 5)
        result = await engine.execute_day(plan.id, day_index=99)
        assert result.day_index == 4
        assert result.plan.tasks[4].status is TaskStatus.COMPLETED
        assert result.plan.current_day_index == 0

    @pytest.mark.asyncio
    async def test_executor_sees_running_snapshot(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        seen = []

        def capture(p, t, d):
            seen.append((p, t, d))
            return TaskCompleted()

        await engine.execute_day(plan.id, task_executor=CallableExecutor(capture))

        (snapshot, task, day), = seen
        assert isinstance(snapshot, AutonomousPlan)
        assert day == 0
        assert task.status is TaskStatus.RUNNING
        assert snapshot.tasks[0].status is TaskStatus.RUNNING

    @pytest.mark.asyncio
    async def test_snapshots_are_isolated(self, engine):
        created = engine.create_plan("user-1", "ws-1", "goal", 2)
        await engine.execute_day(created.id)

        assert created.status is PlanStatus.ACTIVE
        assert created.tasks[0].status is TaskStatus.PENDING
        assert created.reports == ()
        with pytest.raises(dataclasses.FrozenInstanceError):
            created.status = PlanStatus.HALTED  # type: ignore[misc]

    @pytest.mark.asyncio
    async def test_usage_is_monotonic(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 4)
        refunds = CallableExecutor(
            lambda p, t, d: TaskCompleted(usage=AutonomyUsage(tokens_used=-1000, api_calls=1))
        )
        executors = [None, refunds, fail_on_day(2), refunds]

        previous = AutonomyUsage()
        for executor in executors:
            result = await engine.execute_day(plan.id, task_executor=executor)
            usage = result.plan.usage
            assert usage.tokens_used >= previous.tokens_used
            assert usage.api_calls >= previous.api_calls
            assert usage.connector_actions >= previous.connector_actions
            assert usage.runtime_minutes >= previous.runtime_minutes
            previous = usage

    @pytest.mark.asyncio
    async def test_threshold_pauses_plan(self, engine, small_policy):
        plan = engine.create_plan(
            "user-1",
            "ws-1",
            "goal",
            2,
            seed_tasks_by_day=[[SeedTask("big batch", estimated_tokens=900)]],
            policy=small_policy,
        )
        result = await engine.execute_day(plan.id)

        assert result.plan.status is PlanStatus.PAUSED
        assert result.report.blocked_tasks == 1
        task = result.plan.tasks[0]
        assert task.status is TaskStatus.APPROVAL_REQUIRED
        assert task.notes == "Plan crossed 80% of resource budget."
        (escalation,) = pending_escalations(engine, plan.id)
        assert escalation.type is EscalationType.BUDGET
        assert escalation.action_id == task.id

    @pytest.mark.asyncio
    async def test_plan_serializes_to_json(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        result = await engine.execute_day(plan.id, task_executor=fail_on_day(0))

        payload = json.loads(json.dumps(result.plan.to_dict()))
        assert payload["status"] == "active"
        assert payload["reports"][0]["failed_tasks"] == 1
        assert payload["tasks"][0]["status"] == "failed"
        assert payload["created_at"] == "2026-03-02T09:00:00+00:00"


# =============================================================================
# Irreversible Tasks
# =============================================================================


class TestIrreversibleTasks:
    """Irreversible work waits for a reviewer."""

    @pytest.fixture
    def irreversible_plan(self, engine):
        return engine.create_plan(
            "user-1",
            "ws-1",
            "rotate keys",
            1,
            seed_tasks_by_day=[[SeedTask("Rotate production keys", is_irreversible=True)]],
        )

    @pytest.mark.asyncio
    async def test_pause_approve_complete(self, engine, irreversible_plan):
        first = await engine.execute_day(irreversible_plan.id)

        assert first.plan.status is PlanStatus.PAUSED
        assert first.report.blocked_tasks == 1
        assert first.report.summary == "Execution paused for guardrail review."
        assert first.plan.history[-2] == (
            "Execution paused at day 1: Irreversible action requires explicit user approval."
        )

        (escalation,) = pending_escalations(engine, irreversible_plan.id)
        engine.guardrails.resolve_escalation(escalation.id, "approve", "user-1")

        second = await engine.execute_day(irreversible_plan.id)
        assert second.plan.tasks[0].status is TaskStatus.COMPLETED
        assert second.plan.status is PlanStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_day_stops_at_first_denial(self, engine):
        plan = engine.create_plan(
            "user-1",
            "ws-1",
            "goal",
            1,
            seed_tasks_by_day=[
                [SeedTask("a"), SeedTask("b", is_irreversible=True), SeedTask("c")]
            ],
        )
        result = await engine.execute_day(plan.id)

        assert [t.status for t in result.plan.tasks] == [
            TaskStatus.COMPLETED,
            TaskStatus.APPROVAL_REQUIRED,
            TaskStatus.PENDING,
        ]
        assert (result.report.completed_tasks, result.report.blocked_tasks) == (1, 1)
        assert result.report.next_steps == ("c",)

    @pytest.mark.asyncio
    async def test_resume_waits_for_review(self, engine, irreversible_plan):
        await engine.execute_day(irreversible_plan.id)

        still_paused = engine.resume_plan(irreversible_plan.id)
        assert still_paused.status is PlanStatus.PAUSED
        assert "Plan resumed." not in still_paused.history

        (escalation,) = pending_escalations(engine, irreversible_plan.id)
        engine.guardrails.resolve_escalation(escalation.id, "approve", "user-1")

        resumed = engine.resume_plan(irreversible_plan.id)
        assert resumed.status is PlanStatus.ACTIVE
        assert resumed.history[-1] == "Plan resumed."

    @pytest.mark.asyncio
    async def test_reject_then_skip(self, engine, irreversible_plan):
        first = await engine.execute_day(irreversible_plan.id)
        (escalation,) = pending_escalations(engine, irreversible_plan.id)
        engine.guardrails.resolve_escalation(escalation.id, "reject", "user-1")

        skipped = engine.skip_task(irreversible_plan.id, first.plan.tasks[0].id, "not today")
        assert skipped.tasks[0].status is TaskStatus.SKIPPED
        assert skipped.tasks[0].notes == "not today"

        second = await engine.execute_day(irreversible_plan.id)
        assert second.report.completed_tasks == 1
        assert second.plan.status is PlanStatus.COMPLETED


# =============================================================================
# Operator Controls
# =============================================================================


class TestOperatorControls:
    """Kill switch, halt, resume and skip."""

    @pytest.mark.asyncio
    async def test_kill_switch_halts_without_running_tasks(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 3)
        engine.guardrails.activate_kill_switch("incident")

        result = await engine.execute_day(plan.id)

        assert result.plan.status is PlanStatus.HALTED
        assert result.report.summary == "Execution blocked by kill switch."
        assert (result.report.completed_tasks, result.report.failed_tasks) == (0, 0)
        assert all(t.status is TaskStatus.PENDING for t in result.plan.tasks)
        assert result.plan.history[-1] == "Kill switch active. Execution halted."
        assert result.plan.usage == AutonomyUsage()

    @pytest.mark.asyncio
    async def test_halted_by_kill_switch_is_terminal(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 3)
        engine.guardrails.activate_kill_switch("incident")
        await engine.execute_day(plan.id)
        engine.guardrails.clear_kill_switch()

        with pytest.raises(DaybreakError) as exc_info:
            await engine.execute_day(plan.id)
        assert exc_info.value.code == ErrorCode.PLAN_TERMINAL
        assert exc_info.value.message == (
            f"Plan {plan.id} is halted and cannot execute additional days."
        )

    @pytest.mark.asyncio
    async def test_completed_plan_rejects_execution(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 1)
        await engine.execute_day(plan.id)

        with pytest.raises(DaybreakError) as exc_info:
            await engine.execute_day(plan.id)
        assert exc_info.value.code == ErrorCode.PLAN_TERMINAL

    @pytest.mark.asyncio
    async def test_resume_rejects_terminal_plans(self, engine):
        """Resuming never revives a halted or completed plan."""
        halted = engine.create_plan("user-1", "ws-1", "goal", 2)
        engine.halt_plan(halted.id)

        with pytest.raises(DaybreakError) as exc_info:
            engine.resume_plan(halted.id)
        assert exc_info.value.code == ErrorCode.PLAN_TERMINAL

        after = engine.get_plan(halted.id)
        assert after.status is PlanStatus.HALTED
        assert "Plan resumed." not in after.history
        with pytest.raises(DaybreakError):
            await engine.execute_day(halted.id)
        assert all(t.status is TaskStatus.PENDING for t in engine.get_plan(halted.id).tasks)

        completed = engine.create_plan("user-1", "ws-1", "goal", 1)
        await engine.execute_day(completed.id)
        with pytest.raises(DaybreakError) as exc_info:
            engine.resume_plan(completed.id)
        assert exc_info.value.code == ErrorCode.PLAN_TERMINAL

    def test_resume_rejected_while_kill_switch_active(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 1)
        engine.guardrails.activate_kill_switch("incident")

        with pytest.raises(DaybreakError) as exc_info:
            engine.resume_plan(plan.id)
        assert exc_info.value.code == ErrorCode.KILL_SWITCH_ACTIVE

    @pytest.mark.asyncio
    async def test_halt_plan(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)

        halted = engine.halt_plan(plan.id)
        assert halted.status is PlanStatus.HALTED
        assert halted.history[-1] == "Plan halted: manual halt"
        assert engine.halt_plan(plan.id, "budget review").history[-1] == (
            "Plan halted: budget review"
        )

        with pytest.raises(DaybreakError):
            await engine.execute_day(plan.id)

    @pytest.mark.asyncio
    async def test_skip_rejects_finished_and_unknown_tasks(self, engine):
        plan = engine.create_plan("user-1", "ws-1", "goal", 2)
        result = await engine.execute_day(plan.id)

        with pytest.raises(DaybreakError) as exc_info:
            engine.skip_task(plan.id, result.plan.tasks[0].id)
        assert exc_info.value.code == ErrorCode.TASK_NOT_SKIPPABLE

        with pytest.raises(DaybreakError) as exc_info:
            engine.skip_task(plan.id, "missing-task")
        assert exc_info.value.code == ErrorCode.TASK_NOT_FOUND

        engine.halt_plan(plan.id)
        with pytest.raises(DaybreakError) as exc_info:
            engine.skip_task(plan.id, result.plan.tasks[1].id)
        assert exc_info.value.code == ErrorCode.PLAN_TERMINAL

    @pytest.mark.asyncio
    async def test_unknown_plan(self, engine):
        with pytest.raises(DaybreakError) as exc_info:
            await engine.execute_day("missing")
        assert exc_info.value.code == ErrorCode.PLAN_NOT_FOUND

        for call in (engine.resume_plan, engine.halt_plan):
            with pytest.raises(DaybreakError):
                call("missing")
