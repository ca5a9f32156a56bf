"""Run a plan manifest day by day.

Creates the plan, executes one day per iteration with the auto-complete
executor and walks the operator through every escalation that pauses it.
``--fail`` makes matching tasks fail so the recovery loop can be rehearsed.
"""

import json
from pathlib import Path

import click
from rich.panel import Panel
from rich.table import Table

from daybreak.foundation.config import get_config
from daybreak.interface.cli.core.async_runner import async_command
from daybreak.interface.cli.core.theme import create_daybreak_console, styled_status
from daybreak.interface.cli.helpers.escalation import CLIEscalationUI
from daybreak.planning import (
    AutonomousPlan,
    AutonomousTask,
    CallableExecutor,
    ExecuteDayResult,
    PlanEngine,
    PlanStatus,
    TaskCompleted,
    TaskFailed,
    TaskOutcome,
    TaskStatus,
    load_manifest,
)
from daybreak.quality.guardrails import AutonomyGuardrails, EscalationStatus, load_policy

console = create_daybreak_console()

_FINISHED = (PlanStatus.COMPLETED, PlanStatus.FAILED, PlanStatus.HALTED)


def rehearsal_executor(fail_patterns: tuple[str, ...]) -> CallableExecutor:
    """Auto-complete executor that fails tasks whose title contains a pattern."""
    patterns = tuple(p.lower() for p in fail_patterns)

    def run(plan: AutonomousPlan, task: AutonomousTask, day_index: int) -> TaskOutcome:
        if any(p in task.title.lower() for p in patterns):
            return TaskFailed(summary=f"Rehearsed failure for {task.title}")
        return TaskCompleted(summary=f"Auto-executed {task.title}", usage=task.estimated_usage)

    return CallableExecutor(run)


@click.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--fail", "fail_patterns", multiple=True, metavar="TEXT",
              help="Fail tasks whose title contains TEXT (repeatable)")
@click.option("--yes", "-y", "auto_approve", is_flag=True,
              help="Approve every escalation without prompting")
@click.option("--json", "json_output", is_flag=True, help="Print the final plan as JSON")
@click.option("--max-runs", default=50, show_default=True, type=click.IntRange(min=1),
              help="Stop after this many execute-day calls")
@async_command
async def run(
    manifest: Path,
    fail_patterns: tuple[str, ...],
    auto_approve: bool,
    json_output: bool,
    max_runs: int,
) -> None:
    """Create the plan in MANIFEST and drive it to completion.

    \b
    Examples:
        daybreak run plan.yaml
        daybreak run plan.yaml --yes --json
        daybreak run plan.yaml --fail "milestone 2"
    """
    loaded = load_manifest(manifest)
    guardrails = AutonomyGuardrails()
    engine = PlanEngine(
        guardrails,
        config=get_config(),
        executor=rehearsal_executor(fail_patterns),
    )
    ui = CLIEscalationUI(console)

    plan = engine.create_plan(
        loaded.user_id,
        loaded.workspace_id,
        loaded.goal,
        loaded.duration_days,
        seed_tasks_by_day=loaded.seed_tasks_by_day,
        policy=loaded.policy or load_policy(manifest.parent),
    )
    if not json_output:
        console.print(
            f"\n[dawn.accent]☀ {plan.goal}[/] [dawn.muted]{plan.id} · "
            f"{plan.duration_days} day(s) · {len(plan.tasks)} task(s)[/]"
        )

    runs = 0
    while plan.status not in _FINISHED and runs < max_runs:
        runs += 1
        result = await engine.execute_day(plan.id)
        plan = result.plan
        if not json_output:
            _print_day(result)

        if plan.status is not PlanStatus.PAUSED:
            continue

        pending = guardrails.list_escalations(plan.id, EscalationStatus.PENDING)
        for escalation in reversed(pending):
            if auto_approve:
                choice = "approve"
            else:
                await ui.show_escalation(escalation)
                choice = await ui.await_decision(escalation)

            if choice == "quit":
                plan = engine.halt_plan(plan.id, "operator quit during review")
                break

            guardrails.resolve_escalation(escalation.id, choice, loaded.user_id)
            if choice == "reject" and _is_skippable(plan, escalation.action_id):
                plan = engine.skip_task(plan.id, escalation.action_id, "Rejected during review.")

        if plan.status is not PlanStatus.HALTED:
            plan = engine.resume_plan(plan.id)

    if json_output:
        payload = {
            "plan": plan.to_dict(),
            "escalations": [e.to_dict() for e in guardrails.list_escalations(plan.id)],
            "runs": runs,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    _print_summary(plan, runs, max_runs)


def _is_skippable(plan: AutonomousPlan, task_id: str) -> bool:
    return any(
        task.id == task_id and task.status in (TaskStatus.PENDING, TaskStatus.APPROVAL_REQUIRED)
        for task in plan.tasks
    )


def _print_day(result: ExecuteDayResult) -> None:
    report = result.report
    lines = [report.summary]
    lines.extend(f"[dusk.warning]↻ {note}[/]" for note in report.adaptations)
    if report.next_steps:
        lines.append("[dawn.muted]Next: " + "; ".join(report.next_steps) + "[/]")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"Day {result.day_index + 1}",
            subtitle=styled_status(result.plan.status.value),
            border_style="dawn.muted",
        )
    )


def _print_summary(plan: AutonomousPlan, runs: int, max_runs: int) -> None:
    table = Table(title=f"{plan.goal} ({plan.status.value})")
    table.add_column("Day", justify="right")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Notes", style="dim")
    for task in plan.tasks:
        table.add_row(
            str(task.day_index + 1),
            task.title,
            styled_status(task.status.value),
            task.notes or "",
        )
    console.print(table)

    usage = plan.usage
    console.print(
        f"{plan.progress_summary()} · {usage.tokens_used:,} tokens · "
        f"{usage.api_calls} API calls · {usage.connector_actions} connector actions"
    )
    if plan.status not in _FINISHED and runs >= max_runs:
        console.print(f"[dusk.warning]Stopped after {runs} run(s); plan is still {plan.status.value}.[/]")
