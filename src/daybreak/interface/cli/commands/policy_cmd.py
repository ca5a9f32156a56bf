"""CLI commands for guardrail policies.

Provides:
- daybreak policy show: Show the policy new plans get in this project
- daybreak policy init: Write a policy file to edit
"""

import json
from pathlib import Path

import click
from rich.table import Table

from daybreak.foundation.config import get_config
from daybreak.interface.cli.core.theme import create_daybreak_console
from daybreak.quality.guardrails import (
    GuardrailPolicy,
    load_policy,
    policy_from_defaults,
    save_policy,
)

console = create_daybreak_console()


def resolve_project_policy(root: Path | None = None) -> tuple[GuardrailPolicy, str]:
    """Project policy if one is defined, else the config fallback, with its source."""
    policy = load_policy(root)
    if policy is not None:
        return policy, "project"
    return policy_from_defaults(get_config().policy), "defaults"


@click.group()
def policy() -> None:
    """Guardrail policies - budgets and escalation thresholds.

    Policies come from ``[tool.daybreak.guardrails]`` in pyproject.toml or
    the ``guardrails:`` section of daybreak.yaml, falling back to the
    configured defaults.

    Examples:

        daybreak policy show              # Show the effective policy
        daybreak policy init daybreak.yaml
    """


@policy.command()
@click.option("--json", "json_output", is_flag=True, help="Machine-readable output")
def show(json_output: bool) -> None:
    """Show the effective guardrail policy."""
    resolved, source = resolve_project_policy()

    if json_output:
        click.echo(json.dumps({"source": source, **resolved.to_dict()}, indent=2))
        return

    budget = resolved.resource_budget
    console.print(f"\n[dawn.accent]Guardrail Policy[/] [dawn.muted]({source})[/]\n")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Limit", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Escalation threshold", f"{resolved.escalation_threshold_pct:.0%}")
    table.add_row("Max tokens", f"{budget.max_tokens:,}")
    table.add_row("Max API calls", str(budget.max_api_calls))
    table.add_row("Max connector actions", str(budget.max_connector_actions))
    table.add_row("Max runtime", f"{budget.max_runtime_hours}h")
    console.print(table)


@policy.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: Path, force: bool) -> None:
    """Write the effective policy to PATH as YAML."""
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")

    resolved, _ = resolve_project_policy()
    save_policy(resolved, path)
    console.print(f"[dawn.success]✓[/] Wrote guardrail policy to {path}")
