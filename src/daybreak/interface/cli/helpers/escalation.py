"""CLI Escalation UI.

Interactive review of pending guardrail escalations in the terminal.
"""

from dataclasses import dataclass
from typing import Literal

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from daybreak.interface.cli.core.theme import ESCALATION_STYLES
from daybreak.quality.guardrails import Escalation, format_escalation

ReviewChoice = Literal["approve", "reject", "quit"]


@dataclass(slots=True)
class CLIEscalationUI:
    """Prompts an operator to approve or reject escalations.

    Example:
        >>> ui = CLIEscalationUI(console)
        >>> await ui.show_escalation(escalation)
        >>> choice = await ui.await_decision(escalation)
    """

    console: Console
    """Rich console for output."""

    async def show_escalation(self, escalation: Escalation) -> None:
        """Show an escalation panel styled by its type."""
        style = ESCALATION_STYLES.get(escalation.type.value, "white")

        self.console.print()
        self.console.print(
            Panel(
                escalation.reason,
                title=f"[{style}]Requires Approval: {escalation.type.value}[/]",
                subtitle=escalation.id,
                border_style=style,
            )
        )

    async def await_decision(self, escalation: Escalation) -> ReviewChoice:
        """Ask the operator what to do with an escalation.

        Returns:
            ``approve``, ``reject`` (skip the blocked task) or ``quit``
            (halt the plan)
        """
        self.console.print("[bold]Options:[/] [a]pprove  [r]eject  [v]iew-details  [q]uit")

        while True:
            choice = Prompt.ask(
                "Choice",
                choices=["a", "r", "v", "q"],
                default="r",
                console=self.console,
            )

            match choice:
                case "a":
                    return "approve"
                case "r":
                    return "reject"
                case "v":
                    self._show_details(escalation)
                case "q":
                    return "quit"

    def _show_details(self, escalation: Escalation) -> None:
        self.console.print()
        self.console.print(Panel(Markdown(format_escalation(escalation)), title="Escalation Details"))

        table = Table(title="Available Actions")
        table.add_column("Key", style="bold")
        table.add_column("Action")
        table.add_column("Description")

        table.add_row("a", "Approve", "Let the blocked task run")
        table.add_row("r", "Reject", "Skip the blocked task, continue the plan")
        table.add_row("q", "Quit", "Halt the plan")

        self.console.print(table)
        self.console.print()
