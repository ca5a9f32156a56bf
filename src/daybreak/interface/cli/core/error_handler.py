"""CLI Error Handler.

Renders DaybreakError for humans (rich, on stderr) or as JSON for scripts.
"""

import json
import sys
from typing import NoReturn

from rich.text import Text

from daybreak.foundation.errors import DaybreakError
from daybreak.interface.cli.core.theme import create_daybreak_console

_CATEGORY_ICONS = {
    "plan": "🗓",
    "task": "☐",
    "escalation": "⚑",
    "safety": "⛔",
    "config": "⚙",
}


def handle_error(error: DaybreakError, json_output: bool = False) -> NoReturn:
    """Print an error and exit with status 1.

    Args:
        error: The error to display
        json_output: Emit ``error.to_dict()`` as JSON on stderr instead

    Raises:
        SystemExit: Always exits with code 1
    """
    if json_output:
        error_dict = error.to_dict()
        if error.cause:
            error_dict["cause"] = str(error.cause)
        print(json.dumps(error_dict), file=sys.stderr)
        sys.exit(1)

    _print_human_error(error)
    sys.exit(1)


def _print_human_error(error: DaybreakError) -> None:
    console = create_daybreak_console(stderr=True)

    header = Text()
    header.append(f"{_CATEGORY_ICONS.get(error.category, '✗')} ", style="bold")
    header.append(error.error_id, style="bold red")
    header.append(f" {error.message}")
    console.print(header)

    if error.recovery_hints:
        console.print("\n[bold]What you can do:[/]")
        for i, hint in enumerate(error.recovery_hints, 1):
            console.print(f"  {i}. {hint}")
