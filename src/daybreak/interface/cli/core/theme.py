"""Daybreak CLI theme.

Dawn palette: warm tones for progress and success, cool tones for anything
waiting on a human, red for stops.
"""

from rich.console import Console
from rich.theme import Theme

DAYBREAK_THEME = Theme({
    "dawn.accent": "bold yellow",        # Headings, plan ids
    "dawn.success": "bold green",        # Completed work
    "dawn.muted": "dim",                 # Hints, secondary text
    "dusk.review": "bold cyan",          # Awaiting approval
    "dusk.warning": "yellow",            # Failures, adaptations
    "dusk.stop": "bold red",             # Halted, kill switch
})

# Plan/task status -> style
STATUS_STYLES = {
    "active": "dawn.accent",
    "completed": "dawn.success",
    "paused": "dusk.review",
    "approval_required": "dusk.review",
    "failed": "dusk.warning",
    "halted": "dusk.stop",
    "skipped": "dawn.muted",
    "pending": "dawn.muted",
    "running": "dawn.accent",
}

# Escalation type -> style
ESCALATION_STYLES = {
    "irreversible": "dusk.review",
    "budget": "dusk.warning",
    "timebox": "dusk.warning",
    "kill_switch": "dusk.stop",
}


def create_daybreak_console(stderr: bool = False) -> Console:
    """Create a Rich console with the Daybreak theme."""
    return Console(theme=DAYBREAK_THEME, stderr=stderr)


def styled_status(status: str) -> str:
    """Wrap a status value in its theme markup."""
    style = STATUS_STYLES.get(status, "dawn.muted")
    return f"[{style}]{status}[/]"
