"""CLI helpers."""

from daybreak.interface.cli.helpers.escalation import CLIEscalationUI

__all__ = ["CLIEscalationUI"]
