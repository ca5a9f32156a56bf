"""Daybreak CLI.

Entry point: ``daybreak`` -> ``daybreak.interface.cli.core.main:cli_entrypoint``.
"""

from daybreak.interface.cli.core.main import cli_entrypoint, main

__all__ = ["cli_entrypoint", "main"]
