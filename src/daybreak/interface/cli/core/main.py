"""Main CLI entry point.

    daybreak run plan.yaml         Drive a plan manifest day by day
    daybreak policy show           Show the effective guardrail policy
    daybreak policy init FILE      Write a policy file
"""

import sys

import click

from daybreak.foundation.errors import DaybreakError
from daybreak.foundation.logging import configure_logging
from daybreak.interface.cli.core.theme import create_daybreak_console

console = create_daybreak_console()


def cli_entrypoint() -> None:
    """Wrapped entrypoint with global error handling.

    Catches DaybreakError and displays it instead of a traceback.
    Called from pyproject.toml [project.scripts].
    """
    try:
        main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n  [dawn.muted]◌ Interrupted[/]")
        sys.exit(130)
    except DaybreakError as e:
        from daybreak.interface.cli.core.error_handler import handle_error

        handle_error(e, json_output="--json" in sys.argv)


@click.group()
@click.option("--debug", is_flag=True, help="Verbose logging, persisted under .daybreak/logs")
@click.version_option(package_name="daybreak", prog_name="daybreak")
def main(debug: bool) -> None:
    """☀ Daybreak - run multi-day autonomous plans under guardrails.

    \b
    EXAMPLES:
        daybreak run plan.yaml
        daybreak run plan.yaml --yes --fail "milestone 2"
        daybreak policy show
    """
    configure_logging(debug=debug, persist=debug)


from daybreak.interface.cli.commands import policy_cmd, run_cmd  # noqa: E402

main.add_command(run_cmd.run)
main.add_command(policy_cmd.policy)
