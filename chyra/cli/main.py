"""
FILE: chyra/cli/main.py
PURPOSE: Typer-based CLI for one-shot workspace, project and task commands
EXPORTS:
  - app (Typer application)
  - workspace_app / project_app (sub-command groups)
  - console / error_console (rich consoles)
  - current_user() -> str
  - print_plain(text) -> None
  - main() (entry point)
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - loguru (log sink configuration)
  - chyra.cli.commands (command registration)
NOTES:
  - Acting user comes from --user or CHYRA_USER; it is trusted as-is
  - --verbose turns on debug logging (stderr); default level is WARNING
  - All data commands support --json and --raw flags
  - Error messages go to stderr; exit codes: 0=success, 1=error
"""

import sys

import typer
from loguru import logger
from rich.console import Console

from .. import __version__

# Typer app setup
app = typer.Typer(
    name="chyra",
    help="Workspaces, projects and kanban boards from the terminal",
    add_completion=False,
    no_args_is_help=True,
)

# Sub-command groups
workspace_app = typer.Typer(name="workspace", help="Workspace management commands")
project_app = typer.Typer(name="project", help="Project management commands")
app.add_typer(workspace_app, name="workspace")
app.add_typer(project_app, name="project")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Global options captured by the callback
state = {"user": None}


def configure_logging(verbose: bool = False) -> None:
    """Send loguru output to stderr at DEBUG (verbose) or WARNING."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
def global_options(
    user: str = typer.Option(
        None, "--user", "-u", envvar="CHYRA_USER", help="Acting user ID"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Chyra - workspaces, projects and kanban boards.
    """
    state["user"] = user.strip() if user else None
    configure_logging(verbose)


def current_user() -> str:
    """The acting user; exits with an error when none is configured."""
    user = state.get("user")
    if not user:
        error_console.print("[red]Error:[/red] No user set. Pass --user or set CHYRA_USER")
        raise typer.Exit(1)
    return user


def print_plain(text: str) -> None:
    """Print without markup, highlighting or wrapping (JSON and --raw output)."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
from .commands import insights, projects, system, tasks, workspaces  # noqa: E402,F401


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
