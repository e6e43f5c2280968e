"""
FILE: chyra/cli/commands/system.py
PURPOSE: System commands (version, help, repl)
"""

import typer

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import __version__, app, console, current_user, error_console


@app.command()
def version():
    """Show Chyra version."""
    console.print(f"Chyra v{__version__}")


@app.command()
def help():
    """Show available commands and usage."""
    console.print("\n[bold cyan]Chyra[/bold cyan] - Workspaces, projects and kanban boards\n")
    console.print(f"[dim]Version {__version__}[/dim]\n")

    console.print("[bold]Usage:[/bold]")
    console.print("  chyra --user ID [command] [options]")
    console.print("  CHYRA_USER=ID chyra [command] [options]\n")

    console.print("[bold]Commands:[/bold]")

    commands = [
        ("workspace add", "Create a workspace", 'chyra workspace add "Acme"'),
        ("workspace ls", "List your workspaces", "chyra workspace ls"),
        ("workspace join", "Join with an invite code", "chyra workspace join <ws_id> <code>"),
        ("workspace invite", "New invite code (admin)", "chyra workspace invite <ws_id>"),
        ("workspace members", "List members", "chyra workspace members <ws_id>"),
        ("workspace role", "Change a role (admin)", "chyra workspace role <ws_id> <member_id> ADMIN"),
        ("workspace kick", "Remove a member (admin)", "chyra workspace kick <ws_id> <member_id>"),
        ("project add", "Create a project", 'chyra project add <ws_id> "Website"'),
        ("project ls", "List projects", "chyra project ls <ws_id>"),
        ("project edit", "Edit a project (admin)", 'chyra project edit <project_id> --name "Site"'),
        ("project rm", "Delete a project (admin)", "chyra project rm <project_id>"),
        ("add", "Create a task", 'chyra add <project_id> "Task" [--ai]'),
        ("ls", "List tasks in board order", "chyra ls <project_id> [--status TODO]"),
        ("show", "View full task details", "chyra show <task_id>"),
        ("edit", "Update task fields", "chyra edit <task_id> --priority HIGH"),
        ("rm", "Delete a task", "chyra rm <task_id>"),
        ("mv", "Move a task to a slot", "chyra mv <task_id> DONE [--after ID] [--before ID]"),
        ("rebalance", "Renumber a column", "chyra rebalance <project_id> TODO"),
        ("board", "Show the kanban board", "chyra board <project_id>"),
        ("calendar", "Tasks by due date", "chyra calendar <project_id> [--month YYYY-MM]"),
        ("stats", "Task analytics", "chyra stats <project_id> [--workspace]"),
        ("ask", "Ask AI about a project", 'chyra ask <project_id> "What is blocked?"'),
        ("repl", "Interactive board session", "chyra repl <project_id>"),
        ("version", "Show version", "chyra version"),
        ("help", "Show this help message", "chyra help"),
    ]

    for cmd, desc, example in commands:
        console.print(f"  [green]{cmd:18}[/green] {desc}")
        console.print(f"  {'':18} [dim]{example}[/dim]\n")

    console.print("[bold]Global Options:[/bold]")
    console.print("  [yellow]--user[/yellow]    Acting user ID (or CHYRA_USER)")
    console.print("  [yellow]--verbose[/yellow] Debug logging to stderr")
    console.print("  [yellow]--json[/yellow]    Output as JSON (for scripting)")
    console.print("  [yellow]--raw[/yellow]     Plain text output (no colors)")
    console.print("  [yellow]--help[/yellow]    Show detailed help for a command\n")


@app.command()
def repl(
    project_id: str = typer.Argument(..., help="Project whose board to open"),
):
    """
    Launch an interactive board session for a project.

    The REPL provides:
    - Command history (up/down arrows)
    - Autocomplete (Tab key)
    - Board redraws after every move
    - Exit with Ctrl+D or type 'exit'

    Example:
        chyra repl 9b1c2d3e4f5a
    """
    user_id = current_user()

    # Import here to avoid loading REPL dependencies for one-shot commands
    from ...repl import main as repl_main

    try:
        repl_main(user_id, project_id)
    except Exception as e:
        error_console.print(f"[red]Error starting REPL:[/red] {e}")
        raise typer.Exit(1)
