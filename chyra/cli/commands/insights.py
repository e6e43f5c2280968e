"""
FILE: chyra/cli/commands/insights.py
PURPOSE: Analytics and AI commands (stats, ask)
"""

import json

import typer
from rich.table import Table

from ..main import app, console, current_user, error_console, print_plain
from ...core import service
from ...core.constants import STATUS_TITLES
from ...core.exceptions import ChyraError


@app.command()
def stats(
    target_id: str = typer.Argument(..., help="Project ID (or workspace ID with --workspace)"),
    workspace: bool = typer.Option(False, "--workspace", "-w", help="Summarize a whole workspace"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Task counts by status, priority and assignee, plus overdue tasks.

    Example:
        chyra stats 9b1c2d3e4f5a
        chyra stats 3f2a9c1b7d4e --workspace --json
    """
    user_id = current_user()
    try:
        if workspace:
            summary = service.workspace_analytics(user_id, target_id)
        else:
            summary = service.project_analytics(user_id, target_id)
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print_plain(json.dumps(summary, indent=2))
        return

    table = Table(title="Tasks by status")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")
    for status, count in summary["tasks_by_status"].items():
        table.add_row(STATUS_TITLES.get(status, status), str(count))
    console.print(table)

    table = Table(title="Tasks by priority")
    table.add_column("Priority", style="magenta")
    table.add_column("Count", justify="right")
    for priority, count in summary["tasks_by_priority"].items():
        table.add_row(priority, str(count))
    console.print(table)

    if summary["tasks_by_assignee"]:
        table = Table(title="Tasks by assignee")
        table.add_column("Assignee", style="white")
        table.add_column("Count", justify="right")
        for row in summary["tasks_by_assignee"]:
            table.add_row(row["assignee_id"], str(row["count"]))
        console.print(table)

    overdue = summary["overdue_tasks"]
    style = "red" if overdue else "dim"
    console.print(
        f"\n[dim]Total: {summary['total_tasks']} task(s)[/dim]  "
        f"[{style}]Overdue: {overdue}[/{style}]"
    )


@app.command()
def ask(
    project_id: str = typer.Argument(..., help="Project ID"),
    question: str = typer.Argument(..., help="Question about the project"),
):
    """
    Ask the AI assistant about a project's tasks.

    Example:
        chyra ask 9b1c2d3e4f5a "What should we tackle next?"
    """
    user_id = current_user()
    try:
        console.print("[dim]Thinking...[/dim]")
        answer = service.ask_project_oracle(user_id, project_id, question)
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if answer is None:
        error_console.print(
            "[yellow]Warning:[/yellow] No answer available. "
            "Make sure the AI command is installed and in your PATH."
        )
        raise typer.Exit(1)

    print_plain(answer)
