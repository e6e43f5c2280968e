"""
FILE: chyra/cli/commands/tasks.py
PURPOSE: Task commands (add, ls, show, edit, rm, mv, rebalance, calendar, board)
"""

import json
from typing import Optional

import typer
from rich.markup import escape

from ..main import app, console, current_user, error_console, print_plain
from ...core import service
from ...core.board import fill_neighbors
from ...core.exceptions import (
    ChyraError,
    InvalidInputError,
    NotAuthorizedError,
    ProjectNotFoundError,
    RebalanceError,
    TaskNotFoundError,
)
from ...formatting import TaskFormatter, format_position


@app.command()
def add(
    project_id: str = typer.Argument(..., help="Project ID"),
    content: str = typer.Argument(..., help="Task content"),
    status: str = typer.Option("TODO", "--status", "-s", help="Status column"),
    priority: str = typer.Option("MEDIUM", "--priority", "-p", help="LOW, MEDIUM, HIGH or URGENT"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Task description"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Assignee user ID"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    ai: bool = typer.Option(False, "--ai", help="Draft the description with AI"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a task at the end of its status column.

    Example:
        chyra add 9b1c2d3e4f5a "Write documentation"
        chyra add 9b1c2d3e4f5a "Fix login" --status IN_PROGRESS --priority HIGH
        chyra add 9b1c2d3e4f5a "Set up CI" --ai
    """
    user_id = current_user()
    try:
        if ai and not description:
            if not raw and not json_output:
                console.print("[dim]Drafting description with AI...[/dim]")
            project = service.get_project(user_id, project_id)
            description = service.generate_task_description(user_id, project.workspace_id, content)
            if description is None and not raw and not json_output:
                error_console.print(
                    "[yellow]Warning:[/yellow] Could not generate a description. "
                    "Make sure the AI command is installed and in your PATH."
                )

        task = service.create_task(
            user_id,
            project_id,
            content,
            status=status,
            priority=priority,
            description=description,
            assignee_id=assignee,
            due_date=due,
        )

        if json_output:
            print_plain(task.to_json())
        elif raw:
            print_plain(f"{task.id}: {task.content}")
        else:
            console.print(
                f"[green]✓ Created task [bold]{task.id}[/bold]:[/green] {escape(task.content)} "
                f"[dim]({task.status} @ {format_position(task.position)})[/dim]"
            )

    except (InvalidInputError, ProjectNotFoundError, NotAuthorizedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def ls(
    project_id: str = typer.Argument(..., help="Project ID"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Only this status column"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List a project's tasks in board order.

    Example:
        chyra ls 9b1c2d3e4f5a
        chyra ls 9b1c2d3e4f5a --status TODO --json
    """
    user_id = current_user()
    try:
        tasks = service.list_tasks(user_id, project_id, status)

        if json_output:
            print_plain(TaskFormatter.to_json_array(tasks))
        elif raw:
            for line in TaskFormatter.to_raw_lines(tasks):
                print_plain(line)
        else:
            if not tasks:
                console.print("[dim]No tasks found[/dim]")
                return
            console.print(TaskFormatter.create_table(tasks, show_position=True))
            console.print(f"\n[dim]Total: {len(tasks)} task(s)[/dim]")

    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    task_id: str = typer.Argument(..., help="Task ID to view"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show full details for a task including description.
    """
    user_id = current_user()
    try:
        task = service.get_task(user_id, task_id)
        if json_output:
            print_plain(task.to_json())
        else:
            console.print(TaskFormatter.create_detail(task))
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def edit(
    task_id: str = typer.Argument(..., help="Task ID to update"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New content"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description ('' clears)"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="New status (appends to that column)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="New priority"),
    assignee: Optional[str] = typer.Option(None, "--assignee", "-a", help="Assignee ('' clears)"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date YYYY-MM-DD ('' clears)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Update task fields.

    Example:
        chyra edit 1a2b3c4d5e6f --content "Write better docs" --priority HIGH
    """
    user_id = current_user()
    try:
        task = service.update_task(
            user_id,
            task_id,
            content=content,
            description=description,
            status=status,
            priority=priority,
            assignee_id=assignee,
            due_date=due,
        )
        if json_output:
            print_plain(task.to_json())
        else:
            console.print(f"[green]✓[/green] Updated task {task.id}: {escape(task.content)}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def rm(
    task_id: str = typer.Argument(..., help="Task ID to delete"),
):
    """Delete a task permanently."""
    user_id = current_user()
    try:
        service.delete_task(user_id, task_id)
        console.print(f"[red]✗[/red] Deleted task {task_id}")
    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def mv(
    task_id: str = typer.Argument(..., help="Task ID to move"),
    status: str = typer.Argument(..., help="Target status column (e.g. TODO, IN_PROGRESS)"),
    after: Optional[str] = typer.Option(None, "--after", help="Place right after this task"),
    before: Optional[str] = typer.Option(None, "--before", help="Place right before this task"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move a task to a slot in a status column.

    Without --after/--before the task goes to the end of the column. With
    only one of them the other neighbor is taken from the column.

    Example:
        chyra mv 1a2b3c4d5e6f IN_PROGRESS
        chyra mv 1a2b3c4d5e6f TODO --before 0a9b8c7d6e5f
        chyra mv 1a2b3c4d5e6f TODO --after 6f5e4d3c2b1a --before 0a9b8c7d6e5f
    """
    user_id = current_user()
    try:
        if after is None or before is None:
            task = service.get_task(user_id, task_id)
            column = service.list_partition(user_id, task.project_id, status)
            after, before = fill_neighbors(column, task_id, after, before)

        task = service.move_task(user_id, task_id, status, prev_task_id=after, next_task_id=before)

        if json_output:
            print_plain(task.to_json())
        elif raw:
            print_plain(f"{task.id} {task.status} {format_position(task.position)}")
        else:
            console.print(
                f"[blue]→[/blue] Moved task {task.id} to [cyan]{task.status}[/cyan] "
                f"[dim]@ {format_position(task.position)}[/dim]"
            )

    except RebalanceError as e:
        error_console.print(f"[red]Error:[/red] Move rejected, column could not be repaired: {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def rebalance(
    project_id: str = typer.Argument(..., help="Project ID"),
    status: str = typer.Argument(..., help="Status column to renumber"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Renumber a status column with evenly spaced positions, keeping its order.
    """
    user_id = current_user()
    try:
        tasks = service.rebalance_partition(user_id, project_id, status)
        if raw:
            for line in TaskFormatter.to_raw_lines(tasks):
                print_plain(line)
        else:
            console.print(f"[green]✓[/green] Rebalanced {len(tasks)} task(s)")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def calendar(
    project_id: str = typer.Argument(..., help="Project ID"),
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Only this month (YYYY-MM)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show a project's tasks by due date.

    Tasks without a due date are left out.

    Example:
        chyra calendar 9b1c2d3e4f5a
        chyra calendar 9b1c2d3e4f5a --month 2030-06 --json
    """
    user_id = current_user()
    try:
        days = service.task_calendar(user_id, project_id, month)

        if json_output:
            print_plain(json.dumps(
                {day: [TaskFormatter.to_json_dict(t) for t in tasks] for day, tasks in days.items()},
                indent=2,
            ))
        elif raw:
            for line in TaskFormatter.to_calendar_lines(days):
                print_plain(line)
        else:
            if not days:
                console.print("[dim]No tasks with a due date[/dim]")
                return
            console.print(TaskFormatter.create_calendar(days, title=f"Calendar {month or ''}".strip()))

    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def board(
    project_id: str = typer.Argument(..., help="Project ID"),
    positions: bool = typer.Option(False, "--positions", help="Show ordering positions"),
):
    """Show a project's kanban board."""
    user_id = current_user()
    try:
        columns = service.get_board(user_id, project_id)
        console.print(TaskFormatter.create_board(columns, show_position=positions))
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
