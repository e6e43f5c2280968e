"""
FILE: chyra/formatting.py
PURPOSE: Shared formatting utilities for CLI and REPL output
EXPORTS:
  - TaskFormatter: Class for formatting tasks, boards and calendars
  - format_position(position) -> str
DEPENDENCIES:
  - rich (tables, panels, columns)
  - json (for JSON serialization)
  - chyra.core.models (Task)
NOTES:
  - Centralized formatting logic for consistency
  - Used by both CLI and REPL
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

from rich.columns import Columns
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core.constants import STATUS_DONE, STATUS_TITLES, TASK_STATUSES
from .core.models import Task


STATUS_STYLES = {
    "BACKLOG": "dim",
    "TODO": "blue",
    "IN_PROGRESS": "yellow",
    "DONE": "green",
    "CANCELED": "red",
}

PRIORITY_STYLES = {
    "LOW": "dim",
    "MEDIUM": "white",
    "HIGH": "bright_magenta",
    "URGENT": "bold red",
}


def format_position(position: float) -> str:
    """Short display form: integers without decimals, others with up to 6."""
    if float(position).is_integer():
        return str(int(position))
    return f"{position:.6g}"


class TaskFormatter:
    """Centralized task display formatting."""

    @staticmethod
    def create_table(
        tasks: List[Task],
        title: str = "Tasks",
        show_position: bool = False,
    ) -> Table:
        """
        Create Rich table for tasks.

        Args:
            tasks: List of tasks to display
            title: Table title
            show_position: Whether to show the ordering position

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Content", style="white")
        table.add_column("Status", no_wrap=True)
        table.add_column("Priority", no_wrap=True)
        table.add_column("Due", style="dim", no_wrap=True)
        if show_position:
            table.add_column("Position", style="dim", justify="right")

        for task in tasks:
            status_style = STATUS_STYLES.get(task.status, "white")
            priority_style = PRIORITY_STYLES.get(task.priority, "white")
            row = [
                task.id,
                escape(task.content),
                f"[{status_style}]{task.status}[/{status_style}]",
                f"[{priority_style}]{task.priority}[/{priority_style}]",
                task.due_date or "-",
            ]
            if show_position:
                row.append(format_position(task.position))
            table.add_row(*row)

        return table

    @staticmethod
    def create_board(columns: Dict[str, List[Task]], show_position: bool = False) -> Columns:
        """
        Render a board: one panel per status column, cards in order.
        """
        panels = []
        for status in TASK_STATUSES:
            tasks = columns.get(status, [])
            body = Text()
            if not tasks:
                body.append("(empty)", style="dim")
            for index, task in enumerate(tasks):
                if index:
                    body.append("\n")
                body.append(f"{task.id} ", style="cyan")
                body.append(task.content, style=PRIORITY_STYLES.get(task.priority, "white"))
                if show_position:
                    body.append(f" @{format_position(task.position)}", style="dim")
            style = STATUS_STYLES.get(status, "white")
            panels.append(
                Panel(
                    body,
                    title=f"[{style}]{STATUS_TITLES[status]}[/{style}] ({len(tasks)})",
                    width=32,
                )
            )
        return Columns(panels)

    @staticmethod
    def create_calendar(
        days: Dict[str, List[Task]],
        title: str = "Calendar",
        today: Optional[date] = None,
    ) -> Table:
        """
        Render tasks by due date, one row per task, the date shown once per day.

        Past dates with unfinished tasks are highlighted in red.
        """
        today_iso = (today or date.today()).isoformat()
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Due", no_wrap=True)
        table.add_column("Day", style="dim", no_wrap=True)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Content", style="white")
        table.add_column("Status", no_wrap=True)

        for day, tasks in days.items():
            weekday = date.fromisoformat(day).strftime("%a")
            overdue = day < today_iso and any(t.status != STATUS_DONE for t in tasks)
            day_style = "red" if overdue else ("bold" if day == today_iso else "white")
            for index, task in enumerate(tasks):
                status_style = STATUS_STYLES.get(task.status, "white")
                priority_style = PRIORITY_STYLES.get(task.priority, "white")
                table.add_row(
                    f"[{day_style}]{day}[/{day_style}]" if index == 0 else "",
                    weekday if index == 0 else "",
                    task.id,
                    f"[{priority_style}]{escape(task.content)}[/{priority_style}]",
                    f"[{status_style}]{task.status}[/{status_style}]",
                )

        return table

    @staticmethod
    def to_calendar_lines(days: Dict[str, List[Task]]) -> List[str]:
        """Plain lines: due date, id, status, content."""
        return [
            f"{day} {task.id} [{task.status}] {task.content}"
            for day, tasks in days.items()
            for task in tasks
        ]

    @staticmethod
    def create_detail(task: Task) -> Panel:
        """Full task details, description included."""
        details = Text()
        details.append(f"Task {task.id}\n", style="bold cyan")
        details.append(f"{task.content}\n\n", style="bold white")

        if task.description:
            details.append("Description:\n", style="dim")
            details.append(f"{task.description}\n\n", style="white")

        details.append("Status: ", style="dim")
        details.append(f"{task.status}\n", style=STATUS_STYLES.get(task.status, "white"))
        details.append("Priority: ", style="dim")
        details.append(f"{task.priority}\n", style=PRIORITY_STYLES.get(task.priority, "white"))
        details.append("Position: ", style="dim")
        details.append(f"{format_position(task.position)}\n")
        if task.assignee_id:
            details.append("Assignee: ", style="dim")
            details.append(f"{task.assignee_id}\n")
        if task.due_date:
            details.append("Due: ", style="dim")
            details.append(f"{task.due_date}\n")
        details.append("Created: ", style="dim")
        details.append(f"{task.created_at or '-'}\n")
        details.append("Updated: ", style="dim")
        details.append(f"{task.updated_at or '-'}")

        return Panel(details, border_style="cyan")

    @staticmethod
    def to_json_array(tasks: List[Task]) -> str:
        """Convert task list to JSON array string."""
        return json.dumps([TaskFormatter.to_json_dict(t) for t in tasks], indent=2)

    @staticmethod
    def to_json_dict(task: Task) -> Dict[str, Any]:
        return task.to_document()

    @staticmethod
    def to_raw_lines(tasks: List[Task]) -> List[str]:
        """
        Convert task list to plain text lines (id, status, position, content).
        """
        return [
            f"{task.id}: [{task.status}] {format_position(task.position)} {task.content}"
            for task in tasks
        ]
