"""
FILE: chyra/repl/main.py
PURPOSE: Interactive board REPL for one project, with optimistic moves
EXPORTS:
  - BoardSession (per-session state)
  - execute_command(session, result) -> bool
  - run_repl(user_id, project_id)
  - main(user_id, project_id) - Entry point for REPL mode
DEPENDENCIES:
  - prompt_toolkit (REPL interface, history, completion)
  - rich (board rendering)
  - chyra.core.service (business logic)
  - chyra.core.board (optimistic move mirror)
  - chyra.repl.parser / chyra.repl.completer
NOTES:
  - A move is applied to the local board first and drawn immediately,
    then sent to the service; the board is reloaded afterwards so the
    stored order always wins
  - A rejected move restores the board from the store
  - Ctrl+D or "exit"/"quit" to exit
"""

import sys
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core import service
from ..core.board import Columns, apply_optimistic_move, fill_neighbors, neighbors_for_drop
from ..core.constants import STATUS_TITLES
from ..core.exceptions import ChyraError
from ..core.models import Project
from ..formatting import TaskFormatter, format_position
from .completer import BoardCompleter
from .parser import ParseResult, parse_command


# Rich console for formatted output
console = Console()


@dataclass
class BoardSession:
    """
    State of one REPL session.

    Attributes:
        user_id: Acting user
        project: Project whose board is open
        columns: Last known board (authoritative or optimistic)
        show_positions: Whether board renders include positions
    """
    user_id: str
    project: Project
    columns: Columns = field(default_factory=dict)
    show_positions: bool = False

    @classmethod
    def open(cls, user_id: str, project_id: str) -> "BoardSession":
        session = cls(user_id=user_id, project=service.get_project(user_id, project_id))
        session.refresh()
        return session

    def refresh(self) -> None:
        """Reload the board from the store."""
        self.columns = service.get_board(self.user_id, self.project.id)

    def task_ids(self) -> List[str]:
        return [task.id for column in self.columns.values() for task in column]

    def order(self) -> dict:
        """Task IDs per column, for comparing two boards."""
        return {status: [t.id for t in tasks] for status, tasks in self.columns.items()}

    def get_prompt(self) -> str:
        return f"chyra:[{self.project.name}]> "


def render_board(session: BoardSession, note: Optional[str] = None) -> None:
    console.print(TaskFormatter.create_board(session.columns, show_position=session.show_positions))
    if note:
        console.print(f"[dim]{note}[/dim]")


# --- Command handlers ---


def handle_board(session: BoardSession, result: ParseResult) -> None:
    """board [--positions]"""
    if "positions" in result.flags:
        session.show_positions = not session.show_positions
    session.refresh()
    render_board(session)


def handle_ls(session: BoardSession, result: ParseResult) -> None:
    """ls [--status STATUS]"""
    tasks = service.list_tasks(session.user_id, session.project.id, result.flag_value("status"))
    if not tasks:
        console.print("[dim]No tasks found[/dim]")
        return
    console.print(TaskFormatter.create_table(tasks, show_position=True))


def handle_add(session: BoardSession, result: ParseResult) -> None:
    """add "content" [--status S] [--priority P] [--description D]"""
    if not result.args:
        console.print('[red]Error:[/red] Usage: add "task content" [--status TODO]')
        return
    task = service.create_task(
        session.user_id,
        session.project.id,
        " ".join(result.args),
        status=result.flag_value("status") or "TODO",
        priority=result.flag_value("priority") or "MEDIUM",
        description=result.flag_value("description"),
    )
    console.print(f"[green]✓[/green] Created task {task.id}: {escape(task.content)}")
    session.refresh()


def handle_mv(session: BoardSession, result: ParseResult) -> None:
    """
    mv ID STATUS [--on ID | --after ID | --before ID]

    --on drops onto a card (lands right after it); --after/--before name
    one side of the slot and the other is taken from the board. Without
    any of them the task goes to the end of the column.
    """
    if len(result.args) < 2:
        console.print("[red]Error:[/red] Usage: mv ID STATUS [--on ID] [--after ID] [--before ID]")
        return

    task_id = result.args[0]
    status = service.validate_status(result.args[1])

    if result.flag_value("on"):
        prev_id, next_id = neighbors_for_drop(
            session.columns, task_id, status, result.flag_value("on")
        )
    else:
        prev_id, next_id = fill_neighbors(
            session.columns.get(status, []),
            task_id,
            result.flag_value("after"),
            result.flag_value("before"),
        )

    session.columns = apply_optimistic_move(session.columns, task_id, status, prev_id, next_id)
    expected = session.order()
    render_board(session, note="saving...")

    try:
        moved = service.move_task(
            session.user_id, task_id, status, prev_task_id=prev_id, next_task_id=next_id
        )
    except ChyraError as e:
        console.print(f"[red]Move rejected:[/red] {e}")
        session.refresh()
        render_board(session, note="board restored")
        return

    session.refresh()
    if session.order() != expected:
        logger.debug("Board changed while moving {}, redrawing", task_id)
        render_board(session, note="board updated from store")
    console.print(
        f"[blue]→[/blue] {moved.id} in [cyan]{STATUS_TITLES[moved.status]}[/cyan] "
        f"[dim]@ {format_position(moved.position)}[/dim]"
    )


def handle_show(session: BoardSession, result: ParseResult) -> None:
    """show ID"""
    if not result.args:
        console.print("[red]Error:[/red] Usage: show ID")
        return
    console.print(TaskFormatter.create_detail(service.get_task(session.user_id, result.args[0])))


def handle_rm(session: BoardSession, result: ParseResult) -> None:
    """rm ID"""
    if not result.args:
        console.print("[red]Error:[/red] Usage: rm ID")
        return
    service.delete_task(session.user_id, result.args[0])
    console.print(f"[red]✗[/red] Deleted task {result.args[0]}")
    session.refresh()


def handle_rebalance(session: BoardSession, result: ParseResult) -> None:
    """rebalance STATUS"""
    if not result.args:
        console.print("[red]Error:[/red] Usage: rebalance STATUS")
        return
    tasks = service.rebalance_partition(session.user_id, session.project.id, result.args[0])
    console.print(f"[green]✓[/green] Rebalanced {len(tasks)} task(s)")
    session.refresh()


def handle_cal(session: BoardSession, result: ParseResult) -> None:
    """cal [--month YYYY-MM]"""
    days = service.task_calendar(session.user_id, session.project.id, result.flag_value("month"))
    if not days:
        console.print("[dim]No tasks with a due date[/dim]")
        return
    console.print(TaskFormatter.create_calendar(days))


def handle_stats(session: BoardSession, result: ParseResult) -> None:
    """stats"""
    summary = service.project_analytics(session.user_id, session.project.id)
    table = Table(title=f"{session.project.name}: {summary['total_tasks']} task(s)")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")
    for status, count in summary["tasks_by_status"].items():
        table.add_row(STATUS_TITLES[status], str(count))
    console.print(table)
    console.print(f"[dim]Overdue: {summary['overdue_tasks']}[/dim]")


def handle_help(session: BoardSession, result: ParseResult) -> None:
    console.print("[bold]Commands:[/bold]")
    rows = [
        ("board [--positions]", "Redraw the board (toggle positions)"),
        ("ls [--status S]", "List tasks in order"),
        ('add "text" [--status S]', "Create a task at the end of a column"),
        ("mv ID STATUS [--on ID]", "Move a task; --after/--before pick the slot"),
        ("show ID", "Task details"),
        ("rm ID", "Delete a task"),
        ("rebalance STATUS", "Renumber a column"),
        ("cal [--month YYYY-MM]", "Tasks by due date"),
        ("stats", "Task counts"),
        ("clear", "Clear the screen"),
        ("exit", "Leave the REPL"),
    ]
    for usage, desc in rows:
        console.print(f"  [green]{usage:26}[/green] {desc}")


def handle_clear(session: BoardSession, result: ParseResult) -> None:
    console.clear()


HANDLERS = {
    "board": handle_board,
    "ls": handle_ls,
    "add": handle_add,
    "mv": handle_mv,
    "show": handle_show,
    "rm": handle_rm,
    "rebalance": handle_rebalance,
    "cal": handle_cal,
    "stats": handle_stats,
    "help": handle_help,
    "clear": handle_clear,
}


def execute_command(session: BoardSession, result: ParseResult) -> bool:
    """
    Execute a parsed command.

    Returns:
        True to continue REPL loop, False to exit
    """
    command = result.command

    if command in ("exit", "quit"):
        console.print("[dim]Goodbye![/dim]")
        return False

    if not command:
        return True

    handler = HANDLERS.get(command)
    if handler is None:
        console.print(f"[red]Unknown command:[/red] {command}")
        console.print("[dim]Type 'help' for available commands[/dim]")
        return True

    try:
        handler(session, result)
    except ChyraError as e:
        console.print(f"[red]Error:[/red] {e}")
    console.print()
    return True


def run_repl(user_id: str, project_id: str) -> None:
    """
    Main REPL loop.

    Falls back to plain input() when stdin/stdout aren't a TTY.
    """
    session = BoardSession.open(user_id, project_id)

    prompt_session = None
    if sys.stdin.isatty() and sys.stdout.isatty():
        prompt_session = PromptSession(
            history=InMemoryHistory(),
            completer=BoardCompleter(session.task_ids),
            complete_while_typing=True,
        )

    console.print(
        f"[bold cyan]Chyra[/bold cyan] board for [bold]{session.project.name}[/bold]"
        " - Type 'help' for commands, 'exit' to quit\n"
    )
    render_board(session)

    while True:
        try:
            if prompt_session is None:
                user_input = input(session.get_prompt())
            else:
                user_input = prompt_session.prompt(
                    HTML("<b>chyra:[<cyan>{}</cyan>]&gt; </b>").format(session.project.name)
                )
            if not execute_command(session, parse_command(user_input)):
                break
        except KeyboardInterrupt:
            console.print("[dim]^C (Press Ctrl+D or type 'exit' to quit)[/dim]")
        except EOFError:
            console.print("\n[dim]Goodbye![/dim]")
            break


def main(user_id: str, project_id: str) -> None:
    """
    Entry point for REPL mode.

    Called when user runs: chyra repl PROJECT_ID
    """
    try:
        run_repl(user_id, project_id)
    except ChyraError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
