"""
FILE: chyra/core/board.py
PURPOSE: Kanban board view model: status columns, drop targets, optimistic moves, calendar days
EXPORTS:
  - sort_key(task) -> tuple
  - group_by_status(tasks) -> Dict[str, List[Task]]
  - neighbors_for_drop(columns, task_id, target_status, over_task_id) -> (prev_id, next_id)
  - apply_optimistic_move(columns, task_id, status, prev_id, next_id) -> Dict[str, List[Task]]
  - fill_neighbors(column, task_id, prev_id, next_id) -> (prev_id, next_id)
  - group_by_due_date(tasks, month) -> Dict[str, List[Task]]
DEPENDENCIES:
  - dataclasses (stdlib)
  - chyra.core.ordering (compute_position, plan_rebalance)
  - chyra.core.models (Task)
NOTES:
  - Local mirror of the server-side move, used to redraw the board before
    the authoritative move returns; never persisted
  - Never mutates the columns or tasks passed in
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import TASK_PRIORITIES, TASK_STATUSES
from .exceptions import OrderingError, TaskNotFoundError
from .models import Task
from .ordering import compute_position, plan_rebalance


Columns = Dict[str, List[Task]]


def sort_key(task: Task) -> tuple:
    """Column order: position, then creation time, then ID."""
    return (task.position, task.created_at or "", task.id)


def group_by_status(tasks: Iterable[Task]) -> Columns:
    """
    Split tasks into board columns.

    Returns:
        One list per status in TASK_STATUSES (possibly empty), each sorted
        by position. Tasks with an unknown status are left out.
    """
    columns: Columns = {status: [] for status in TASK_STATUSES}
    for task in tasks:
        if task.status in columns:
            columns[task.status].append(task)
    for column in columns.values():
        column.sort(key=sort_key)
    return columns


def neighbors_for_drop(
    columns: Columns,
    task_id: str,
    target_status: str,
    over_task_id: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Work out the (prev_id, next_id) pair for a drop.

    Args:
        columns: Current board
        task_id: Task being dragged
        target_status: Column it was dropped into
        over_task_id: Card it was dropped on, or None when dropped on the
            column itself

    Returns:
        Dropped on a card: that card and the one after it.
        Dropped on a column: the last card of the column and None.
    """
    column = [t for t in columns.get(target_status, []) if t.id != task_id]
    ids = [t.id for t in column]

    if over_task_id is not None and over_task_id in ids:
        index = ids.index(over_task_id)
        next_id = ids[index + 1] if index + 1 < len(ids) else None
        return over_task_id, next_id

    return (ids[-1] if ids else None), None


def apply_optimistic_move(
    columns: Columns,
    task_id: str,
    status: str,
    prev_id: Optional[str] = None,
    next_id: Optional[str] = None,
) -> Columns:
    """
    Relocate a task locally with the same arithmetic as the server.

    Neighbors that aren't in the target column are ignored, and a one-sided
    slot is completed with fill_neighbors (with none left the task is
    appended). When the allocator can't fit the task the target
    column is renumbered locally, as the server would.

    Raises:
        TaskNotFoundError: If task_id is not on the board
    """
    moving = next(
        (t for column in columns.values() for t in column if t.id == task_id),
        None,
    )
    if moving is None:
        raise TaskNotFoundError(task_id)

    new_columns: Columns = {
        key: [t for t in column if t.id != task_id] for key, column in columns.items()
    }
    target = sorted(new_columns.get(status, []), key=sort_key)
    by_id = {t.id: t for t in target}
    known_prev = prev_id if prev_id in by_id else None
    known_next = next_id if next_id in by_id else None
    known_prev, known_next = fill_neighbors(target, task_id, known_prev, known_next)
    prev_task = by_id.get(known_prev)
    next_task = by_id.get(known_next)

    try:
        position = compute_position(
            prev_task.position if prev_task else None,
            next_task.position if next_task else None,
        )
    except OrderingError:
        positions, position = plan_rebalance(
            [t.id for t in target],
            prev_task.id if prev_task else None,
            next_task.id if next_task else None,
        )
        target = [replace(t, position=positions[t.id]) for t in target]

    target.append(replace(moving, status=status, position=position))
    target.sort(key=sort_key)
    new_columns[status] = target
    return new_columns


def fill_neighbors(
    column: List[Task],
    task_id: str,
    prev_id: Optional[str] = None,
    next_id: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Complete a half-specified slot from the column's current order.

    Only prev given: its current successor becomes next. Only next given:
    its current predecessor becomes prev. Neither: append after the last
    card. IDs not found in the column are passed through untouched.
    """
    ids = [t.id for t in sorted(column, key=sort_key) if t.id != task_id]

    if prev_id is None and next_id is None:
        return (ids[-1] if ids else None), None
    if next_id is None and prev_id in ids:
        index = ids.index(prev_id)
        return prev_id, (ids[index + 1] if index + 1 < len(ids) else None)
    if prev_id is None and next_id in ids:
        index = ids.index(next_id)
        return (ids[index - 1] if index > 0 else None), next_id
    return prev_id, next_id


def group_by_due_date(tasks: Iterable[Task], month: Optional[str] = None) -> Columns:
    """
    Calendar view: tasks with a due date, keyed by that date.

    Args:
        tasks: Tasks to place
        month: Optional "YYYY-MM"; only dates in that month are kept

    Returns:
        Dates in ascending order (ISO strings), each with its tasks sorted by
        priority (most urgent first), then board column, then position.
    """
    days: Columns = {}
    for task in tasks:
        if not task.due_date:
            continue
        if month is not None and not task.due_date.startswith(f"{month}-"):
            continue
        days.setdefault(task.due_date, []).append(task)

    def calendar_key(task: Task) -> tuple:
        urgency = -TASK_PRIORITIES.index(task.priority) if task.priority in TASK_PRIORITIES else 0
        column = TASK_STATUSES.index(task.status) if task.status in TASK_STATUSES else len(TASK_STATUSES)
        return (urgency, column) + sort_key(task)

    return {day: sorted(days[day], key=calendar_key) for day in sorted(days)}
