"""
FILE: chyra/core/service.py
PURPOSE: Business logic layer: workspaces, members, projects, tasks, board moves
EXPORTS:
  - create_workspace / list_workspaces / get_workspace / rename_workspace / delete_workspace
  - regenerate_invite_code / join_workspace
  - list_members / set_member_role / remove_member
  - create_project / list_projects / get_project / update_project / delete_project
  - create_task / list_tasks / get_task / update_task / delete_task
  - list_partition / get_board / task_calendar
  - validate_status(status) -> str
  - move_task(user_id, task_id, status, prev_task_id, next_task_id) -> Task
  - rebalance_partition(user_id, project_id, status) -> List[Task]
  - project_analytics / workspace_analytics -> dict
  - generate_task_description / ask_project_oracle -> Optional[str]
DEPENDENCIES:
  - chyra.core.repository (all CRUD functions)
  - chyra.core.ordering (position allocator)
  - chyra.core.board (column and calendar grouping)
  - chyra.core.exceptions
  - chyra.utils (AI helpers)
  - loguru (logging)
NOTES:
  - Every operation takes the acting user_id first and checks workspace
    membership (admin role for destructive/workspace-level changes)
  - Authentication is not handled here; user_id is trusted
  - Columns are (project, status) pairs; positions only compare within one
  - Moves are all-or-nothing: either a single update, or one atomic batch
    when the column has to be rebalanced
"""

import random
import string
from datetime import date
from typing import Dict, List, Optional, Tuple

from loguru import logger

from . import repository
from .. import utils
from .board import Columns, fill_neighbors, group_by_due_date, group_by_status
from .constants import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    INVITE_CODE_LENGTH,
    MEMBER_ROLES,
    ROLE_ADMIN,
    ROLE_MEMBER,
    STATUS_DONE,
    TASK_PRIORITIES,
    TASK_STATUSES,
)
from .exceptions import (
    InvalidInputError,
    InvalidNeighborOrderError,
    MemberNotFoundError,
    NeighborNotFoundError,
    NotAuthorizedError,
    PrecisionExhaustedError,
    ProjectNotFoundError,
    RebalanceError,
    TaskNotFoundError,
    WorkspaceNotFoundError,
)
from .models import Member, Project, Task, Workspace
from .ordering import compute_position, plan_rebalance, rebalance_positions


# --- Validation helpers ---


def _clean_required(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInputError(f"{label} cannot be empty")
    return value


def _clean_optional(value: Optional[str]) -> Optional[str]:
    value = value.strip() if value else None
    return value or None


def validate_status(status: str) -> str:
    """Normalize a status name ("in progress" -> IN_PROGRESS); InvalidInputError if unknown."""
    normalized = (status or "").strip().upper().replace(" ", "_").replace("-", "_")
    if normalized not in TASK_STATUSES:
        raise InvalidInputError(
            f"Invalid status '{status}'. Must be one of: {', '.join(TASK_STATUSES)}"
        )
    return normalized


def _validate_priority(priority: str) -> str:
    normalized = (priority or "").strip().upper()
    if normalized not in TASK_PRIORITIES:
        raise InvalidInputError(
            f"Invalid priority '{priority}'. Must be one of: {', '.join(TASK_PRIORITIES)}"
        )
    return normalized


def _validate_due_date(due_date: Optional[str]) -> Optional[str]:
    due_date = _clean_optional(due_date)
    if due_date is None:
        return None
    try:
        return date.fromisoformat(due_date).isoformat()
    except ValueError:
        raise InvalidInputError(f"Invalid due date '{due_date}'. Use YYYY-MM-DD")


def generate_invite_code() -> str:
    """Random 6-character upper-case alphanumeric code."""
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choices(alphabet, k=INVITE_CODE_LENGTH))


# --- Authorization ---


def _require_member(user_id: str, workspace_id: str) -> Member:
    """
    Membership check behind every operation.

    Raises:
        NotAuthorizedError: If user_id is not a member of the workspace
    """
    member = repository.get_member(user_id, workspace_id)
    if member is None:
        raise NotAuthorizedError()
    return member


def _require_admin(user_id: str, workspace_id: str, message: str) -> Member:
    member = _require_member(user_id, workspace_id)
    if member.role != ROLE_ADMIN:
        raise NotAuthorizedError(message)
    return member


def _get_workspace_or_raise(workspace_id: str) -> Workspace:
    workspace = repository.get_workspace(workspace_id)
    if workspace is None:
        raise WorkspaceNotFoundError(workspace_id)
    return workspace


def _get_project_or_raise(project_id: str) -> Project:
    project = repository.get_project(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def _get_task_or_raise(task_id: str) -> Task:
    task = repository.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


# --- Workspace Management ---


def create_workspace(user_id: str, name: str, image_url: Optional[str] = None) -> Workspace:
    """
    Create a workspace and make its creator the admin member.

    Raises:
        InvalidInputError: If name is empty
    """
    name = _clean_required(name, "Workspace name")
    workspace = repository.create_workspace(
        name=name,
        admin_id=user_id,
        invite_code=generate_invite_code(),
        image_url=_clean_optional(image_url),
    )
    repository.create_member(user_id, workspace.id, ROLE_ADMIN)
    logger.info("Created workspace {} for {}", workspace.id, user_id)
    return workspace


def list_workspaces(user_id: str) -> List[Workspace]:
    """List the workspaces user_id belongs to."""
    workspaces = []
    for member in repository.list_memberships(user_id):
        workspace = repository.get_workspace(member.workspace_id)
        if workspace:
            workspaces.append(workspace)
    return workspaces


def get_workspace(user_id: str, workspace_id: str) -> Workspace:
    """
    Raises:
        WorkspaceNotFoundError: If workspace doesn't exist
        NotAuthorizedError: If user_id is not a member
    """
    workspace = _get_workspace_or_raise(workspace_id)
    _require_member(user_id, workspace_id)
    return workspace


def rename_workspace(user_id: str, workspace_id: str, name: str) -> Workspace:
    _get_workspace_or_raise(workspace_id)
    _require_admin(user_id, workspace_id, "Only admins can update workspace")
    return repository.update_workspace(
        workspace_id, {"name": _clean_required(name, "Workspace name")}
    )


def delete_workspace(user_id: str, workspace_id: str) -> None:
    """
    Delete a workspace with its projects, tasks and memberships.

    Raises:
        NotAuthorizedError: If user_id is not an admin of the workspace
    """
    _get_workspace_or_raise(workspace_id)
    _require_admin(user_id, workspace_id, "Only admins can delete workspace")

    for task in repository.list_tasks_by_workspace(workspace_id):
        repository.delete_task(task.id)
    for project in repository.list_projects(workspace_id):
        repository.delete_project(project.id)
    for member in repository.list_members(workspace_id):
        repository.delete_member(member.id)
    repository.delete_workspace(workspace_id)
    logger.info("Deleted workspace {}", workspace_id)


def regenerate_invite_code(user_id: str, workspace_id: str) -> Workspace:
    _get_workspace_or_raise(workspace_id)
    _require_admin(user_id, workspace_id, "Only admins can regenerate invite code")
    return repository.update_workspace(workspace_id, {"invite_code": generate_invite_code()})


def join_workspace(user_id: str, workspace_id: str, invite_code: str) -> Member:
    """
    Join a workspace through its invite code.

    Raises:
        InvalidInputError: If the code doesn't match or user is already a member
    """
    workspace = _get_workspace_or_raise(workspace_id)
    if (invite_code or "").strip().upper() != workspace.invite_code:
        raise InvalidInputError("Invalid invite link")
    if repository.get_member(user_id, workspace_id):
        raise InvalidInputError("Already a member of this workspace")
    return repository.create_member(user_id, workspace_id, ROLE_MEMBER)


def list_members(user_id: str, workspace_id: str) -> List[Member]:
    _require_member(user_id, workspace_id)
    return repository.list_members(workspace_id)


def set_member_role(user_id: str, workspace_id: str, member_id: str, role: str) -> Member:
    _require_admin(user_id, workspace_id, "Only admins can change roles")
    role = (role or "").strip().upper()
    if role not in MEMBER_ROLES:
        raise InvalidInputError(f"Invalid role '{role}'. Must be one of: {', '.join(MEMBER_ROLES)}")
    member = repository.get_member_by_id(member_id)
    if member is None or member.workspace_id != workspace_id:
        raise MemberNotFoundError(member_id)
    return repository.update_member_role(member_id, role)


def remove_member(user_id: str, workspace_id: str, member_id: str) -> None:
    _require_admin(user_id, workspace_id, "Only admins can remove members")
    member = repository.get_member_by_id(member_id)
    if member is None or member.workspace_id != workspace_id:
        raise MemberNotFoundError(member_id)
    repository.delete_member(member_id)


# --- Project Management ---


def create_project(
    user_id: str,
    workspace_id: str,
    name: str,
    description: Optional[str] = None,
) -> Project:
    """
    Create a project inside a workspace the user belongs to.

    Raises:
        InvalidInputError: If name is empty
        NotAuthorizedError: If user_id is not a member
    """
    name = _clean_required(name, "Project name")
    _get_workspace_or_raise(workspace_id)
    _require_member(user_id, workspace_id)
    return repository.create_project(workspace_id, name, _clean_optional(description))


def list_projects(user_id: str, workspace_id: str) -> List[Project]:
    _require_member(user_id, workspace_id)
    return repository.list_projects(workspace_id)


def get_project(user_id: str, project_id: str) -> Project:
    project = _get_project_or_raise(project_id)
    _require_member(user_id, project.workspace_id)
    return project


def update_project(
    user_id: str,
    project_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Project:
    project = _get_project_or_raise(project_id)
    _require_admin(user_id, project.workspace_id, "Only admins can update projects")

    fields = {}
    if name is not None:
        fields["name"] = _clean_required(name, "Project name")
    if description is not None:
        fields["description"] = _clean_optional(description)
    if not fields:
        return project
    return repository.update_project(project_id, fields)


def delete_project(user_id: str, project_id: str) -> None:
    """
    Delete a project and all of its tasks.

    Raises:
        NotAuthorizedError: If user_id is not an admin of the workspace
    """
    project = _get_project_or_raise(project_id)
    _require_admin(user_id, project.workspace_id, "Only admins can delete projects")
    for task in repository.list_tasks(project_id):
        repository.delete_task(task.id)
    repository.delete_project(project_id)


# --- Task Management ---


def _append_position(project_id: str, status: str) -> Tuple[float, Dict[str, dict]]:
    """
    Position just past the last task of a column.

    Returns:
        (position, renumbering): renumbering is empty unless the step no
        longer registers on a very large last position. It then maps the
        column's task IDs to their new fields, and the caller must write it
        in the same batch as the appended task.
    """
    try:
        return compute_position(repository.get_max_position(project_id, status), None), {}
    except PrecisionExhaustedError:
        logger.warning("Column {}/{} exhausted on append, rebalancing", project_id, status)

    column = repository.list_partition(project_id, status)
    ids = [t.id for t in column]
    positions, position = plan_rebalance(ids, ids[-1] if ids else None, None)
    renumbering = {
        t.id: {"position": positions[t.id]}
        for t in column
        if positions[t.id] != t.position
    }
    return position, renumbering


def create_task(
    user_id: str,
    project_id: str,
    content: str,
    status: str = DEFAULT_STATUS,
    priority: str = DEFAULT_PRIORITY,
    description: Optional[str] = None,
    assignee_id: Optional[str] = None,
    due_date: Optional[str] = None,
) -> Task:
    """
    Create a task at the end of its status column.

    Raises:
        InvalidInputError: Empty content, unknown status/priority, bad due date
        ProjectNotFoundError: If project doesn't exist
        NotAuthorizedError: If user_id is not a member
    """
    content = _clean_required(content, "Task content")
    status = validate_status(status)
    priority = _validate_priority(priority)
    due_date = _validate_due_date(due_date)

    project = _get_project_or_raise(project_id)
    _require_member(user_id, project.workspace_id)

    position, renumbering = _append_position(project.id, status)
    fields = dict(
        project_id=project.id,
        workspace_id=project.workspace_id,
        content=content,
        status=status,
        position=position,
        priority=priority,
        description=_clean_optional(description),
        assignee_id=_clean_optional(assignee_id),
        due_date=due_date,
    )
    if renumbering:
        task = repository.update_tasks_batch(renumbering, create=fields)[-1]
    else:
        task = repository.create_task(**fields)
    logger.debug("Created task {} at {} in {}", task.id, task.position, status)
    return task


def list_tasks(user_id: str, project_id: str, status: Optional[str] = None) -> List[Task]:
    """
    List a project's tasks, optionally one column only.

    Returns:
        Tasks ordered by position (columns interleaved when status is None)
    """
    project = _get_project_or_raise(project_id)
    _require_member(user_id, project.workspace_id)
    if status is not None:
        return repository.list_partition(project_id, validate_status(status))
    return repository.list_tasks(project_id)


def list_partition(user_id: str, project_id: str, status: str) -> List[Task]:
    """One board column in display order."""
    return list_tasks(user_id, project_id, status)


def get_board(user_id: str, project_id: str) -> Columns:
    """A project's tasks grouped into ordered status columns."""
    return group_by_status(list_tasks(user_id, project_id))


def _validate_month(month: Optional[str]) -> Optional[str]:
    month = _clean_optional(month)
    if month is None:
        return None
    try:
        return date.fromisoformat(f"{month}-01").isoformat()[:7]
    except ValueError:
        raise InvalidInputError(f"Invalid month '{month}'. Use YYYY-MM")


def task_calendar(user_id: str, project_id: str, month: Optional[str] = None) -> Columns:
    """
    A project's tasks that have a due date, grouped by that date.

    Args:
        month: Optional "YYYY-MM" to show a single month

    Raises:
        InvalidInputError: If month is malformed
    """
    month = _validate_month(month)
    return group_by_due_date(list_tasks(user_id, project_id), month)


def get_task(user_id: str, task_id: str) -> Task:
    task = _get_task_or_raise(task_id)
    _require_member(user_id, task.workspace_id)
    return task


def update_task(
    user_id: str,
    task_id: str,
    content: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assignee_id: Optional[str] = None,
    due_date: Optional[str] = None,
) -> Task:
    """
    Update task fields; None leaves a field unchanged, "" clears optional ones.

    Notes:
        - A status change re-appends the task at the end of the new column;
          use move_task to drop it at a specific slot
    """
    task = _get_task_or_raise(task_id)
    _require_member(user_id, task.workspace_id)

    fields = {}
    if content is not None:
        fields["content"] = _clean_required(content, "Task content")
    if description is not None:
        fields["description"] = _clean_optional(description)
    if priority is not None:
        fields["priority"] = _validate_priority(priority)
    if assignee_id is not None:
        fields["assignee_id"] = _clean_optional(assignee_id)
    if due_date is not None:
        fields["due_date"] = _validate_due_date(due_date)
    renumbering: Dict[str, dict] = {}
    if status is not None:
        status = validate_status(status)
        if status != task.status:
            fields["status"] = status
            fields["position"], renumbering = _append_position(task.project_id, status)

    if not fields:
        return task
    if renumbering:
        renumbering[task_id] = fields
        updated = repository.update_tasks_batch(renumbering)
        return next(t for t in updated if t.id == task_id)
    return repository.update_task(task_id, fields)


def delete_task(user_id: str, task_id: str) -> None:
    task = _get_task_or_raise(task_id)
    _require_member(user_id, task.workspace_id)
    repository.delete_task(task_id)


# --- Board Moves ---


def _resolve_neighbor(neighbor_id: str, task: Task, status: str) -> Task:
    """
    Load a neighbor and check it really sits in the target column.

    Raises:
        NeighborNotFoundError: Missing, the moving task itself, or elsewhere
    """
    neighbor = repository.get_task(neighbor_id)
    if neighbor is None:
        raise NeighborNotFoundError(neighbor_id)
    if neighbor.id == task.id:
        raise NeighborNotFoundError(neighbor_id, "is the task being moved")
    if neighbor.project_id != task.project_id or neighbor.status != status:
        raise NeighborNotFoundError(neighbor_id, f"is not in column {status}")
    return neighbor


def _resolve_neighbors(
    task: Task,
    status: str,
    prev_task_id: Optional[str],
    next_task_id: Optional[str],
) -> Tuple[Optional[Task], Optional[Task]]:
    """Resolve both neighbors; stale ones degrade to absent."""
    resolved = []
    for neighbor_id in (prev_task_id, next_task_id):
        if not neighbor_id:
            resolved.append(None)
            continue
        try:
            resolved.append(_resolve_neighbor(neighbor_id, task, status))
        except NeighborNotFoundError as e:
            logger.warning("Ignoring stale neighbor for task {}: {}", task.id, e)
            resolved.append(None)
    return resolved[0], resolved[1]


def _rebalance_column(
    project_id: str,
    status: str,
    insert: Optional[Task] = None,
    prev_task_id: Optional[str] = None,
    next_task_id: Optional[str] = None,
) -> List[Task]:
    """
    Renumber a column with the fixed step, optionally placing `insert` in it.

    All changed tasks (and the inserted one) are written in one batch.

    Raises:
        RebalanceError: If the renumbered column still can't host the task
    """
    column = [
        t for t in repository.list_partition(project_id, status)
        if insert is None or t.id != insert.id
    ]
    current = {t.id: t.position for t in column}

    if insert is None:
        positions = dict(zip(current, rebalance_positions(len(column))))
        new_position = None
    else:
        try:
            positions, new_position = plan_rebalance(list(current), prev_task_id, next_task_id)
        except RebalanceError:
            logger.error(
                "Rebalance of column {}/{} failed; move of task {} rejected",
                project_id, status, insert.id,
            )
            raise

    updates: Dict[str, dict] = {
        task_id: {"position": position}
        for task_id, position in positions.items()
        if current[task_id] != position
    }
    if insert is not None:
        updates[insert.id] = {"status": status, "position": new_position}

    if not updates:
        return column

    updated = repository.update_tasks_batch(updates)
    logger.info(
        "Rebalanced column {}/{}: {} task(s) rewritten", project_id, status, len(updated)
    )
    return updated


def move_task(
    user_id: str,
    task_id: str,
    status: str,
    prev_task_id: Optional[str] = None,
    next_task_id: Optional[str] = None,
) -> Task:
    """
    Move a task to a slot in a (possibly different) status column.

    Args:
        user_id: Acting user
        task_id: Task to move
        status: Target column
        prev_task_id: Task that should end up right before it (optional)
        next_task_id: Task that should end up right after it (optional)

    Returns:
        The updated task

    Raises:
        TaskNotFoundError: If task_id doesn't exist
        NotAuthorizedError: If user_id is not a member
        InvalidInputError: If status is invalid
        RebalanceError: If the column couldn't be repaired (nothing written)

    Notes:
        - Neighbor positions are re-read from the store; client-side
          positions are never trusted
        - Missing or misplaced neighbors are treated as absent instead of
          failing; a one-sided slot is completed from the stored column
          order (the anchor's current successor or predecessor), and with
          no neighbor at all the task goes to the end of the column
        - Collided or inverted neighbors, and exhausted float precision,
          trigger a rebalance of the target column; the rewrite and the
          move land in one atomic batch
    """
    task = _get_task_or_raise(task_id)
    _require_member(user_id, task.workspace_id)
    status = validate_status(status)

    prev_task, next_task = _resolve_neighbors(task, status, prev_task_id, next_task_id)
    if prev_task is None or next_task is None:
        # Complete the slot from the stored column order
        column = [t for t in repository.list_partition(task.project_id, status) if t.id != task.id]
        by_id = {t.id: t for t in column}
        prev_id, next_id = fill_neighbors(
            column,
            task.id,
            prev_task.id if prev_task else None,
            next_task.id if next_task else None,
        )
        prev_task, next_task = by_id.get(prev_id), by_id.get(next_id)

    try:
        position = compute_position(
            prev_task.position if prev_task else None,
            next_task.position if next_task else None,
        )
    except (InvalidNeighborOrderError, PrecisionExhaustedError) as e:
        logger.info("Move of task {} needs a rebalance: {}", task.id, e)
        updated = _rebalance_column(
            task.project_id,
            status,
            insert=task,
            prev_task_id=prev_task.id if prev_task else None,
            next_task_id=next_task.id if next_task else None,
        )
        return next(t for t in updated if t.id == task.id)

    moved = repository.update_task(task.id, {"status": status, "position": position})
    logger.debug("Moved task {} to {} at {}", task.id, status, position)
    return moved


def rebalance_partition(user_id: str, project_id: str, status: str) -> List[Task]:
    """
    Renumber a column to BASE, BASE+STEP, ... keeping its current order.

    Returns:
        The column in display order after renumbering
    """
    project = _get_project_or_raise(project_id)
    _require_member(user_id, project.workspace_id)
    status = validate_status(status)
    _rebalance_column(project_id, status)
    return repository.list_partition(project_id, status)


# --- Analytics ---


def summarize_tasks(tasks: List[Task], today: Optional[date] = None) -> dict:
    """
    Task counts by status, priority and assignee, plus overdue count.

    A task is overdue when its due date is before today and it isn't DONE.
    """
    today_iso = (today or date.today()).isoformat()
    by_status = {status: 0 for status in TASK_STATUSES}
    by_priority = {priority: 0 for priority in TASK_PRIORITIES}
    by_assignee: Dict[str, int] = {}
    overdue = 0

    for task in tasks:
        if task.status in by_status:
            by_status[task.status] += 1
        if task.priority in by_priority:
            by_priority[task.priority] += 1
        if task.due_date and task.due_date < today_iso and task.status != STATUS_DONE:
            overdue += 1
        if task.assignee_id:
            by_assignee[task.assignee_id] = by_assignee.get(task.assignee_id, 0) + 1

    return {
        "total_tasks": len(tasks),
        "tasks_by_status": by_status,
        "tasks_by_priority": by_priority,
        "overdue_tasks": overdue,
        "tasks_by_assignee": [
            {"assignee_id": assignee_id, "count": count}
            for assignee_id, count in by_assignee.items()
        ],
    }


def project_analytics(user_id: str, project_id: str, today: Optional[date] = None) -> dict:
    project = _get_project_or_raise(project_id)
    _require_member(user_id, project.workspace_id)
    return summarize_tasks(repository.list_tasks(project_id), today)


def workspace_analytics(user_id: str, workspace_id: str, today: Optional[date] = None) -> dict:
    _require_member(user_id, workspace_id)
    return summarize_tasks(repository.list_tasks_by_workspace(workspace_id), today)


# --- AI Assistance ---


def generate_task_description(user_id: str, workspace_id: str, title: str) -> Optional[str]:
    """
    Draft a description for a task title.

    Returns:
        Markdown description, or None when the AI command is unavailable
    """
    title = _clean_required(title, "Task title")
    _require_member(user_id, workspace_id)
    return utils.generate_description(title)


def ask_project_oracle(user_id: str, project_id: str, question: str) -> Optional[str]:
    """Answer a question about a project from its current tasks."""
    question = _clean_required(question, "Question")
    project = get_project(user_id, project_id)
    return utils.ask_project_oracle(project, repository.list_tasks(project_id), question)
