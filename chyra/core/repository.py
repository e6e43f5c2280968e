"""
FILE: chyra/core/repository.py
PURPOSE: Typed CRUD for workspaces, members, projects and tasks over the document store
EXPORTS:
  - get_store() -> DocumentStore
  - create_workspace / get_workspace / get_workspace_by_invite_code / update_workspace / delete_workspace
  - create_member / get_member / get_member_by_id / list_members / list_memberships / update_member_role / delete_member
  - create_project / get_project / list_projects / update_project / delete_project
  - create_task / get_task / list_tasks / list_tasks_by_workspace / list_partition
  - get_max_position(project_id, status) -> float | None
  - update_task(task_id, fields) -> Task
  - update_tasks_batch(updates, create) -> List[Task]
  - delete_task(task_id) -> None
DEPENDENCIES:
  - os, pathlib (stdlib)
  - loguru (logging)
  - chyra.core.store (DocumentStore)
  - chyra.core.models (Workspace, Member, Project, Task)
  - chyra.core.exceptions (not-found errors)
NOTES:
  - Database stored at ~/.chyra/chyra.db (override with CHYRA_DB_PATH)
  - get_* functions return None for missing documents; update/delete raise
  - Returns domain objects, never raw documents
  - No validation or authorization here (see service layer)
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .constants import (
    COLLECTION_MEMBERS,
    COLLECTION_PROJECTS,
    COLLECTION_TASKS,
    COLLECTION_WORKSPACES,
    DEFAULT_PRIORITY,
    ROLE_MEMBER,
)
from .exceptions import (
    DocumentNotFoundError,
    MemberNotFoundError,
    ProjectNotFoundError,
    TaskNotFoundError,
    WorkspaceNotFoundError,
)
from .models import Member, Project, Task, Workspace
from .store import DocumentStore


# Database file location (cross-platform), overridable for scripts and tests
DB_DIR = Path.home() / ".chyra"
DB_PATH = Path(os.environ["CHYRA_DB_PATH"]) if os.environ.get("CHYRA_DB_PATH") else DB_DIR / "chyra.db"


def get_store() -> DocumentStore:
    """Get the document store for the configured database file."""
    return DocumentStore(DB_PATH)


def _find(collection: str, document_id: str) -> Optional[dict]:
    try:
        return get_store().get(collection, document_id)
    except DocumentNotFoundError:
        return None


# --- Workspace Operations ---


def create_workspace(
    name: str,
    admin_id: str,
    invite_code: str,
    image_url: Optional[str] = None,
) -> Workspace:
    """Create a new workspace owned by admin_id."""
    doc = get_store().create(
        COLLECTION_WORKSPACES,
        {
            "name": name,
            "admin_id": admin_id,
            "invite_code": invite_code,
            "image_url": image_url,
        },
    )
    return Workspace.from_document(doc)


def get_workspace(workspace_id: str) -> Optional[Workspace]:
    """
    Fetch single workspace by ID.

    Returns:
        Workspace object if found, None otherwise
    """
    doc = _find(COLLECTION_WORKSPACES, workspace_id)
    return Workspace.from_document(doc) if doc else None


def get_workspace_by_invite_code(invite_code: str) -> Optional[Workspace]:
    docs = get_store().list(COLLECTION_WORKSPACES, {"invite_code": invite_code}, limit=1)
    return Workspace.from_document(docs[0]) if docs else None


def update_workspace(workspace_id: str, fields: Dict[str, Any]) -> Workspace:
    """
    Update workspace fields.

    Raises:
        WorkspaceNotFoundError: If workspace doesn't exist
    """
    try:
        doc = get_store().update(COLLECTION_WORKSPACES, workspace_id, fields)
    except DocumentNotFoundError:
        raise WorkspaceNotFoundError(workspace_id)
    return Workspace.from_document(doc)


def delete_workspace(workspace_id: str) -> None:
    """
    Delete workspace by ID.

    Raises:
        WorkspaceNotFoundError: If workspace doesn't exist

    Note:
        Does not cascade; the service layer removes members, projects and tasks.
    """
    try:
        get_store().delete(COLLECTION_WORKSPACES, workspace_id)
    except DocumentNotFoundError:
        raise WorkspaceNotFoundError(workspace_id)


# --- Member Operations ---


def create_member(user_id: str, workspace_id: str, role: str = ROLE_MEMBER) -> Member:
    """Add user_id to a workspace with the given role."""
    doc = get_store().create(
        COLLECTION_MEMBERS,
        {"user_id": user_id, "workspace_id": workspace_id, "role": role},
    )
    return Member.from_document(doc)


def get_member(user_id: str, workspace_id: str) -> Optional[Member]:
    """
    Fetch the membership of user_id in workspace_id.

    Returns:
        Member object if the user belongs to the workspace, None otherwise

    Note:
        This is the lookup every authorization check goes through.
    """
    docs = get_store().list(
        COLLECTION_MEMBERS,
        {"user_id": user_id, "workspace_id": workspace_id},
        limit=1,
    )
    return Member.from_document(docs[0]) if docs else None


def get_member_by_id(member_id: str) -> Optional[Member]:
    doc = _find(COLLECTION_MEMBERS, member_id)
    return Member.from_document(doc) if doc else None


def list_members(workspace_id: str) -> List[Member]:
    """List all members of a workspace, oldest first."""
    docs = get_store().list(COLLECTION_MEMBERS, {"workspace_id": workspace_id})
    return [Member.from_document(doc) for doc in docs]


def list_memberships(user_id: str) -> List[Member]:
    """List every membership held by a user."""
    docs = get_store().list(COLLECTION_MEMBERS, {"user_id": user_id})
    return [Member.from_document(doc) for doc in docs]


def update_member_role(member_id: str, role: str) -> Member:
    try:
        doc = get_store().update(COLLECTION_MEMBERS, member_id, {"role": role})
    except DocumentNotFoundError:
        raise MemberNotFoundError(member_id)
    return Member.from_document(doc)


def delete_member(member_id: str) -> None:
    try:
        get_store().delete(COLLECTION_MEMBERS, member_id)
    except DocumentNotFoundError:
        raise MemberNotFoundError(member_id)


# --- Project Operations ---


def create_project(
    workspace_id: str,
    name: str,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Project:
    """Create a new project in a workspace."""
    doc = get_store().create(
        COLLECTION_PROJECTS,
        {
            "workspace_id": workspace_id,
            "name": name,
            "description": description,
            "image_url": image_url,
        },
    )
    return Project.from_document(doc)


def get_project(project_id: str) -> Optional[Project]:
    """
    Fetch single project by ID.

    Returns:
        Project object if found, None otherwise
    """
    doc = _find(COLLECTION_PROJECTS, project_id)
    return Project.from_document(doc) if doc else None


def list_projects(workspace_id: str) -> List[Project]:
    """List projects of a workspace, newest first."""
    docs = get_store().list(
        COLLECTION_PROJECTS, {"workspace_id": workspace_id}, descending=True
    )
    return [Project.from_document(doc) for doc in docs]


def update_project(project_id: str, fields: Dict[str, Any]) -> Project:
    try:
        doc = get_store().update(COLLECTION_PROJECTS, project_id, fields)
    except DocumentNotFoundError:
        raise ProjectNotFoundError(project_id)
    return Project.from_document(doc)


def delete_project(project_id: str) -> None:
    """
    Delete project by ID.

    Raises:
        ProjectNotFoundError: If project doesn't exist
    """
    try:
        get_store().delete(COLLECTION_PROJECTS, project_id)
    except DocumentNotFoundError:
        raise ProjectNotFoundError(project_id)


# --- Task Operations ---


def _task_document(
    project_id: str,
    workspace_id: str,
    content: str,
    status: str,
    position: float,
    priority: str = DEFAULT_PRIORITY,
    description: Optional[str] = None,
    assignee_id: Optional[str] = None,
    due_date: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "project_id": project_id,
        "workspace_id": workspace_id,
        "content": content,
        "description": description,
        "status": status,
        "priority": priority,
        "position": position,
        "assignee_id": assignee_id,
        "due_date": due_date,
    }


def create_task(**fields: Any) -> Task:
    """
    Create a new task.

    Accepts project_id, workspace_id, content, status and position, plus
    optional priority, description, assignee_id and due_date.

    Note:
        The caller picks the position (see service.create_task, which
        appends to the end of the status column).
    """
    doc = get_store().create(COLLECTION_TASKS, _task_document(**fields))
    return Task.from_document(doc)


def get_task(task_id: str) -> Optional[Task]:
    """
    Fetch single task by ID.

    Returns:
        Task object if found, None otherwise
    """
    doc = _find(COLLECTION_TASKS, task_id)
    return Task.from_document(doc) if doc else None


def list_tasks(project_id: str) -> List[Task]:
    """List all tasks of a project, ordered by position."""
    docs = get_store().list(COLLECTION_TASKS, {"project_id": project_id}, sort_by="position")
    return [Task.from_document(doc) for doc in docs]


def list_tasks_by_workspace(workspace_id: str) -> List[Task]:
    docs = get_store().list(COLLECTION_TASKS, {"workspace_id": workspace_id})
    return [Task.from_document(doc) for doc in docs]


def list_partition(project_id: str, status: str) -> List[Task]:
    """
    List one board column: tasks of a project with the given status.

    Returns:
        Tasks ordered by position (ties broken by creation time, then ID)
    """
    docs = get_store().list(
        COLLECTION_TASKS,
        {"project_id": project_id, "status": status},
        sort_by="position",
    )
    return [Task.from_document(doc) for doc in docs]


def get_max_position(project_id: str, status: str) -> Optional[float]:
    """
    Highest position in a column.

    Returns:
        The position of the last task, or None if the column is empty
    """
    docs = get_store().list(
        COLLECTION_TASKS,
        {"project_id": project_id, "status": status},
        sort_by="position",
        descending=True,
        limit=1,
    )
    return float(docs[0]["position"]) if docs else None


def update_task(task_id: str, fields: Dict[str, Any]) -> Task:
    """
    Merge fields into a task.

    Raises:
        TaskNotFoundError: If task doesn't exist
    """
    try:
        doc = get_store().update(COLLECTION_TASKS, task_id, fields)
    except DocumentNotFoundError:
        raise TaskNotFoundError(task_id)
    return Task.from_document(doc)


def update_tasks_batch(
    updates: Dict[str, Dict[str, Any]],
    create: Optional[Dict[str, Any]] = None,
) -> List[Task]:
    """
    Update several tasks atomically.

    Args:
        updates: task_id -> fields to merge
        create: Fields of a new task (as for create_task) written in the
            same transaction; it comes last in the result

    Raises:
        TaskNotFoundError: If any task is missing; nothing is written
    """
    document = _task_document(**create) if create is not None else None
    try:
        docs = get_store().update_batch(COLLECTION_TASKS, updates, create=document)
    except DocumentNotFoundError as e:
        logger.warning("Batch update aborted, task {} missing", e.document_id)
        raise TaskNotFoundError(e.document_id)
    return [Task.from_document(doc) for doc in docs]


def delete_task(task_id: str) -> None:
    """
    Delete task by ID.

    Raises:
        TaskNotFoundError: If task doesn't exist
    """
    try:
        get_store().delete(COLLECTION_TASKS, task_id)
    except DocumentNotFoundError:
        raise TaskNotFoundError(task_id)
