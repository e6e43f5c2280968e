"""
FILE: chyra/core/models.py
PURPOSE: Domain models for workspaces, members, projects, and tasks
EXPORTS:
  - Workspace (dataclass)
  - Member (dataclass)
  - Project (dataclass)
  - Task (dataclass)
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - All models have from_document() for document store conversion
  - All models have to_document() / to_json() for serialization
  - Optional fields use None as default
  - Timestamps stored as ISO-8601 strings
"""

from dataclasses import dataclass, asdict, fields
from typing import Optional
import json

from .constants import DEFAULT_PRIORITY, DEFAULT_STATUS, ROLE_MEMBER


def _pick(cls, doc: dict) -> dict:
    """Keep only the keys the dataclass knows about (documents may carry extras)."""
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in doc.items() if key in names}


@dataclass
class Workspace:
    """Top-level organizational unit; owns projects and members."""

    id: str
    name: str
    admin_id: str
    invite_code: str
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Workspace":
        """Convert a stored document to a Workspace object."""
        return cls(**_pick(cls, doc))

    def to_document(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize workspace to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Member:
    """A user's membership (and role) in a workspace."""

    id: str
    user_id: str
    workspace_id: str
    role: str = ROLE_MEMBER
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Member":
        """Convert a stored document to a Member object."""
        return cls(**_pick(cls, doc))

    def to_document(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize member to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Project:
    """A container for tasks within a workspace."""

    id: str
    workspace_id: str
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Project":
        """Convert a stored document to a Project object."""
        return cls(**_pick(cls, doc))

    def to_document(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize project to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Task:
    """
    A unit of work on a project board.

    `position` orders the task within its (project, status) column only;
    values from different columns are not comparable.
    """

    id: str
    project_id: str
    workspace_id: str
    content: str
    status: str = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    position: float = 0.0
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> "Task":
        """Convert a stored document to a Task object."""
        data = _pick(cls, doc)
        # Positions round-trip through JSON, which may hand back ints
        data["position"] = float(data.get("position") or 0.0)
        return cls(**data)

    def to_document(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(asdict(self), indent=2)
