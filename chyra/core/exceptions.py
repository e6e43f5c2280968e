"""
FILE: chyra/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - ChyraError (base exception)
  - DocumentNotFoundError
  - TaskNotFoundError / ProjectNotFoundError / WorkspaceNotFoundError / MemberNotFoundError
  - NeighborNotFoundError
  - NotAuthorizedError
  - InvalidInputError
  - OrderingError, InvalidNeighborOrderError, PrecisionExhaustedError, RebalanceError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from ChyraError for easy catching
  - Exceptions include context (IDs, positions) for helpful error messages
  - Service layer raises these, UI layers catch and display
  - InvalidNeighborOrderError and PrecisionExhaustedError are recovered by
    the move handler through a rebalance and never reach the user
"""


class ChyraError(Exception):
    """Base exception for all Chyra errors."""
    pass


class DocumentNotFoundError(ChyraError):
    """Document with given ID doesn't exist in a collection."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found in '{collection}'")


class TaskNotFoundError(ChyraError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class ProjectNotFoundError(ChyraError):
    """Project with given ID doesn't exist."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class WorkspaceNotFoundError(ChyraError):
    """Workspace with given ID doesn't exist."""

    def __init__(self, workspace_id: str):
        self.workspace_id = workspace_id
        super().__init__(f"Workspace {workspace_id} not found")


class MemberNotFoundError(ChyraError):
    """Membership record doesn't exist."""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found")


class NeighborNotFoundError(ChyraError):
    """A referenced previous/next task is missing or outside the target column."""

    def __init__(self, task_id: str, reason: str = "not found"):
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Neighbor task {task_id} {reason}")


class NotAuthorizedError(ChyraError):
    """Acting user is not allowed to perform the operation."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class InvalidInputError(ChyraError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


# --- Ordering errors ---


class OrderingError(ChyraError):
    """Base class for position allocation failures."""
    pass


class InvalidNeighborOrderError(OrderingError):
    """Neighbors were supplied out of order (prev >= next)."""

    def __init__(self, prev: float, next: float):
        self.prev = prev
        self.next = next
        super().__init__(f"Invalid neighbor order: prev={prev!r} >= next={next!r}")


class PrecisionExhaustedError(OrderingError):
    """Computed position is not strictly inside its bounds."""

    def __init__(self, position: float, prev=None, next=None):
        self.position = position
        self.prev = prev
        self.next = next
        super().__init__(
            f"Position {position!r} is not strictly between prev={prev!r} and next={next!r}"
        )


class RebalanceError(OrderingError):
    """Rebalancing a column still failed to produce a valid ordering."""

    def __init__(self, message: str):
        super().__init__(message)
