"""
FILE: chyra/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - TASK_STATUSES: All valid task status values (board columns, in order)
  - TASK_PRIORITIES: All valid priority values
  - MEMBER_ROLES: Workspace membership roles
  - BASE_POSITION / POSITION_STEP: Fractional ordering constants
  - Collection names used by the document store
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - POSITION_STEP must stay large relative to the number of bisections
    expected between two neighbors before a rebalance is needed
"""

# Task status constants (one board column each)
STATUS_BACKLOG = "BACKLOG"
STATUS_TODO = "TODO"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_DONE = "DONE"
STATUS_CANCELED = "CANCELED"
TASK_STATUSES = (
    STATUS_BACKLOG,
    STATUS_TODO,
    STATUS_IN_PROGRESS,
    STATUS_DONE,
    STATUS_CANCELED,
)
DEFAULT_STATUS = STATUS_TODO

# Display titles for board columns
STATUS_TITLES = {
    STATUS_BACKLOG: "Backlog",
    STATUS_TODO: "To Do",
    STATUS_IN_PROGRESS: "In Progress",
    STATUS_DONE: "Done",
    STATUS_CANCELED: "Canceled",
}

# Task priority constants
PRIORITY_LOW = "LOW"
PRIORITY_MEDIUM = "MEDIUM"
PRIORITY_HIGH = "HIGH"
PRIORITY_URGENT = "URGENT"
TASK_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH, PRIORITY_URGENT)
DEFAULT_PRIORITY = PRIORITY_MEDIUM

# Membership roles
ROLE_ADMIN = "ADMIN"
ROLE_MEMBER = "MEMBER"
MEMBER_ROLES = (ROLE_ADMIN, ROLE_MEMBER)

# Fractional ordering
BASE_POSITION = 1000.0
POSITION_STEP = 1000.0

# Document store collections
COLLECTION_WORKSPACES = "workspaces"
COLLECTION_MEMBERS = "members"
COLLECTION_PROJECTS = "projects"
COLLECTION_TASKS = "tasks"

# Invite codes
INVITE_CODE_LENGTH = 6
