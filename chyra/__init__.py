"""Chyra - workspace, project and kanban task management."""

__version__ = "0.3.0"
