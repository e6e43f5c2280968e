"""
FILE: chyra/repl/__init__.py
PURPOSE: Interactive board session for one project
EXPORTS:
  - main(user_id, project_id) (from repl.main)
DEPENDENCIES:
  - prompt_toolkit (REPL interface)
  - rich (board rendering)
"""

from .main import main

__all__ = ["main"]
