"""
FILE: chyra/repl/completer.py
PURPOSE: Autocomplete for REPL commands, task IDs, statuses and flags
EXPORTS:
  - BoardCompleter (prompt_toolkit Completer)
DEPENDENCIES:
  - prompt_toolkit.completion (Completer, Completion)
NOTES:
  - Task IDs come from a callable so completions follow the live board
  - Case-insensitive matching
"""

from typing import Callable, Iterable, List

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..core.constants import TASK_PRIORITIES, TASK_STATUSES


class BoardCompleter(Completer):
    """
    Context-aware completion for the board REPL.

    - Command names at the start of the line
    - Task IDs for commands that take one first
    - Status names after "mv <id>", "rebalance" and --status
    - Task IDs after --after / --before / --on
    """

    COMMANDS = [
        "board", "ls", "add", "mv", "show", "rm", "rebalance", "cal", "stats",
        "help", "clear", "exit", "quit",
    ]

    ID_FIRST_COMMANDS = {"mv", "show", "rm"}

    COMMAND_FLAGS = {
        "board": ["--positions"],
        "ls": ["--status"],
        "add": ["--status", "--priority", "--description"],
        "mv": ["--after", "--before", "--on"],
        "cal": ["--month"],
    }

    NEIGHBOR_FLAGS = {"--after", "--before", "--on"}

    def __init__(self, task_ids: Callable[[], List[str]]):
        self.task_ids = task_ids

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor
        words = text.split()
        trailing_space = text.endswith(" ")

        if not words or (len(words) == 1 and not trailing_space):
            yield from self._complete(self.COMMANDS, words[0] if words else "")
            return

        command = words[0].lower()
        current = "" if trailing_space else words[-1]
        previous = words[-1] if trailing_space else (words[-2] if len(words) > 1 else "")
        position = len(words) if trailing_space else len(words) - 1

        if previous == "--status":
            yield from self._complete(TASK_STATUSES, current)
            return
        if previous == "--priority":
            yield from self._complete(TASK_PRIORITIES, current)
            return
        if previous in self.NEIGHBOR_FLAGS:
            yield from self._complete(self.task_ids(), current)
            return

        if command in self.ID_FIRST_COMMANDS and position == 1:
            yield from self._complete(self.task_ids(), current)
            return
        if (command == "mv" and position == 2) or (command == "rebalance" and position == 1):
            yield from self._complete(TASK_STATUSES, current)
            return

        if trailing_space or current.startswith("--"):
            yield from self._complete(self.COMMAND_FLAGS.get(command, []), current)

    @staticmethod
    def _complete(options: Iterable[str], word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for option in options:
            if option.lower().startswith(word_lower):
                yield Completion(option, start_position=-len(word))
