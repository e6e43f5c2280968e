"""
FILE: chyra/repl/parser.py
PURPOSE: Parse user input into commands and arguments for the REPL
EXPORTS:
  - ParseResult (dataclass for parsed commands)
  - parse_command(input_str) -> ParseResult
DEPENDENCIES:
  - shlex (shell-like parsing with quotes)
NOTES:
  - Quoted strings stay one argument: add "task with spaces"
  - "--flag value" pairs become flags; a flag followed by another flag
    (or nothing) is boolean
  - Command names are case-insensitive; arguments keep their case
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass
class ParseResult:
    """
    Result of parsing a REPL command.

    Attributes:
        command: The command name (e.g., "add", "mv")
        args: Positional arguments in order
        flags: Flag arguments (e.g., {"after": "1a2b3c", "positions": True})
        raw_input: Original input string
    """
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Union[str, bool]] = field(default_factory=dict)
    raw_input: str = ""

    def flag_value(self, name: str) -> Union[str, None]:
        """A flag's string value, or None when absent or given without a value."""
        value = self.flags.get(name)
        return value if isinstance(value, str) else None


def parse_command(input_str: str) -> ParseResult:
    """
    Parse REPL input into command, args, and flags.

    Examples:
        >>> parse_command('add "Write docs" --status TODO')
        ParseResult(command="add", args=["Write docs"], flags={"status": "TODO"})

        >>> parse_command("board --positions")
        ParseResult(command="board", args=[], flags={"positions": True})

    Notes:
        - An unclosed quote falls back to whitespace splitting
        - Empty input returns command="" with no args/flags
    """
    input_str = input_str.strip()
    if not input_str:
        return ParseResult(command="", raw_input=input_str)

    try:
        tokens = shlex.split(input_str)
    except ValueError:
        tokens = input_str.split()

    if not tokens:
        return ParseResult(command="", raw_input=input_str)

    command = tokens[0].lower()
    args: List[str] = []
    flags: Dict[str, Union[str, bool]] = {}
    i = 1

    while i < len(tokens):
        token = tokens[i]
        if token.startswith("--"):
            name = token[2:]
            if i + 1 < len(tokens) and not tokens[i + 1].startswith("--"):
                flags[name] = tokens[i + 1]
                i += 2
            else:
                flags[name] = True
                i += 1
        else:
            args.append(token)
            i += 1

    return ParseResult(command=command, args=args, flags=flags, raw_input=input_str)
