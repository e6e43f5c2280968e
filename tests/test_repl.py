"""
Tests for the board REPL: parsing, completion and command execution.

Commands run against the temporary database; output goes to a recording
console so assertions can look at it.
"""

import importlib

import pytest
from prompt_toolkit.document import Document
from rich.console import Console

from chyra.core import repository, service
from chyra.repl.completer import BoardCompleter
from chyra.repl.main import BoardSession, execute_command
from chyra.repl.parser import parse_command

from conftest import MEMBER

# chyra.repl re-exports the main() function, which shadows the submodule name.
repl_main = importlib.import_module("chyra.repl.main")


@pytest.fixture(autouse=True)
def recording_console(monkeypatch):
    console = Console(record=True, width=200, force_terminal=False)
    monkeypatch.setattr(repl_main, "console", console)
    return console


@pytest.fixture
def session(project):
    return BoardSession.open(MEMBER, project.id)


def run(session, line):
    return execute_command(session, parse_command(line))


def todo_ids(session):
    return [t.id for t in session.columns["TODO"]]


# --- Parser ---

def test_parse_quoted_args_and_flags():
    result = parse_command('ADD "Write the docs" --status in_progress --urgent')

    assert result.command == "add"
    assert result.args == ["Write the docs"]
    assert result.flags == {"status": "in_progress", "urgent": True}
    assert result.flag_value("status") == "in_progress"
    assert result.flag_value("urgent") is None
    assert result.flag_value("missing") is None


def test_parse_empty_input():
    assert parse_command("   ").command == ""


def test_parse_unclosed_quote_falls_back_to_split():
    result = parse_command('add "oops')
    assert result.args == ['"oops']


# --- Completer ---

def completions(completer, text):
    return [c.text for c in completer.get_completions(Document(text), None)]


def test_complete_commands():
    completer = BoardCompleter(lambda: [])
    assert completions(completer, "re") == ["rebalance"]
    assert "board" in completions(completer, "")


def test_complete_task_ids_and_statuses():
    completer = BoardCompleter(lambda: ["abc123", "abd456", "xyz789"])

    assert completions(completer, "mv ab") == ["abc123", "abd456"]
    assert completions(completer, "mv abc123 in") == ["IN_PROGRESS"]
    assert completions(completer, "mv abc123 DONE --after x") == ["xyz789"]
    assert completions(completer, "add foo --status d") == ["DONE"]
    assert completions(completer, "rebalance ") == [
        "BACKLOG", "TODO", "IN_PROGRESS", "DONE", "CANCELED",
    ]


def test_complete_flags():
    completer = BoardCompleter(lambda: [])
    assert completions(completer, "mv abc DONE --") == ["--after", "--before", "--on"]
    assert completions(completer, "cal --") == ["--month"]


# --- Commands ---

def test_exit_and_empty(session):
    assert run(session, "") is True
    assert run(session, "exit") is False
    assert run(session, "quit") is False


def test_unknown_command(session, recording_console):
    assert run(session, "frobnicate") is True
    assert "Unknown command" in recording_console.export_text()


def test_add_appends_and_refreshes(session):
    run(session, 'add "First task"')
    run(session, "add Second task --priority high")

    tasks = session.columns["TODO"]
    assert [t.content for t in tasks] == ["First task", "Second task"]
    assert tasks[1].priority == "HIGH"
    assert tasks[1].position == 2000


def test_mv_to_end_of_other_column(session):
    a = service.create_task(MEMBER, session.project.id, "A")
    service.create_task(MEMBER, session.project.id, "Done", status="DONE")
    session.refresh()

    run(session, f"mv {a.id} done")

    assert [t.content for t in session.columns["DONE"]] == ["Done", "A"]
    assert repository.get_task(a.id).status == "DONE"


def test_mv_on_card_lands_after_it(session):
    a = service.create_task(MEMBER, session.project.id, "A")
    b = service.create_task(MEMBER, session.project.id, "B")
    c = service.create_task(MEMBER, session.project.id, "C")
    session.refresh()

    run(session, f"mv {c.id} TODO --on {a.id}")

    assert todo_ids(session) == [a.id, c.id, b.id]
    assert repository.get_task(c.id).position == 1500


def test_mv_before_fills_prev_from_board(session):
    a = service.create_task(MEMBER, session.project.id, "A")
    b = service.create_task(MEMBER, session.project.id, "B")
    c = service.create_task(MEMBER, session.project.id, "C")
    session.refresh()

    run(session, f"mv {a.id} TODO --before {c.id}")

    assert todo_ids(session) == [b.id, a.id, c.id]


def test_mv_with_stale_board_shows_store_order(session, recording_console):
    a = service.create_task(MEMBER, session.project.id, "A")
    session.refresh()
    # someone else fills the DONE column after the board was loaded
    other = service.create_task(MEMBER, session.project.id, "Other", status="DONE")

    run(session, f"mv {a.id} DONE")

    assert [t.id for t in session.columns["DONE"]] == [other.id, a.id]
    assert repository.get_task(a.id).position == 2000
    assert "updated from store" in recording_console.export_text()


def test_mv_unknown_task_reports_error(session, recording_console):
    assert run(session, "mv nope TODO") is True
    assert "not found" in recording_console.export_text()


def test_mv_invalid_status_reports_error(session, recording_console):
    a = service.create_task(MEMBER, session.project.id, "A")
    session.refresh()

    run(session, f"mv {a.id} LIMBO")

    assert "Invalid status" in recording_console.export_text()
    assert repository.get_task(a.id).status == "TODO"


def test_rebalance_and_show(session, recording_console):
    a = service.create_task(MEMBER, session.project.id, "A")
    repository.update_task(a.id, {"position": 12.5})
    session.refresh()

    run(session, "rebalance todo")
    run(session, f"show {a.id}")

    assert repository.get_task(a.id).position == 1000
    assert "Rebalanced 1 task(s)" in recording_console.export_text()


def test_rm(session):
    a = service.create_task(MEMBER, session.project.id, "A")
    session.refresh()

    run(session, f"rm {a.id}")

    assert session.columns["TODO"] == []


def test_cal_lists_dated_tasks(session, recording_console):
    service.create_task(MEMBER, session.project.id, "Ship release", due_date="2030-06-01")
    service.create_task(MEMBER, session.project.id, "No date")

    run(session, "cal --month 2030-06")

    output = recording_console.export_text()
    assert "2030-06-01" in output
    assert "Ship release" in output
    assert "No date" not in output


def test_cal_bad_month_reports_error(session, recording_console):
    assert run(session, "cal --month june") is True
    assert "Invalid month" in recording_console.export_text()
