"""
Tests for the local board mirror (grouping, drop targets, optimistic moves).

Pure functions: no database involved.
"""

from dataclasses import replace

import pytest

from chyra.core.board import (
    apply_optimistic_move,
    fill_neighbors,
    group_by_due_date,
    group_by_status,
    neighbors_for_drop,
)
from chyra.core.exceptions import TaskNotFoundError
from chyra.core.models import Task


def make_task(task_id, status="TODO", position=1000.0, created_at="2030-01-01T00:00:00"):
    return Task(
        id=task_id,
        project_id="p1",
        workspace_id="w1",
        content=task_id.upper(),
        status=status,
        position=position,
        created_at=created_at,
    )


@pytest.fixture
def columns():
    return group_by_status([
        make_task("c", position=3000.0),
        make_task("a", position=1000.0),
        make_task("b", position=2000.0),
        make_task("d", status="DONE", position=1000.0),
    ])


def ids(columns, status):
    return [t.id for t in columns[status]]


# --- group_by_status ---

def test_group_by_status_sorts_each_column(columns):
    assert ids(columns, "TODO") == ["a", "b", "c"]
    assert ids(columns, "DONE") == ["d"]
    assert columns["BACKLOG"] == []
    assert list(columns) == ["BACKLOG", "TODO", "IN_PROGRESS", "DONE", "CANCELED"]


def test_group_by_status_breaks_ties_by_creation_then_id():
    columns = group_by_status([
        make_task("z", created_at="2030-01-01T00:00:02"),
        make_task("y", created_at="2030-01-01T00:00:01"),
        make_task("x", created_at="2030-01-01T00:00:01"),
    ])
    assert ids(columns, "TODO") == ["x", "y", "z"]


def test_group_by_status_drops_unknown_statuses():
    columns = group_by_status([make_task("a", status="ARCHIVED")])
    assert all(not tasks for tasks in columns.values())


# --- neighbors_for_drop ---

def test_drop_on_column_appends(columns):
    assert neighbors_for_drop(columns, "d", "TODO") == ("c", None)


def test_drop_on_empty_column(columns):
    assert neighbors_for_drop(columns, "a", "IN_PROGRESS") == (None, None)


def test_drop_on_card_inserts_after_it(columns):
    assert neighbors_for_drop(columns, "d", "TODO", over_task_id="a") == ("a", "b")
    assert neighbors_for_drop(columns, "d", "TODO", over_task_id="c") == ("c", None)


def test_drop_ignores_dragged_card(columns):
    assert neighbors_for_drop(columns, "b", "TODO", over_task_id="a") == ("a", "c")
    assert neighbors_for_drop(columns, "c", "TODO") == ("b", None)


# --- fill_neighbors ---

def test_fill_neighbors(columns):
    todo = columns["TODO"]
    assert fill_neighbors(todo, "d") == ("c", None)
    assert fill_neighbors(todo, "d", prev_id="a") == ("a", "b")
    assert fill_neighbors(todo, "d", next_id="b") == ("a", "b")
    assert fill_neighbors(todo, "d", next_id="a") == (None, "a")
    assert fill_neighbors(todo, "d", prev_id="a", next_id="c") == ("a", "c")
    assert fill_neighbors(todo, "a", next_id="c") == ("b", "c")
    assert fill_neighbors(todo, "d", prev_id="ghost") == ("ghost", None)


# --- apply_optimistic_move ---

def test_optimistic_move_between(columns):
    moved = apply_optimistic_move(columns, "d", "TODO", "a", "b")

    assert ids(moved, "TODO") == ["a", "d", "b", "c"]
    assert ids(moved, "DONE") == []
    assert moved["TODO"][1].position == 1500.0
    assert moved["TODO"][1].status == "TODO"


def test_optimistic_move_does_not_mutate_input(columns):
    apply_optimistic_move(columns, "d", "TODO", "a", "b")

    assert ids(columns, "TODO") == ["a", "b", "c"]
    assert ids(columns, "DONE") == ["d"]
    assert columns["DONE"][0].status == "DONE"


def test_optimistic_move_within_column(columns):
    moved = apply_optimistic_move(columns, "c", "TODO", None, "a")

    assert ids(moved, "TODO") == ["c", "a", "b"]
    assert moved["TODO"][0].position == 500.0


def test_optimistic_move_to_empty_column(columns):
    moved = apply_optimistic_move(columns, "b", "IN_PROGRESS")

    assert ids(moved, "IN_PROGRESS") == ["b"]
    assert moved["IN_PROGRESS"][0].position == 1000.0
    assert ids(moved, "TODO") == ["a", "c"]


def test_optimistic_move_ignores_neighbors_elsewhere(columns):
    moved = apply_optimistic_move(columns, "a", "DONE", "b", None)

    # b isn't in DONE: with no usable neighbor the task is appended
    assert ids(moved, "DONE") == ["d", "a"]
    assert moved["DONE"][-1].position == 2000.0


def test_optimistic_move_after_mid_column_card(columns):
    moved = apply_optimistic_move(columns, "d", "TODO", "a", None)

    assert ids(moved, "TODO") == ["a", "d", "b", "c"]
    assert moved["TODO"][1].position == 1500.0


def test_optimistic_move_rebalances_collisions():
    columns = group_by_status([
        make_task("a", position=1000.0, created_at="2030-01-01T00:00:01"),
        make_task("b", position=1000.0, created_at="2030-01-01T00:00:02"),
        make_task("x", status="BACKLOG"),
    ])

    moved = apply_optimistic_move(columns, "x", "TODO", "a", "b")

    assert ids(moved, "TODO") == ["a", "x", "b"]
    assert [t.position for t in moved["TODO"]] == [1000.0, 1500.0, 2000.0]


def test_optimistic_move_unknown_task(columns):
    with pytest.raises(TaskNotFoundError):
        apply_optimistic_move(columns, "nope", "TODO")


# --- group_by_due_date ---

def test_group_by_due_date_orders_days_then_urgency():
    tasks = [
        replace(make_task("a"), due_date="2030-06-02"),
        replace(make_task("b", status="DONE"), due_date="2030-06-01", priority="LOW"),
        replace(make_task("c"), due_date="2030-06-01", priority="URGENT"),
        make_task("d"),
        replace(make_task("e", status="IN_PROGRESS"), due_date="2030-06-01", priority="LOW"),
    ]

    days = group_by_due_date(tasks)

    assert list(days) == ["2030-06-01", "2030-06-02"]
    assert [t.id for t in days["2030-06-01"]] == ["c", "e", "b"]
    assert [t.id for t in days["2030-06-02"]] == ["a"]


def test_group_by_due_date_month_filter():
    tasks = [
        replace(make_task("a"), due_date="2030-06-30"),
        replace(make_task("b"), due_date="2030-07-01"),
    ]

    assert list(group_by_due_date(tasks, month="2030-07")) == ["2030-07-01"]
    assert group_by_due_date(tasks, month="2031-01") == {}
