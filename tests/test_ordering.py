"""
Tests for the position allocator and rebalance planning.

Covers:
- compute_position for empty, append, prepend and between cases
- Failure detection (inverted/collided neighbors, exhausted precision)
- rebalance_positions, insertion_index, plan_rebalance
"""

import math

import pytest

from chyra.core.constants import BASE_POSITION, POSITION_STEP
from chyra.core.exceptions import (
    InvalidNeighborOrderError,
    OrderingError,
    PrecisionExhaustedError,
    RebalanceError,
)
from chyra.core.ordering import (
    compute_position,
    insertion_index,
    is_strictly_between,
    plan_rebalance,
    rebalance_positions,
)


# --- compute_position ---

def test_empty_column_gets_base():
    assert compute_position() == BASE_POSITION == 1000


def test_append_after_single_task():
    assert compute_position(1000.0, None) == 2000


def test_insert_between_two_tasks():
    assert compute_position(1000.0, 2000.0) == 1500


def test_prepend_halves_next():
    assert compute_position(None, 1000.0) == 500


@pytest.mark.parametrize("next_position", [1e-300, 0.001, 1.0, 1000.0, 5e15, 1e300])
def test_prepend_is_below_next(next_position):
    assert compute_position(None, next_position) < next_position


@pytest.mark.parametrize("prev_position", [-1e6, -1.0, 0.0, 0.5, 1000.0, 1e12])
def test_append_adds_step(prev_position):
    position = compute_position(prev_position, None)
    assert position > prev_position
    assert position == prev_position + POSITION_STEP


@pytest.mark.parametrize(
    "prev_position, next_position",
    [(0.0, 1.0), (-5.0, 5.0), (1000.0, 1000.5), (1.0, 1.0 + 2 ** -40), (-3000.0, -2000.0)],
)
def test_between_is_strictly_inside(prev_position, next_position):
    position = compute_position(prev_position, next_position)
    assert prev_position < position < next_position


def test_zero_is_a_real_position():
    # 0 must not be mistaken for "no neighbor"
    assert compute_position(0.0, None) == POSITION_STEP
    assert compute_position(-2000.0, 0.0) == -1000.0


def test_equal_neighbors_raise_invalid_order():
    with pytest.raises(InvalidNeighborOrderError):
        compute_position(1000.0, 1000.0)


def test_inverted_neighbors_raise_invalid_order():
    with pytest.raises(InvalidNeighborOrderError) as exc_info:
        compute_position(2000.0, 1000.0)
    assert exc_info.value.prev == 2000.0
    assert exc_info.value.next == 1000.0


def test_sub_ulp_gap_collapses_to_equal_neighbors():
    # 2^-50 is below the spacing of doubles around 1000
    assert 1000.0 + 2 ** -50 == 1000.0
    with pytest.raises(OrderingError):
        compute_position(1000.0, 1000.0 + 2 ** -50)


def test_adjacent_doubles_exhaust_precision():
    upper = math.nextafter(1000.0, math.inf)
    with pytest.raises(PrecisionExhaustedError):
        compute_position(1000.0, upper)


def test_repeated_bisection_is_detected_before_duplicates():
    """Bisecting toward one neighbor fails loudly instead of colliding."""
    low, high = 1000.0, 2000.0
    seen = set()
    with pytest.raises(PrecisionExhaustedError):
        for _ in range(60):
            high = compute_position(low, high)
            assert high not in seen
            assert low < high
            seen.add(high)
    # about 53 halvings fit before the gap shrinks to one ulp
    assert 50 <= len(seen) < 60


def test_prepend_before_non_positive_next_is_exhausted():
    with pytest.raises(PrecisionExhaustedError):
        compute_position(None, 0.0)
    with pytest.raises(PrecisionExhaustedError):
        compute_position(None, -10.0)


def test_append_step_lost_on_huge_prev():
    with pytest.raises(PrecisionExhaustedError):
        compute_position(1e20, None)


def test_non_finite_input_is_exhausted():
    with pytest.raises(PrecisionExhaustedError):
        compute_position(math.inf, None)
    with pytest.raises(PrecisionExhaustedError):
        compute_position(None, math.nan)


def test_is_strictly_between():
    assert is_strictly_between(1.5, 1.0, 2.0)
    assert not is_strictly_between(1.0, 1.0, 2.0)
    assert not is_strictly_between(2.0, 1.0, 2.0)
    assert is_strictly_between(5.0)
    assert not is_strictly_between(math.nan)


# --- rebalance helpers ---

def test_rebalance_positions_are_base_plus_steps():
    assert rebalance_positions(4) == [1000.0, 2000.0, 3000.0, 4000.0]
    assert rebalance_positions(0) == []


def test_rebalance_positions_rejects_negative_count():
    with pytest.raises(ValueError):
        rebalance_positions(-1)


def test_insertion_index_prefers_prev():
    ids = ["a", "b", "c"]
    assert insertion_index(ids, "a", "b") == 1
    assert insertion_index(ids, None, "b") == 1
    assert insertion_index(ids, "c", None) == 3
    assert insertion_index(ids, None, None) == 3
    assert insertion_index(ids, "gone", "c") == 2
    assert insertion_index(ids, "gone", "also-gone") == 3


def test_plan_rebalance_renumbers_and_places():
    positions, new_position = plan_rebalance(["a", "b", "c"], "a", "b")
    assert positions == {"a": 1000.0, "b": 2000.0, "c": 3000.0}
    assert new_position == 1500.0


def test_plan_rebalance_prepend_and_append():
    _, first = plan_rebalance(["a", "b"], None, "a")
    assert first == 500.0
    _, last = plan_rebalance(["a", "b"], "b", None)
    assert last == 3000.0


def test_plan_rebalance_empty_column():
    positions, new_position = plan_rebalance([], None, None)
    assert positions == {}
    assert new_position == BASE_POSITION


def test_plan_rebalance_failure_is_rebalance_error(monkeypatch):
    from chyra.core import ordering

    monkeypatch.setattr(ordering, "rebalance_positions", lambda count: [1000.0] * count)
    with pytest.raises(RebalanceError):
        plan_rebalance(["a", "b"], "a", "b")
