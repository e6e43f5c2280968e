"""
FILE: chyra/core/ordering.py
PURPOSE: Fractional positions for ordering tasks inside a board column
EXPORTS:
  - compute_position(prev_position, next_position) -> float
  - is_strictly_between(position, prev_position, next_position) -> bool
  - rebalance_positions(count) -> List[float]
  - insertion_index(ordered_ids, prev_id, next_id) -> int
  - plan_rebalance(ordered_ids, prev_id, next_id) -> (Dict[str, float], float)
DEPENDENCIES:
  - math (stdlib)
  - chyra.core.constants (BASE_POSITION, POSITION_STEP)
  - chyra.core.exceptions (InvalidNeighborOrderError, PrecisionExhaustedError, RebalanceError)
NOTES:
  - Pure functions, no I/O; persistence is the caller's job
  - A column is an implicit namespace: nothing here knows about tasks or storage
  - Positions are floats; repeated bisection between the same two neighbors
    eventually collapses onto one of them, which is reported as
    PrecisionExhaustedError so the caller can rebalance the column
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import BASE_POSITION, POSITION_STEP
from .exceptions import (
    InvalidNeighborOrderError,
    PrecisionExhaustedError,
    RebalanceError,
)


def is_strictly_between(
    position: float,
    prev_position: Optional[float] = None,
    next_position: Optional[float] = None,
) -> bool:
    """
    Check that position sits strictly inside the (optional) bounds.

    Missing bounds are open. Non-finite values never qualify.
    """
    if not math.isfinite(position):
        return False
    if prev_position is not None and not position > prev_position:
        return False
    if next_position is not None and not position < next_position:
        return False
    return True


def compute_position(
    prev_position: Optional[float] = None,
    next_position: Optional[float] = None,
) -> float:
    """
    Compute a position for an item placed between two optional neighbors.

    Args:
        prev_position: Position of the item that will precede it (None = none)
        next_position: Position of the item that will follow it (None = none)

    Returns:
        - BASE_POSITION for an empty column
        - next_position / 2 when prepending
        - prev_position + POSITION_STEP when appending
        - the midpoint when inserting between two neighbors

    Raises:
        InvalidNeighborOrderError: Both neighbors given and prev >= next
        PrecisionExhaustedError: The result is not strictly inside its bounds
            (midpoint collapsed onto a neighbor, next <= 0 when prepending,
            the step vanished on a huge prev, or non-finite input)

    Notes:
        - None means "absent"; 0.0 is an ordinary position
        - Callers must pass neighbors read from the target column right
          before calling, already in column order
    """
    if prev_position is None and next_position is None:
        return BASE_POSITION

    if prev_position is None:
        position = next_position / 2
    elif next_position is None:
        position = prev_position + POSITION_STEP
    else:
        if math.isfinite(prev_position) and math.isfinite(next_position) \
                and prev_position >= next_position:
            raise InvalidNeighborOrderError(prev_position, next_position)
        position = (prev_position + next_position) / 2

    if not is_strictly_between(position, prev_position, next_position):
        raise PrecisionExhaustedError(position, prev_position, next_position)

    return position


def rebalance_positions(count: int) -> List[float]:
    """
    Evenly spaced positions for a column of `count` items.

    Returns BASE_POSITION, BASE_POSITION + POSITION_STEP, ... regardless of
    what the items held before.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    return [BASE_POSITION + index * POSITION_STEP for index in range(count)]


def insertion_index(
    ordered_ids: Sequence[str],
    prev_id: Optional[str] = None,
    next_id: Optional[str] = None,
) -> int:
    """
    Index at which an item lands in `ordered_ids` (which must not contain it).

    The previous neighbor wins when both are known: the item goes right
    after it. Otherwise it goes right before the next neighbor, or at the end
    when neither neighbor is in the list.
    """
    if prev_id is not None and prev_id in ordered_ids:
        return list(ordered_ids).index(prev_id) + 1
    if next_id is not None and next_id in ordered_ids:
        return list(ordered_ids).index(next_id)
    return len(ordered_ids)


def plan_rebalance(
    ordered_ids: Sequence[str],
    prev_id: Optional[str] = None,
    next_id: Optional[str] = None,
) -> Tuple[Dict[str, float], float]:
    """
    Renumber a column and place one new item into it.

    Args:
        ordered_ids: IDs of the column's items in display order, without the
            item being placed
        prev_id: Intended previous neighbor of the new item
        next_id: Intended next neighbor of the new item

    Returns:
        (positions, new_position): fresh positions for every existing ID and
        the position for the inserted item, computed against its renumbered
        neighbors

    Raises:
        RebalanceError: The fixed-step layout still could not host the item
    """
    renumbered = dict(zip(ordered_ids, rebalance_positions(len(ordered_ids))))
    index = insertion_index(ordered_ids, prev_id, next_id)

    before = renumbered[ordered_ids[index - 1]] if index > 0 else None
    after = renumbered[ordered_ids[index]] if index < len(ordered_ids) else None

    try:
        new_position = compute_position(before, after)
    except (InvalidNeighborOrderError, PrecisionExhaustedError) as e:
        raise RebalanceError(f"Rebalanced column cannot host insertion: {e}") from e

    values = list(renumbered.values())
    if any(a >= b for a, b in zip(values, values[1:])):
        raise RebalanceError("Rebalanced positions are not strictly increasing")

    return renumbered, new_position
