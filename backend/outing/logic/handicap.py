"""
Handicap stroke allocation.

Under Monarch Dunes rules players receive half a stroke per handicap stroke:
a course handicap of h gives 0.5 on every hole for each full 18 strokes, plus
another 0.5 on the (h mod 18) hardest holes by stroke index. Standard
allocation gives whole strokes in the same pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from outing.logic.types import HoleDefinition

HOLES_PER_CYCLE = 18
HALF_STROKE = 0.5
FULL_STROKE = 1.0


def _allocate(course_handicap: float | None, hole_stroke_index: int, per_stroke: float) -> float:
    if course_handicap is None or course_handicap <= 0:
        return 0.0
    full_cycles, remainder = divmod(int(course_handicap), HOLES_PER_CYCLE)
    strokes = full_cycles * per_stroke
    if hole_stroke_index <= remainder:
        strokes += per_stroke
    return strokes


def allocate_strokes(course_handicap: float | None, hole_stroke_index: int) -> float:
    """
    Half strokes received on a hole with the given stroke index (1 = hardest).

    Return 0 for a missing or non-positive handicap. Fractional handicaps are
    truncated to whole strokes.
    """
    return _allocate(course_handicap, hole_stroke_index, HALF_STROKE)


def allocate_whole_strokes(course_handicap: float | None, hole_stroke_index: int) -> float:
    """Standard allocation: one stroke per full 18, plus one on the (h mod 18) hardest holes."""
    return _allocate(course_handicap, hole_stroke_index, FULL_STROKE)


def allocate_round(
    course_handicap: float | None,
    holes: Sequence[HoleDefinition],
    allocate: Callable[[float | None, int], float] = allocate_strokes,
) -> tuple[float, ...]:
    """Strokes received on each hole of a round, in hole order."""
    return tuple(allocate(course_handicap, hole.stroke_index) for hole in holes)


def net_score(gross: int, strokes: float) -> float:
    return gross - strokes
