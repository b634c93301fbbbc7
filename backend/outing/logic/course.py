"""
Fixed hole table for Monarch Dunes, the only course outings are played on.
"""

from __future__ import annotations

from outing.logic.types import HoleDefinition

COURSE_NAME = "Monarch Dunes"

PARS = (4, 3, 5, 4, 4, 3, 4, 5, 4, 4, 4, 3, 5, 3, 5, 4, 3, 4)

# 1 = hardest hole
MEN_STROKE_INDEXES = (1, 15, 9, 3, 7, 11, 13, 5, 17, 2, 14, 16, 4, 18, 8, 12, 10, 6)
LADIES_STROKE_INDEXES = (1, 17, 7, 5, 11, 15, 9, 3, 13, 6, 12, 16, 2, 18, 4, 10, 14, 8)

DEFAULT_CTP_HOLE = 2

_SCORE_TYPES = {
    -3: "albatross",
    -2: "eagle",
    -1: "birdie",
    0: "par",
    1: "bogey",
    2: "double bogey",
}


def _rerank(indexes: tuple[int, ...]) -> tuple[int, ...]:
    """Renumber stroke indexes to 1..len(indexes), keeping their relative order."""
    order = sorted(range(len(indexes)), key=lambda i: indexes[i])
    ranks = [0] * len(indexes)
    for rank, position in enumerate(order, start=1):
        ranks[position] = rank
    return tuple(ranks)


def holes_for(hole_count: int = 18, *, ladies: bool = False) -> tuple[HoleDefinition, ...]:
    """Hole definitions for a round, ordered from hole 1.

    Nine-hole rounds play the front nine, whose stroke indexes are re-ranked
    to 1..9 so handicap allocation covers every hole.

    Raises:
        ValueError: If hole_count is not 9 or 18.

    """
    if hole_count not in (9, 18):
        msg = f"Unsupported hole count: {hole_count}"
        raise ValueError(msg)

    indexes = LADIES_STROKE_INDEXES if ladies else MEN_STROKE_INDEXES
    pars = PARS[:hole_count]
    indexes = indexes if hole_count == 18 else _rerank(indexes[:hole_count])
    return tuple(HoleDefinition(par=par, stroke_index=index) for par, index in zip(pars, indexes, strict=True))


def course_par(hole_count: int = 18) -> int:
    return sum(PARS[:hole_count])


def score_type(gross: int, par: int) -> str:
    diff = gross - par
    if diff in _SCORE_TYPES:
        return _SCORE_TYPES[diff]
    return "better than albatross" if diff < 0 else f"{diff} over par"
