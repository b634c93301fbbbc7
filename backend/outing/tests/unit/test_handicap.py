"""Tests for half-stroke handicap allocation and the course table."""

import pytest

from outing.logic.course import (
    LADIES_STROKE_INDEXES,
    MEN_STROKE_INDEXES,
    PARS,
    course_par,
    holes_for,
    score_type,
)
from outing.logic.handicap import allocate_round, allocate_strokes, allocate_whole_strokes, net_score


class TestAllocateStrokes:
    @pytest.mark.parametrize(
        ("handicap", "stroke_index", "expected"),
        [
            (0, 1, 0.0),
            (0, 18, 0.0),
            (None, 1, 0.0),
            (-3, 1, 0.0),
            (9, 9, 0.5),
            (9, 10, 0.0),
            (18, 18, 0.5),
            (27, 1, 1.0),
            (27, 9, 1.0),
            (27, 10, 0.5),
            (27, 18, 0.5),
            (36, 18, 1.0),
            (40, 2, 1.5),
            (40, 4, 1.5),
            (40, 5, 1.0),
            (54, 1, 1.5),
            (60, 6, 2.0),
        ],
    )
    def test_half_stroke_tiers(self, handicap, stroke_index, expected):
        assert allocate_strokes(handicap, stroke_index) == expected

    def test_fractional_handicap_truncated(self):
        assert allocate_strokes(9.7, 9) == 0.5
        assert allocate_strokes(9.7, 10) == 0.0

    def test_round_total_is_half_the_handicap(self):
        holes = holes_for(18)
        assert sum(allocate_round(27, holes)) == 13.5
        assert sum(allocate_round(18, holes)) == 9.0

    def test_round_follows_stroke_index_order(self):
        strokes = allocate_round(1, holes_for(18))
        assert strokes[0] == 0.5  # hole 1 is stroke index 1
        assert sum(strokes) == 0.5

    @pytest.mark.parametrize(
        ("handicap", "stroke_index", "expected"),
        [(None, 1, 0.0), (1, 1, 1.0), (1, 2, 0.0), (18, 18, 1.0), (27, 9, 2.0), (27, 10, 1.0)],
    )
    def test_whole_stroke_tiers(self, handicap, stroke_index, expected):
        assert allocate_whole_strokes(handicap, stroke_index) == expected

    def test_whole_stroke_round_total_is_the_handicap(self):
        assert sum(allocate_round(27, holes_for(18), allocate_whole_strokes)) == 27.0

    def test_net_score_is_fractional(self):
        assert net_score(4, 0.5) == 3.5
        assert net_score(1, 1.5) == -0.5


class TestCourse:
    def test_eighteen_holes(self):
        holes = holes_for(18)

        assert [h.par for h in holes] == list(PARS)
        assert [h.stroke_index for h in holes] == list(MEN_STROKE_INDEXES)
        assert course_par() == 71

    def test_nine_holes_rerank_front_nine(self):
        holes = holes_for(9)

        assert len(holes) == 9
        assert sorted(h.stroke_index for h in holes) == list(range(1, 10))
        # front nine indexes 1, 15, 9, 3, 7, 11, 13, 5, 17
        assert [h.stroke_index for h in holes] == [1, 8, 5, 2, 4, 6, 7, 3, 9]
        assert course_par(9) == 36

    def test_ladies_indexes(self):
        assert [h.stroke_index for h in holes_for(ladies=True)] == list(LADIES_STROKE_INDEXES)

    def test_unsupported_hole_count(self):
        with pytest.raises(ValueError, match="Unsupported hole count"):
            holes_for(12)

    @pytest.mark.parametrize(
        ("gross", "par", "expected"),
        [(2, 5, "albatross"), (3, 4, "birdie"), (4, 4, "par"), (6, 4, "double bogey"), (8, 4, "4 over par")],
    )
    def test_score_type(self, gross, par, expected):
        assert score_type(gross, par) == expected
