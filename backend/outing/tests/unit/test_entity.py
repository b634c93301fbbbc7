"""Tests for GameEntity lifecycle and score mutation gating."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from outing.logic.entity import GameEntity
from outing.logic.enums import GameStatus, HoleStatus
from outing.logic.exceptions import (
    FinalizationError,
    GameValidationError,
    InvalidTransitionError,
    ScoresLockedError,
)
from outing.logic.types import HoleResult, PlayerResult, ScoreLedger
from outing.tests.conftest import FakeClock, advance_to, create_game, score_entry


def _ledger(*player_ids: str) -> ScoreLedger:
    return ScoreLedger(
        hole_results=(
            HoleResult(hole_number=1, par=4, stroke_index=1, status=HoleStatus.WON, winner_id=player_ids[0]),
        ),
        player_results=tuple(PlayerResult(player_id=player_id) for player_id in player_ids),
        total_skins=1,
    )


def _completed_with_results() -> GameEntity:
    game = advance_to(create_game(), GameStatus.COMPLETED)
    game.update_scores([score_entry("a", [4]), score_entry("b", [5])])
    game.set_calculated_scores(_ledger("a", "b"))
    return game


class TestCreate:
    def test_new_game_starts_created(self):
        clock = FakeClock()
        start = clock.now
        game = create_game(clock=clock, entry_fee=20, ctp_hole=7)

        assert game.status == GameStatus.CREATED
        assert game.id.startswith("game_")
        assert game.record.created_at == start
        assert game.record.entry_fee == 20
        assert game.record.ctp_hole == 7
        assert len(game.status_history) == 1
        assert game.status_history[0].previous_status is None
        assert game.validate() == []

    def test_invalid_creation_lists_every_problem(self):
        with pytest.raises(GameValidationError) as exc_info:
            GameEntity.create(date="tomorrow", time="8am", holes=12)

        assert "Game course is required" in exc_info.value.errors
        assert "Invalid date format" in exc_info.value.errors
        assert "Holes must be either 9 or 18" in exc_info.value.errors

    def test_unknown_field_rejected(self):
        with pytest.raises(GameValidationError, match="Unknown game field: tee_box"):
            create_game(tee_box="gold")

    def test_title(self):
        assert create_game(date="2026-05-02").title == "May 2, 2026 - Monarch Dunes"


class TestTransitions:
    def test_transition_stamps_timestamp_and_history(self):
        clock = FakeClock()
        game = create_game(clock=clock)
        opened_at = clock.now

        game.transition_to(GameStatus.OPEN, {"by": "organizer"})

        assert game.status == GameStatus.OPEN
        assert game.record.opened_at == opened_at
        last = game.status_history[-1]
        assert last.status == GameStatus.OPEN
        assert last.previous_status == GameStatus.CREATED
        assert last.metadata == {"by": "organizer"}

    def test_invalid_transition_raises(self):
        game = create_game()

        with pytest.raises(InvalidTransitionError) as exc_info:
            game.transition_to(GameStatus.IN_PROGRESS)

        assert exc_info.value.current == GameStatus.CREATED
        assert game.status == GameStatus.CREATED
        assert len(game.status_history) == 1

    def test_backward_transition_keeps_timestamps(self):
        game = advance_to(create_game(), GameStatus.ENROLLMENT_COMPLETE)
        closed_at = game.record.enrollment_completed_at

        game.transition_to(GameStatus.OPEN)

        assert game.record.enrollment_completed_at == closed_at
        assert game.status_history[-1].previous_status == GameStatus.ENROLLMENT_COMPLETE

    def test_reentering_state_overwrites_its_timestamp(self):
        game = advance_to(create_game(), GameStatus.ENROLLMENT_COMPLETE)
        first_open = game.record.opened_at

        game.transition_to(GameStatus.OPEN)

        assert game.record.opened_at > first_open

    def test_earlier_history_snapshots_never_change(self):
        game = create_game()
        snapshot = game.status_history

        game.transition_to(GameStatus.OPEN)

        assert len(snapshot) == 1
        assert len(game.status_history) == 2

    def test_clock_running_backwards_is_clamped(self):
        clock = FakeClock(step=timedelta(minutes=-5))
        game = create_game(clock=clock)

        game.transition_to(GameStatus.OPEN)

        first, second = game.status_history
        assert second.timestamp == first.timestamp
        assert game.validate() == []

    def test_can_transition_to(self):
        game = create_game()
        assert game.can_transition_to(GameStatus.OPEN)
        assert not game.can_transition_to(GameStatus.FINALIZED)
        assert game.valid_next_statuses() == (GameStatus.OPEN,)
        assert [a.next_status for a in game.available_actions()] == [GameStatus.OPEN]


class TestFinalize:
    def test_requires_completed_status(self):
        game = advance_to(create_game(), GameStatus.IN_PROGRESS)

        with pytest.raises(FinalizationError, match="not in Completed status"):
            game.finalize()

    def test_requires_calculated_scores(self):
        game = advance_to(create_game(), GameStatus.COMPLETED)

        with pytest.raises(FinalizationError, match="without calculated scores"):
            game.finalize()

    def test_finalize_locks_and_records_metadata(self):
        game = _completed_with_results()

        game.finalize()

        assert game.is_finalized()
        assert game.scores.locked
        assert not game.can_modify_scores()
        assert game.status_history[-1].metadata["resultsConfirmed"] is True
        assert "finalizedTimestamp" in game.status_history[-1].metadata

    def test_finalized_timestamp_matches_history_entry(self):
        game = _completed_with_results()

        game.finalize()

        last = game.status_history[-1]
        assert last.metadata["finalizedTimestamp"] == last.timestamp.isoformat()
        assert game.record.finalized_at == last.timestamp

    def test_transition_to_finalized_always_locks(self):
        game = _completed_with_results()

        game.transition_to(GameStatus.FINALIZED)

        assert game.scores.locked
        assert not game.can_modify_scores()


class TestScoreLock:
    def test_lock_survives_unfinalize(self):
        game = _completed_with_results().finalize()

        game.transition_to(GameStatus.COMPLETED)

        assert game.scores.locked
        assert game.can_modify_scores()
        with pytest.raises(ScoresLockedError):
            game.update_scores([score_entry("a", [3])])

    def test_unlock_after_unfinalize_allows_edits(self):
        game = _completed_with_results().finalize()
        game.transition_to(GameStatus.COMPLETED)

        game.unlock_scores()
        game.update_scores([score_entry("a", [3]), score_entry("b", [5])])

        assert game.scores.raw[0].holes == {1: 3}

    def test_unlock_refused_while_finalized(self):
        game = _completed_with_results().finalize()

        with pytest.raises(ScoresLockedError):
            game.unlock_scores()

    def test_locked_scores_reject_new_ledger(self):
        game = _completed_with_results().finalize().transition_to(GameStatus.COMPLETED)

        with pytest.raises(ScoresLockedError):
            game.set_calculated_scores(_ledger("a"))


class TestScores:
    def test_update_scores_preserves_calculated(self):
        game = _completed_with_results()
        ledger = game.scores.calculated

        game.update_scores([score_entry("a", [3, 4]), score_entry("b", [5, 5])])

        assert game.scores.calculated == ledger
        assert game.scores.raw[1].holes == {1: 5, 2: 5}

    def test_invalid_batch_rejected_whole(self):
        game = advance_to(create_game(), GameStatus.IN_PROGRESS)
        game.update_scores([score_entry("a", [4])])

        with pytest.raises(GameValidationError):
            game.update_scores([score_entry("a", [3]), score_entry("b", [0])])

        assert [entry.player_id for entry in game.scores.raw] == ["a"]

    def test_legacy_score_list_accepted(self):
        game = advance_to(create_game(), GameStatus.IN_PROGRESS)

        game.update_scores([{"playerId": "a", "scores": [4, None, 5]}])

        assert game.scores.raw[0].holes == {1: 4, 2: None, 3: 5}

    def test_ledger_needs_raw_entries(self):
        game = advance_to(create_game(), GameStatus.COMPLETED)
        game.update_scores([score_entry("a", [4])])

        with pytest.raises(GameValidationError, match="No raw scores for player b"):
            game.set_calculated_scores(_ledger("a", "b"))

    def test_ledger_accepted_in_any_status(self):
        game = create_game()
        game.update_scores([score_entry("a", [4])])

        game.set_calculated_scores(_ledger("a"))

        assert game.scores.calculated is not None

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (GameStatus.CREATED, False),
            (GameStatus.OPEN, False),
            (GameStatus.ENROLLMENT_COMPLETE, False),
            (GameStatus.IN_PROGRESS, True),
            (GameStatus.COMPLETED, True),
        ],
    )
    def test_can_modify_scores_by_status(self, status, expected):
        assert advance_to(create_game(), status).can_modify_scores() is expected


class TestUpdate:
    def test_merges_plain_fields(self):
        game = create_game()

        game.update(notes="cart path only", entryFee=25)

        assert game.record.notes == "cart path only"
        assert game.record.entry_fee == 25

    def test_status_change_delegates_to_transition(self):
        game = create_game()

        game.update({"status": "open", "notes": "ignored"})

        assert game.status == GameStatus.OPEN
        assert game.record.opened_at is not None
        assert game.record.notes == ""

    def test_invalid_status_change(self):
        with pytest.raises(GameValidationError, match='Cannot transition from "created" to "completed"'):
            create_game().update(status="completed")

    def test_finalized_game_is_read_only(self):
        game = _completed_with_results().finalize()

        with pytest.raises(GameValidationError, match="Finalized games cannot be modified"):
            game.update(notes="late edit")

        game.update(status=GameStatus.COMPLETED)
        assert game.status == GameStatus.COMPLETED

    def test_scores_update_keeps_existing_calculated(self):
        game = _completed_with_results()

        game.update(scores={"raw": [score_entry("a", [3]), score_entry("b", [4])]})

        assert game.scores.calculated is not None
        assert game.scores.raw[0].holes == {1: 3}

    def test_scores_update_of_none_rejected(self):
        game = _completed_with_results()

        with pytest.raises(GameValidationError, match="Scores must be an object"):
            game.update(scores=None)

        assert [entry.player_id for entry in game.scores.raw] == ["a", "b"]

    def test_partial_scores_update_keeps_raw(self):
        game = _completed_with_results()

        game.update(scores={"calculated": None})

        assert [entry.player_id for entry in game.scores.raw] == ["a", "b"]
        assert game.scores.calculated is not None

    def test_scores_update_while_locked(self):
        game = _completed_with_results().finalize().transition_to(GameStatus.COMPLETED)

        with pytest.raises(ScoresLockedError):
            game.update(scores={"raw": []})

    def test_group_update_validated(self):
        with pytest.raises(GameValidationError, match="more than 4 players"):
            create_game().update(groups=[{"playerIds": ["a", "b", "c", "d", "e"]}])


class TestSerialization:
    def test_round_trip(self):
        game = _completed_with_results().finalize()

        restored = GameEntity.from_json(game.to_json())

        assert restored.record == game.record
        assert restored.to_json() == game.to_json()

    def test_snapshot_has_exactly_the_persisted_fields(self):
        assert set(create_game().to_json()) == {
            "id",
            "date",
            "time",
            "course",
            "holes",
            "entryFee",
            "notes",
            "ctpHole",
            "ctpPlayerId",
            "wolfEnabled",
            "skinsFormat",
            "status",
            "statusHistory",
            "createdAt",
            "openedAt",
            "enrollmentCompletedAt",
            "startedAt",
            "completedAt",
            "finalizedAt",
            "groups",
            "scores",
        }

    def test_clone_is_independent(self):
        game = create_game()
        copy = game.clone()

        copy.transition_to(GameStatus.OPEN)

        assert game.status == GameStatus.CREATED

    def test_unknown_persisted_fields_dropped(self):
        data = create_game().to_json()
        data["legacyField"] = 1

        assert "legacyField" not in GameEntity.from_json(data).to_json()

    def test_malformed_record(self):
        with pytest.raises(GameValidationError):
            GameEntity.from_json({"id": "g", "status": "paused"})

    def test_naive_history_timestamps_read_as_utc(self):
        data = create_game().to_json()
        data["statusHistory"][0]["timestamp"] = "2026-05-02T08:00:00"

        game = GameEntity.from_json(data)

        assert game.status_history[0].timestamp == datetime(2026, 5, 2, 8, 0, tzinfo=UTC)
