"""
Stateful wrapper around a game record.

GameEntity owns lifecycle transitions and score mutation gating. The wrapped
GameRecord is frozen: every operation swaps in a new record built with
model_copy, so snapshots handed out earlier (and their status history) never
change.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from outing.logic.enums import GameStatus
from outing.logic.exceptions import (
    FinalizationError,
    GameValidationError,
    InvalidTransitionError,
    ScoresLockedError,
)
from outing.logic.state import GameRecord, PlayerScore, Scores, StatusHistoryEntry
from outing.logic.status import (
    SCORING_STATUSES,
    LifecycleAction,
    available_actions,
    timestamp_field,
    valid_next_statuses,
)
from outing.logic.types import ScoreLedger
from outing.logic.validator import (
    missing_ledger_players,
    validate_game,
    validate_game_creation,
    validate_scores,
    validate_transition,
    validate_updates,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from outing.logic.state import Group

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# snake_case attribute -> camelCase wire key
_WIRE_NAMES: dict[str, str] = {name: field.alias or name for name, field in GameRecord.model_fields.items()}
_KNOWN_WIRE_NAMES = frozenset(_WIRE_NAMES.values())


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_game_id() -> str:
    return f"game_{uuid.uuid4().hex}"


def _wire_value(value: Any) -> Any:  # noqa: ANN401
    """Convert models (and sequences of models) to their wire shape."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list | tuple):
        return [_wire_value(item) for item in value]
    return value


def _to_wire(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize snake_case or camelCase field names to wire names.

    Raises:
        GameValidationError: If a field is not part of the game record.

    """
    wire: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in fields.items():
        if key in _WIRE_NAMES:
            wire[_WIRE_NAMES[key]] = _wire_value(value)
        elif key in _KNOWN_WIRE_NAMES:
            wire[key] = _wire_value(value)
        else:
            unknown.append(f"Unknown game field: {key}")
    if unknown:
        raise GameValidationError(unknown, context="Invalid updates")
    return wire


def _parse_record(data: Mapping[str, Any]) -> GameRecord:
    try:
        return GameRecord.model_validate(data)
    except ValidationError as exc:
        errors = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
        raise GameValidationError(errors) from exc


def _check_ledger_players(scores: Scores) -> None:
    """Every player named in the ledger must have a raw score entry."""
    if scores.calculated is None:
        return
    ledger = scores.calculated
    referenced = ledger.player_ids | {r.winner_id for r in ledger.hole_results if r.winner_id}
    missing = missing_ledger_players([entry.player_id for entry in scores.raw], referenced)
    if missing:
        raise GameValidationError(
            [f"No raw scores for player {player_id}" for player_id in missing],
            context="Invalid calculated scores",
        )


class GameEntity:
    """A game record plus the operations that keep it consistent."""

    def __init__(self, record: GameRecord, *, clock: Clock = utc_now) -> None:
        self._record = record
        self._clock = clock

    @classmethod
    def create(cls, *, clock: Clock = utc_now, **fields: Any) -> GameEntity:  # noqa: ANN401
        """Schedule a new game in CREATED status.

        Raises:
            GameValidationError: If the scheduling fields are invalid.

        """
        data = _to_wire(fields)
        errors = validate_game_creation(data)
        if errors:
            raise GameValidationError(errors)

        now = clock()
        data.update(
            {
                "id": data.get("id") or new_game_id(),
                "status": GameStatus.CREATED,
                "createdAt": now,
                "statusHistory": [{"status": GameStatus.CREATED, "timestamp": now, "previousStatus": None}],
            },
        )
        entity = cls(_parse_record(data), clock=clock)
        logger.debug("created game %s for %s", entity.id, entity.record.date)
        return entity

    @classmethod
    def from_json(cls, data: Mapping[str, Any], *, clock: Clock = utc_now) -> GameEntity:
        """Rebuild an entity from a persisted record.

        Raises:
            GameValidationError: If the record does not have the game shape.

        """
        return cls(_parse_record(data), clock=clock)

    # ------------------------------------------------------------------
    # accessors

    @property
    def record(self) -> GameRecord:
        return self._record

    @property
    def id(self) -> str:
        return self._record.id

    @property
    def status(self) -> GameStatus:
        return self._record.status

    @property
    def scores(self) -> Scores:
        return self._record.scores

    @property
    def status_history(self) -> tuple[StatusHistoryEntry, ...]:
        return self._record.status_history

    @property
    def groups(self) -> tuple[Group, ...]:
        return self._record.groups

    @property
    def title(self) -> str:
        """Display title such as ``Oct 19, 2026 - Monarch Dunes``."""
        try:
            day = datetime.fromisoformat(self._record.date or "").date()
        except ValueError:
            return f"{self._record.date} - {self._record.course}"
        return f"{day:%b} {day.day}, {day.year} - {self._record.course}"

    def is_finalized(self) -> bool:
        return self._record.status == GameStatus.FINALIZED

    def validate(self) -> list[str]:
        return validate_game(self.to_json())

    # ------------------------------------------------------------------
    # lifecycle

    def can_transition_to(self, target: GameStatus | str) -> bool:
        return validate_transition(self._record.status, target).is_valid

    def valid_next_statuses(self) -> tuple[GameStatus, ...]:
        return valid_next_statuses(self._record.status)

    def available_actions(self) -> list[LifecycleAction]:
        return available_actions(self._record.status)

    def _next_timestamp(self) -> datetime:
        """Current time, clamped so history never goes backwards."""
        now = self._clock()
        history = self._record.status_history
        if history and now < history[-1].timestamp:
            return history[-1].timestamp
        return now

    def transition_to(self, target: GameStatus | str, metadata: Mapping[str, Any] | None = None) -> GameEntity:
        """Move the game to target, stamping its timestamp and appending history.

        Reaching FINALIZED always locks the scores.

        Raises:
            InvalidTransitionError: If target is not adjacent to the current status.

        """
        target_status = self._checked_target(target)
        return self._record_transition(target_status, metadata, self._next_timestamp())

    def _checked_target(self, target: GameStatus | str) -> GameStatus:
        check = validate_transition(self._record.status, target)
        if not check.is_valid:
            raise InvalidTransitionError(
                current=self._record.status,
                target=target,
                reason=check.reason or f"Invalid transition to {target}",
            )
        return GameStatus(target)

    def _record_transition(
        self,
        target_status: GameStatus,
        metadata: Mapping[str, Any] | None,
        timestamp: datetime,
    ) -> GameEntity:
        current = self._record.status
        entry = StatusHistoryEntry(
            status=target_status,
            timestamp=timestamp,
            previous_status=current,
            metadata=dict(metadata or {}),
        )
        updates: dict[str, Any] = {
            "status": target_status,
            timestamp_field(target_status): timestamp,
            "status_history": (*self._record.status_history, entry),
        }
        if target_status == GameStatus.FINALIZED:
            updates["scores"] = self._record.scores.model_copy(update={"locked": True})

        self._record = self._record.model_copy(update=updates)
        logger.debug("game %s moved from %s to %s", self.id, current.value, target_status.value)
        return self

    def finalize(self) -> GameEntity:
        """Lock results for a completed game that has calculated scores.

        Raises:
            FinalizationError: If the game is not COMPLETED or has no calculated scores.

        """
        if self._record.status != GameStatus.COMPLETED:
            raise FinalizationError("Cannot finalize a game that is not in Completed status")
        if self._record.scores.calculated is None:
            raise FinalizationError("Cannot finalize a game without calculated scores")
        target_status = self._checked_target(GameStatus.FINALIZED)
        timestamp = self._next_timestamp()
        return self._record_transition(
            target_status,
            {"resultsConfirmed": True, "finalizedTimestamp": timestamp.isoformat()},
            timestamp,
        )

    # ------------------------------------------------------------------
    # field and score updates

    def update(self, updates: Mapping[str, Any] | None = None, /, **fields: Any) -> GameEntity:  # noqa: ANN401
        """Apply a partial update.

        A status change is delegated entirely to transition_to; any other
        fields sent alongside it are ignored. Keys left out of a scores
        update keep their current values, and an empty ``calculated`` block
        keeps the existing ledger.

        Raises:
            GameValidationError: If the update is invalid for the current record.
            InvalidTransitionError: If the requested status is not reachable.
            ScoresLockedError: If scores change while locked.

        """
        changes = _to_wire({**(updates or {}), **fields})
        current = self.to_json()
        errors = validate_updates(current, changes)
        if errors:
            raise GameValidationError(errors, context="Invalid updates")

        requested = changes.pop("status", None)
        if requested is not None and GameStatus(requested) != self._record.status:
            if changes:
                logger.warning("ignoring fields sent with status change for game %s: %s", self.id, sorted(changes))
            return self.transition_to(requested)

        if not changes:
            return self

        if "scores" in changes:
            if self._record.scores.locked:
                raise ScoresLockedError("Scores are locked; unlock them before editing")
            scores = {**current["scores"], **changes["scores"]}
            errors = validate_scores(scores["raw"])
            if errors:
                raise GameValidationError(errors, context="Invalid scores")
            if not scores.get("calculated") and current["scores"].get("calculated"):
                scores["calculated"] = current["scores"]["calculated"]
            changes["scores"] = scores

        record = _parse_record({**current, **changes})
        _check_ledger_players(record.scores)
        self._record = record
        return self

    def update_scores(self, score_entries: Sequence[PlayerScore | Mapping[str, Any]]) -> GameEntity:
        """Replace the raw score entries, keeping any calculated ledger.

        Raises:
            GameValidationError: If any entry is invalid (the whole batch is rejected)
                or a player in the calculated ledger would lose their entry.
            ScoresLockedError: If scores are locked.

        """
        entries = _wire_value(score_entries)
        errors = validate_scores(entries)
        if errors:
            raise GameValidationError(errors, context="Invalid scores")
        if self._record.scores.locked:
            raise ScoresLockedError("Scores are locked; unlock them before editing")

        raw = tuple(PlayerScore.model_validate(entry) for entry in entries)
        scores = self._record.scores.model_copy(update={"raw": raw})
        _check_ledger_players(scores)
        self._record = self._record.model_copy(update={"scores": scores})
        logger.debug("game %s raw scores replaced for %d players", self.id, len(raw))
        return self

    def set_calculated_scores(self, ledger: ScoreLedger | Mapping[str, Any]) -> GameEntity:
        """Attach a computed results ledger, whatever the game status.

        Raises:
            GameValidationError: If the ledger is malformed or names players without raw scores.
            ScoresLockedError: If scores are locked.

        """
        if self._record.scores.locked:
            raise ScoresLockedError("Scores are locked; unlock them before editing")
        if not isinstance(ledger, ScoreLedger):
            try:
                ledger = ScoreLedger.model_validate(ledger)
            except ValidationError as exc:
                raise GameValidationError([str(exc)], context="Invalid calculated scores") from exc

        scores = self._record.scores.model_copy(update={"calculated": ledger})
        _check_ledger_players(scores)
        self._record = self._record.model_copy(update={"scores": scores})
        return self

    def unlock_scores(self) -> GameEntity:
        """Clear the lock flag left behind by an earlier finalize.

        Raises:
            ScoresLockedError: If the game is still FINALIZED.

        """
        if self._record.status == GameStatus.FINALIZED:
            raise ScoresLockedError("Finalized games keep their scores locked; revert to Completed first")
        self._record = self._record.model_copy(
            update={"scores": self._record.scores.model_copy(update={"locked": False})},
        )
        return self

    def can_modify_scores(self) -> bool:
        """Scores are editable while IN_PROGRESS or COMPLETED.

        The lock check only matters for FINALIZED games, which already fail
        the status check. A game reverted from FINALIZED to COMPLETED reports
        True here while ``scores.locked`` may still be set; call
        unlock_scores before editing it.
        """
        if self._record.status == GameStatus.FINALIZED and self._record.scores.locked:
            return False
        return self._record.status in SCORING_STATUSES

    # ------------------------------------------------------------------
    # serialization

    def to_json(self) -> dict[str, Any]:
        return self._record.to_json()

    def clone(self) -> GameEntity:
        return GameEntity.from_json(self.to_json(), clock=self._clock)

    def __repr__(self) -> str:
        return f"GameEntity(id={self.id!r}, status={self.status.value!r})"
