"""
Game record models for golf outings.

All models are frozen. Updates go through model_copy, so the status history
and score blocks of a previously returned record never change underneath a
caller.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from outing.logic.enums import GameStatus, SkinsFormat
from outing.logic.types import ScoreLedger, WireModel

MAX_GROUP_SIZE = 4
DEFAULT_TEE_TIME = "08:00"
DEFAULT_HOLES = 18


class StatusHistoryEntry(WireModel):
    """One lifecycle transition. Entries are only ever appended."""

    status: GameStatus
    timestamp: datetime
    previous_status: GameStatus | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class Group(WireModel):
    """A playing group (foursome) with optional shotgun start position."""

    player_ids: tuple[str, ...] = ()
    starting_hole: int | None = None
    starting_position: str | None = None  # e.g. "A"/"B" for two groups on one tee
    scorekeeper_id: str | None = None
    is_wolf_group: bool = False


class PlayerScore(WireModel):
    """Raw gross scores for one player, keyed by hole number."""

    player_id: str
    holes: dict[int, int | None] = Field(default_factory=dict)
    course_handicap: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_score_list(cls, data: Any) -> Any:  # noqa: ANN401
        """Accept the legacy ``scores`` list (index 0 = hole 1) in place of ``holes``."""
        if isinstance(data, dict) and "holes" not in data and isinstance(data.get("scores"), list):
            score_list = data["scores"]
            data = {k: v for k, v in data.items() if k != "scores"}
            data["holes"] = {i + 1: score for i, score in enumerate(score_list)}
        return data

    def gross(self, hole_number: int) -> int | None:
        return self.holes.get(hole_number)


class Scores(WireModel):
    """Raw entries plus the computed ledger and its lock flag."""

    raw: tuple[PlayerScore, ...] = ()
    calculated: ScoreLedger | None = None
    locked: bool = False


class GameRecord(WireModel):
    """The persisted shape of a game.

    Exactly these fields are serialized; anything else found in stored data
    is dropped on load.
    """

    id: str
    date: str | None = None
    time: str = DEFAULT_TEE_TIME
    course: str | None = None
    holes: int = DEFAULT_HOLES
    entry_fee: float = 0
    notes: str = ""
    ctp_hole: int | None = None
    ctp_player_id: str | None = None
    wolf_enabled: bool = False
    skins_format: SkinsFormat = SkinsFormat.MONARCH_HALF_STROKE

    status: GameStatus = GameStatus.CREATED
    status_history: tuple[StatusHistoryEntry, ...] = ()

    created_at: datetime | None = None
    opened_at: datetime | None = None
    enrollment_completed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    finalized_at: datetime | None = None

    groups: tuple[Group, ...] = ()
    scores: Scores = Field(default_factory=Scores)

    def to_json(self) -> dict[str, Any]:
        """Plain JSON-compatible snapshot with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @property
    def player_ids(self) -> list[str]:
        """Grouped player ids in group order, without duplicates."""
        seen: dict[str, None] = {}
        for group in self.groups:
            for player_id in group.player_ids:
                seen.setdefault(player_id, None)
        return list(seen)
