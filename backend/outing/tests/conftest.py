from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from outing.logic.entity import GameEntity
from outing.logic.enums import GameStatus
from outing.logic.types import ScoringPlayer
from outing.service import OutingService
from outing.settings import OutingSettings
from shared.db import Database, SqliteGameRepository

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pathlib import Path


# ============================================================================
# Test Builder Helpers
# ============================================================================

LIFECYCLE = (
    GameStatus.CREATED,
    GameStatus.OPEN,
    GameStatus.ENROLLMENT_COMPLETE,
    GameStatus.IN_PROGRESS,
    GameStatus.COMPLETED,
    GameStatus.FINALIZED,
)


class FakeClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start or datetime(2026, 5, 2, 8, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


def create_game(
    *,
    clock: FakeClock | None = None,
    date: str = "2026-05-02",
    course: str = "Monarch Dunes",
    **fields: Any,
) -> GameEntity:
    """Create a CREATED game with sensible defaults for testing."""
    return GameEntity.create(clock=clock or FakeClock(), date=date, course=course, **fields)


def advance_to(entity: GameEntity, target: GameStatus) -> GameEntity:
    """Walk a game forward through the lifecycle until it reaches target."""
    while entity.status != target:
        entity.transition_to(LIFECYCLE[LIFECYCLE.index(entity.status) + 1])
    return entity


def score_entry(player_id: str, scores: Sequence[int | None], course_handicap: float | None = None) -> dict[str, Any]:
    """Raw score entry with hole numbers starting at 1."""
    return {
        "playerId": player_id,
        "holes": {str(hole): score for hole, score in enumerate(scores, start=1)},
        "courseHandicap": course_handicap,
    }


def scoring_players(*handicaps: float) -> list[ScoringPlayer]:
    """Players p0, p1, ... with the given course handicaps."""
    return [ScoringPlayer(id=f"p{i}", name=f"Player{i}", course_handicap=h) for i, h in enumerate(handicaps)]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> OutingSettings:
    return OutingSettings(database_path=str(tmp_path / "outing.db"), log_dir=str(tmp_path / "logs"))


@pytest.fixture
def repository(settings: OutingSettings) -> Iterator[SqliteGameRepository]:
    db = Database(settings.database_path)
    db.connect()
    yield SqliteGameRepository(db)
    db.close()


@pytest.fixture
def service(repository: SqliteGameRepository, settings: OutingSettings, clock: FakeClock) -> OutingService:
    return OutingService(repository, settings, clock=clock)
