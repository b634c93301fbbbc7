"""Typed domain exceptions for outing lifecycle and scoring violations.

All domain-level violations use subclasses of OutingError rather than raw
ValueError, so callers can catch-and-convert at the service boundary.
None of them are fatal: each is raised synchronously by the call that
detected the problem.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from outing.logic.enums import GameStatus


class OutingError(Exception):
    """Base exception for outing rule violations."""


class GameValidationError(OutingError):
    """One or more fields of a game record or score batch are invalid.

    Attributes:
        errors: Every field-level message found; validation is all-or-nothing.

    """

    def __init__(self, errors: Iterable[str], *, context: str = "Invalid game") -> None:
        self.errors = list(errors)
        super().__init__(f"{context}: {', '.join(self.errors)}")


class InvalidTransitionError(OutingError):
    """Requested status change is not an edge of the lifecycle graph."""

    def __init__(self, *, current: GameStatus | None, target: GameStatus | str, reason: str) -> None:
        self.current = current
        self.target = target
        self.reason = reason
        super().__init__(reason)


class FinalizationError(OutingError):
    """Finalize preconditions (COMPLETED status, calculated scores) not met."""


class ScoresLockedError(OutingError):
    """Scores cannot be modified in the game's current state."""


class PotConfigurationError(OutingError):
    """Pot percentage splits exceed the whole pot while the limit is enforced."""


class GameNotFoundError(OutingError):
    """No stored game has the requested id."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game '{game_id}' not found")


class StaleGameError(OutingError):
    """Stored game changed since it was read (optimistic concurrency conflict)."""

    def __init__(self, *, game_id: str, expected_version: int, actual_version: int | None) -> None:
        self.game_id = game_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Game '{game_id}' was modified concurrently (expected version {expected_version}, found {actual_version})",
        )
