"""Abstract interface for outing game persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shared.dal.models import StoredGame


class GameRepository(ABC):
    """Abstract interface for outing game persistence.

    Records are stored as plain camelCase mappings. Every save names the
    version it was read at; a mismatch means another writer got there first.
    """

    @abstractmethod
    async def create_game(self, data: Mapping[str, Any]) -> StoredGame: ...

    @abstractmethod
    async def save_game(self, data: Mapping[str, Any], *, expected_version: int) -> StoredGame: ...

    @abstractmethod
    async def get_game(self, game_id: str) -> StoredGame | None: ...

    @abstractmethod
    async def list_games(self, limit: int = 20, status: str | None = None) -> list[StoredGame]: ...

    @abstractmethod
    async def delete_game(self, game_id: str) -> bool: ...
