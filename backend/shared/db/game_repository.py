"""SQLite-backed game repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from outing.logic.exceptions import StaleGameError
from shared.dal.game_repository import GameRepository
from shared.dal.models import StoredGame

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


def _row_to_game(row: tuple[str, int, str]) -> StoredGame:
    game_id, version, data = row
    return StoredGame(game_id=game_id, version=version, data=json.loads(data))


class SqliteGameRepository(GameRepository):
    """SQLite implementation of GameRepository.

    Stores full game records as JSON with indexed date and status columns
    for listing. The version column is the optimistic concurrency token.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_game(self, data: Mapping[str, Any]) -> StoredGame:
        """Insert a game record at version 1.

        Logs a warning and returns the stored record on duplicate id.
        """
        game_id = data["id"]
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO games (id, date, status, version, data) VALUES (?, ?, ?, 1, ?)",
                    (game_id, data.get("date"), data.get("status"), json.dumps(dict(data))),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError:
                self._db.connection.rollback()
                logger.warning("game already exists, ignoring duplicate create", game_id=game_id)
                existing = self._fetch(game_id)
                if existing is not None:
                    return existing
                raise
        return StoredGame(game_id=game_id, version=1, data=dict(data))

    async def save_game(self, data: Mapping[str, Any], *, expected_version: int) -> StoredGame:
        """Overwrite a game if its stored version still equals expected_version.

        Raises:
            StaleGameError: If the game changed (or disappeared) since it was read.

        """
        game_id = data["id"]
        async with self._lock:
            cursor = self._db.connection.execute(
                "UPDATE games SET date = ?, status = ?, version = version + 1, data = ? WHERE id = ? AND version = ?",
                (data.get("date"), data.get("status"), json.dumps(dict(data)), game_id, expected_version),
            )
            self._db.connection.commit()
            if cursor.rowcount == 0:
                current = self._fetch(game_id)
                actual = current.version if current is not None else None
                logger.warning(
                    "stale game write rejected",
                    game_id=game_id,
                    expected_version=expected_version,
                    actual_version=actual,
                )
                raise StaleGameError(game_id=game_id, expected_version=expected_version, actual_version=actual)
        return StoredGame(game_id=game_id, version=expected_version + 1, data=dict(data))

    def _fetch(self, game_id: str) -> StoredGame | None:
        row = self._db.connection.execute(
            "SELECT id, version, data FROM games WHERE id = ?",
            (game_id,),
        ).fetchone()
        return _row_to_game(row) if row is not None else None

    async def get_game(self, game_id: str) -> StoredGame | None:
        """Retrieve a single game by its id."""
        return self._fetch(game_id)

    async def list_games(self, limit: int = 20, status: str | None = None) -> list[StoredGame]:
        """Retrieve games ordered by date descending, optionally filtered by status."""
        if status is None:
            rows = self._db.connection.execute(
                "SELECT id, version, data FROM games ORDER BY date DESC, id LIMIT ?",
                (limit,),
            ).fetchall()
        else:
            rows = self._db.connection.execute(
                "SELECT id, version, data FROM games WHERE status = ? ORDER BY date DESC, id LIMIT ?",
                (status, limit),
            ).fetchall()
        return [_row_to_game(row) for row in rows]

    async def delete_game(self, game_id: str) -> bool:
        """Delete a game. Returns False when no game had that id."""
        async with self._lock:
            cursor = self._db.connection.execute("DELETE FROM games WHERE id = ?", (game_id,))
            self._db.connection.commit()
        if cursor.rowcount == 0:
            logger.warning("delete_game had no effect (not found)", game_id=game_id)
            return False
        return True
