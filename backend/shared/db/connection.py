"""SQLite database connection and schema management."""

import json
import os
import sqlite3
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    date TEXT,
    status TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_games_date ON games (date);
CREATE INDEX IF NOT EXISTS idx_games_status ON games (status);
"""


class Database:
    """SQLite database wrapper with schema management and migration support."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        parent = Path(self._path).parent
        parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def migrate_from_json(self, legacy_json_path: str | None) -> int:
        """Import games from a legacy JSON export into the games table.

        The export is either a list of game records or an object keyed by
        game id. Returns the number of games imported. Skips migration when
        the path is None, the file does not exist, or the games table already
        has data. The entire migration runs in a single transaction; any
        failure causes a full rollback.
        """
        if legacy_json_path is None:
            return 0

        json_path = Path(legacy_json_path)
        if not json_path.exists():
            return 0

        conn = self.connection
        row = conn.execute("SELECT COUNT(*) FROM games").fetchone()
        if row[0] > 0:
            logger.info("games table already has data, skipping migration")
            return 0

        games = self._parse_legacy_json(json_path, legacy_json_path)
        self._insert_migrated_games(conn, games)

        count = len(games)
        logger.info("migrated games from legacy file", count=count, path=legacy_json_path)
        return count

    def _parse_legacy_json(self, json_path: Path, display_path: str) -> list[dict[str, Any]]:
        """Parse the legacy export and check each record carries a usable id."""
        try:
            raw = json_path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read legacy JSON file: {display_path}"
            raise OSError(msg) from exc

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Malformed JSON in legacy file: {display_path}"
            raise OSError(msg) from exc

        if isinstance(data, dict):
            records = list(data.items())
        elif isinstance(data, list):
            records = [(None, record) for record in data]
        else:
            msg = f"Expected JSON object or array at root in {display_path}"
            raise OSError(msg)

        games: list[dict[str, Any]] = []
        for key, record in records:
            if not isinstance(record, dict) or not isinstance(record.get("id"), str) or not record["id"]:
                msg = f"Invalid game record {key or len(games)} in {display_path}"
                raise OSError(msg)
            if key is not None and record["id"] != key:
                msg = f"Key mismatch in {display_path}: dict key '{key}' != game id '{record['id']}'"
                raise OSError(msg)
            games.append(record)

        return games

    @staticmethod
    def _insert_migrated_games(conn: sqlite3.Connection, games: list[dict[str, Any]]) -> None:
        """Insert all migrated games in a single transaction."""
        try:
            conn.execute("BEGIN")
            for game in games:
                conn.execute(
                    "INSERT INTO games (id, date, status, version, data) VALUES (?, ?, ?, 1, ?)",
                    (
                        game["id"],
                        game.get("date"),
                        game.get("status") or "created",
                        json.dumps(game),
                    ),
                )
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Covers the main DB file and the WAL/SHM sibling files created by WAL mode.
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
