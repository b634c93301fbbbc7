"""Composition root: wires logging, the SQLite database and the outing service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import structlog

from outing.service import OutingService
from outing.settings import OutingSettings
from shared.db import Database, SqliteGameRepository
from shared.logging import setup_logging

logger = structlog.get_logger()


@dataclass
class OutingApp:
    """A ready service plus the database it owns."""

    settings: OutingSettings
    database: Database
    service: OutingService

    def close(self) -> None:
        self.database.close()


def create_app(settings: OutingSettings | None = None, *, configure_logging: bool = True) -> OutingApp:
    if settings is None:  # pragma: no cover
        settings = OutingSettings()

    if configure_logging:
        setup_logging(
            log_dir=settings.log_dir,
            level=getattr(logging, settings.log_level),
            json_mode=settings.log_format == "json",
        )

    db = Database(settings.database_path)
    db.connect()
    migrated = db.migrate_from_json(settings.legacy_games_path)
    if migrated:
        logger.info("imported legacy games", count=migrated)

    service = OutingService(SqliteGameRepository(db), settings)
    logger.info("outing service ready", database_path=settings.database_path)
    return OutingApp(settings=settings, database=db, service=service)
