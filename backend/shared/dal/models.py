"""Persistence models for the data access layer."""

from typing import Any

from pydantic import BaseModel, Field


class StoredGame(BaseModel, frozen=True):
    """A persisted game record together with its optimistic concurrency token."""

    game_id: str
    version: int = Field(ge=1)  # bumped on every successful save
    data: dict[str, Any]  # camelCase game record as produced by GameRecord.to_json()
