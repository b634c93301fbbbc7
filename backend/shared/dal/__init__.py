"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.game_repository import GameRepository
from shared.dal.models import StoredGame

__all__ = [
    "GameRepository",
    "StoredGame",
]
