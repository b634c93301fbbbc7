"""
Outing orchestration: game lifecycle, score entry and results against storage.

Every write is a read-modify-write. The version read with the game is passed
back on save, so a concurrent edit surfaces as StaleGameError instead of
silently overwriting the other writer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from outing.logic.course import holes_for
from outing.logic.entity import GameEntity, utc_now
from outing.logic.enums import GameStatus
from outing.logic.exceptions import GameNotFoundError, InvalidTransitionError, ScoresLockedError
from outing.logic.ledger import build_ledger
from outing.logic.pot import calculate_pot
from outing.logic.skins import calculate_game_skins
from outing.logic.types import ScoringPlayer
from outing.settings import OutingSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from outing.logic.state import PlayerScore
    from outing.logic.types import ScoreLedger
    from shared.dal.game_repository import GameRepository

logger = structlog.get_logger()


def _scoring_players(raw: Sequence[PlayerScore]) -> list[ScoringPlayer]:
    """Scoring players built from raw entries; a missing handicap plays off scratch."""
    return [
        ScoringPlayer(id=entry.player_id, name=entry.player_id, course_handicap=entry.course_handicap or 0)
        for entry in raw
    ]


class OutingService:
    """Runs GameEntity operations and the scoring engine against a GameRepository."""

    def __init__(
        self,
        repository: GameRepository,
        settings: OutingSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._settings = settings or OutingSettings()
        self._clock = clock

    async def _load(self, game_id: str) -> tuple[GameEntity, int]:
        stored = await self._repository.get_game(game_id)
        if stored is None:
            raise GameNotFoundError(game_id)
        return GameEntity.from_json(stored.data, clock=self._clock), stored.version

    async def _save(self, entity: GameEntity, version: int) -> GameEntity:
        await self._repository.save_game(entity.to_json(), expected_version=version)
        return entity

    async def create_game(self, **fields: Any) -> GameEntity:  # noqa: ANN401
        """Schedule a game, filling entry fee, CTP hole and skins format from settings when omitted."""
        fields.setdefault("entry_fee", self._settings.default_entry_fee)
        holes = fields.get("holes", 18)
        if "ctp_hole" not in fields and "ctpHole" not in fields and self._settings.default_ctp_hole <= holes:
            fields["ctp_hole"] = self._settings.default_ctp_hole
        if "skins_format" not in fields and "skinsFormat" not in fields:
            fields["skins_format"] = self._settings.default_skins_format

        entity = GameEntity.create(clock=self._clock, **fields)
        await self._repository.create_game(entity.to_json())
        logger.info("game created", game_id=entity.id, date=entity.record.date, course=entity.record.course)
        return entity

    async def get_game(self, game_id: str) -> GameEntity:
        """Raises GameNotFoundError for an unknown id."""
        entity, _ = await self._load(game_id)
        return entity

    async def list_games(self, limit: int = 20, status: GameStatus | None = None) -> list[GameEntity]:
        stored = await self._repository.list_games(limit=limit, status=status.value if status else None)
        return [GameEntity.from_json(game.data, clock=self._clock) for game in stored]

    async def delete_game(self, game_id: str) -> None:
        if not await self._repository.delete_game(game_id):
            raise GameNotFoundError(game_id)
        logger.info("game deleted", game_id=game_id)

    async def transition(
        self,
        game_id: str,
        target: GameStatus,
        metadata: Mapping[str, Any] | None = None,
    ) -> GameEntity:
        entity, version = await self._load(game_id)
        previous = entity.status
        entity.transition_to(target, metadata)
        await self._save(entity, version)
        logger.info("game status changed", game_id=game_id, previous_status=previous, status=entity.status)
        return entity

    async def update_game(self, game_id: str, updates: Mapping[str, Any]) -> GameEntity:
        entity, version = await self._load(game_id)
        entity.update(updates)
        await self._save(entity, version)
        logger.info("game updated", game_id=game_id, fields=sorted(updates), status=entity.status)
        return entity

    async def record_scores(
        self,
        game_id: str,
        entries: Sequence[PlayerScore | Mapping[str, Any]],
    ) -> GameEntity:
        """Replace a game's raw scores.

        Raises:
            ScoresLockedError: If the game is not in a scoring status or its scores are locked.

        """
        entity, version = await self._load(game_id)
        if not entity.can_modify_scores():
            raise ScoresLockedError(f"Scores cannot be entered while the game is {entity.status.value}")
        entity.update_scores(entries)
        await self._save(entity, version)
        logger.info("scores recorded", game_id=game_id, players=len(entity.scores.raw))
        return entity

    def score_ledger(
        self,
        entity: GameEntity,
        players: Sequence[ScoringPlayer | Mapping[str, Any]] | None = None,
    ) -> ScoreLedger:
        """Compute skins, pot and CTP payouts for a game without storing them."""
        record = entity.record
        scoring_players = (
            [player if isinstance(player, ScoringPlayer) else ScoringPlayer.model_validate(player) for player in players]
            if players is not None
            else _scoring_players(record.scores.raw)
        )
        raw_scores = {entry.player_id: entry.holes for entry in record.scores.raw}

        skins = calculate_game_skins(
            scoring_players,
            holes_for(record.holes),
            raw_scores,
            skin_value=self._settings.skin_value,
            skins_format=record.skins_format,
        )
        pot = calculate_pot(
            len(scoring_players),
            record.entry_fee,
            ctp_percentage=self._settings.ctp_percentage,
            low_net_percentage=self._settings.low_net_percentage,
            second_place_percentage=self._settings.second_place_percentage,
            admin_fee_percentage=self._settings.admin_fee_percentage,
            total_skins=skins.total_skins,
            enforce_split_limit=self._settings.enforce_pot_split_limit,
        )
        return build_ledger(skins, pot, record.ctp_player_id)

    async def calculate_results(
        self,
        game_id: str,
        players: Sequence[ScoringPlayer | Mapping[str, Any]] | None = None,
    ) -> GameEntity:
        """Score the round and store the ledger as the game's calculated scores.

        Players default to one per raw score entry, named by id.
        """
        entity, version = await self._load(game_id)
        ledger = self.score_ledger(entity, players)
        entity.set_calculated_scores(ledger)
        await self._save(entity, version)
        logger.info(
            "results calculated",
            game_id=game_id,
            total_skins=ledger.total_skins,
            carryover=ledger.carryover,
            skin_value=ledger.pot.skin_value if ledger.pot else None,
        )
        return entity

    async def finalize(self, game_id: str) -> GameEntity:
        entity, version = await self._load(game_id)
        entity.finalize()
        await self._save(entity, version)
        logger.info("game finalized", game_id=game_id)
        return entity

    async def unfinalize(self, game_id: str, *, unlock_scores: bool = False) -> GameEntity:
        """Revert a finalized game to COMPLETED.

        The scores lock survives unless unlock_scores is set.

        Raises:
            InvalidTransitionError: If the game is not FINALIZED.

        """
        entity, version = await self._load(game_id)
        if not entity.is_finalized():
            raise InvalidTransitionError(
                current=entity.status,
                target=GameStatus.COMPLETED,
                reason=f'Only finalized games can be reopened; game is "{entity.status.value}"',
            )
        entity.transition_to(GameStatus.COMPLETED, {"reopened": True})
        if unlock_scores:
            entity.unlock_scores()
        await self._save(entity, version)
        logger.info("game reopened", game_id=game_id, scores_locked=entity.scores.locked)
        return entity
