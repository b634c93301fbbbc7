"""
Skins calculation with carryover.

Each hole is won outright by the player with the strictly lowest net score.
A tie carries the skin forward to the next hole; a hole with any missing score
is incomplete and leaves the carryover untouched. Carryover still pending
after the last hole is forfeited.

The skins format picks the stroke allocation and the tie rule:

- monarch_half_stroke: half strokes, ties carry over (the house game)
- standard: whole strokes, ties carry over
- no_carryover: half strokes, a tied hole's skin is dropped
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from outing.logic.course import score_type
from outing.logic.enums import HoleStatus, SkinsFormat
from outing.logic.handicap import allocate_strokes, allocate_whole_strokes, net_score
from outing.logic.types import HoleResult, PlayerResult, ScoringPlayer, SkinsResult

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from outing.logic.types import HoleDefinition

logger = logging.getLogger(__name__)

DEFAULT_SKIN_VALUE = 10

_STROKE_ALLOCATION: dict[SkinsFormat, Callable[[float | None, int], float]] = {
    SkinsFormat.MONARCH_HALF_STROKE: allocate_strokes,
    SkinsFormat.STANDARD: allocate_whole_strokes,
    SkinsFormat.NO_CARRYOVER: allocate_strokes,
}


@dataclass
class _PlayerTally:
    """Running per-player totals while holes are scored."""

    player: ScoringPlayer
    skins_won: int = 0
    total_gross: int = 0
    total_net: float = 0
    holes_played: int = 0
    skin_holes: list[int] = field(default_factory=list)


def _as_player(player: ScoringPlayer | Mapping[str, Any]) -> ScoringPlayer:
    if isinstance(player, ScoringPlayer):
        return player
    return ScoringPlayer.model_validate(player)


def _hole_score(player_scores: Mapping[Any, int | None] | None, hole_number: int) -> int | None:
    """Gross score for a hole; keys may be ints or numeric strings."""
    if not player_scores:
        return None
    if hole_number in player_scores:
        return player_scores[hole_number]
    return player_scores.get(str(hole_number))


def _score_hole(
    hole_number: int,
    hole: HoleDefinition,
    tallies: list[_PlayerTally],
    raw_scores: Mapping[str, Mapping[Any, int | None]],
    carryover: int,
    skins_format: SkinsFormat,
) -> HoleResult:
    gross_scores: dict[str, int] = {}
    for tally in tallies:
        gross = _hole_score(raw_scores.get(tally.player.id), hole_number)
        if gross is not None:
            gross_scores[tally.player.id] = gross

    net_scores: dict[str, float] = {}
    for tally in tallies:
        player_id = tally.player.id
        if player_id in gross_scores:
            strokes = _STROKE_ALLOCATION[skins_format](tally.player.course_handicap, hole.stroke_index)
            net_scores[player_id] = net_score(gross_scores[player_id], strokes)
            tally.total_gross += gross_scores[player_id]
            tally.total_net += net_scores[player_id]
            tally.holes_played += 1

    base = {
        "hole_number": hole_number,
        "par": hole.par,
        "stroke_index": hole.stroke_index,
        "gross_scores": gross_scores,
        "net_scores": net_scores,
    }

    if not tallies or len(gross_scores) < len(tallies):
        return HoleResult(**base, status=HoleStatus.INCOMPLETE, carryover=carryover)

    low = min(net_scores.values())
    leaders = [tally for tally in tallies if net_scores[tally.player.id] == low]
    if len(leaders) > 1:
        tied_player_ids = tuple(tally.player.id for tally in leaders)
        if skins_format == SkinsFormat.NO_CARRYOVER:
            return HoleResult(**base, status=HoleStatus.TIED, carryover=0, tied_player_ids=tied_player_ids)
        return HoleResult(
            **base,
            status=HoleStatus.CARRYOVER,
            carryover=carryover + 1,
            tied_player_ids=tied_player_ids,
        )

    winner = leaders[0]
    value = 1 + carryover
    winner.skins_won += value
    winner.skin_holes.append(hole_number)
    return HoleResult(
        **base,
        status=HoleStatus.WON,
        winner_id=winner.player.id,
        winner_name=winner.player.name,
        winner_score_type=score_type(gross_scores[winner.player.id], hole.par),
        skin_value=value,
        carryover=0,
    )


def calculate_game_skins(
    players: Sequence[ScoringPlayer | Mapping[str, Any]],
    holes: Sequence[HoleDefinition],
    raw_scores: Mapping[str, Mapping[Any, int | None]],
    *,
    skin_value: float = DEFAULT_SKIN_VALUE,
    skins_format: SkinsFormat = SkinsFormat.MONARCH_HALF_STROKE,
) -> SkinsResult:
    """
    Score every hole in order and aggregate skins per player.

    Holes are numbered from 1 in the order given. Every listed player must
    post a score for a hole to be decided. Player winnings are priced at the
    fixed skin_value; the results ledger reprices them once the pot is known.
    skins_format also accepts its wire string.
    """
    skins_format = SkinsFormat(skins_format)
    tallies = [_PlayerTally(player=_as_player(player)) for player in players]
    carryover = 0
    total_skins = 0
    hole_results: list[HoleResult] = []

    for hole_number, hole in enumerate(holes, start=1):
        result = _score_hole(hole_number, hole, tallies, raw_scores, carryover, skins_format)
        hole_results.append(result)
        if result.status == HoleStatus.WON:
            total_skins += result.skin_value
        carryover = result.carryover

    if carryover:
        logger.debug("%d skin(s) still carried over after the last hole are forfeited", carryover)

    ranked = sorted(tallies, key=lambda tally: tally.skins_won, reverse=True)
    player_results = tuple(
        PlayerResult(
            player_id=tally.player.id,
            player_name=tally.player.name,
            course_handicap=tally.player.course_handicap,
            skins_won=tally.skins_won,
            winnings=tally.skins_won * skin_value,
            total_winnings=tally.skins_won * skin_value,
            total_gross=tally.total_gross,
            total_net=tally.total_net,
            holes_played=tally.holes_played,
            skin_holes=tuple(tally.skin_holes),
        )
        for tally in ranked
    )

    return SkinsResult(
        hole_results=tuple(hole_results),
        player_results=player_results,
        carryover=carryover,
        total_skins=total_skins,
        skins_format=skins_format,
    )
