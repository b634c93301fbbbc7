"""
Results ledger assembly: skins outcome priced against the pot, plus CTP.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from outing.logic.types import ScoreLedger

if TYPE_CHECKING:
    from outing.logic.types import PlayerResult, PotBreakdown, SkinsResult


def _price(result: PlayerResult, pot: PotBreakdown, ctp_player_id: str | None) -> PlayerResult:
    winnings = round(result.skins_won * pot.skin_value, 2)
    ctp_winnings = pot.ctp if result.player_id == ctp_player_id else 0.0
    return result.model_copy(
        update={
            "winnings": winnings,
            "ctp_winnings": ctp_winnings,
            "total_winnings": round(winnings + ctp_winnings, 2),
        },
    )


def build_ledger(
    skins_result: SkinsResult,
    pot: PotBreakdown | None = None,
    ctp_player_id: str | None = None,
) -> ScoreLedger:
    """
    Combine a skins result with its pot into the ledger stored on a game.

    Without a pot the fixed-value winnings from the skins calculation are kept
    and no CTP money is paid.
    """
    player_results = skins_result.player_results
    if pot is not None:
        player_results = tuple(_price(result, pot, ctp_player_id) for result in player_results)

    return ScoreLedger(
        hole_results=skins_result.hole_results,
        player_results=player_results,
        carryover=skins_result.carryover,
        total_skins=skins_result.total_skins,
        pot=pot,
        ctp_player_id=ctp_player_id,
        skins_format=skins_result.skins_format,
    )
