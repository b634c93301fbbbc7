"""
Entry-fee pot distribution.

The admin fee is carved from the total first. Each payout category takes its
percentage of what remains, and the skins pot is whatever is left after the
carve-outs.
"""

from __future__ import annotations

import logging

from outing.logic.exceptions import PotConfigurationError
from outing.logic.types import PotBreakdown

logger = logging.getLogger(__name__)

DEFAULT_CTP_PERCENTAGE = 0.25


def _cents(amount: float) -> float:
    return round(amount, 2)


def calculate_pot(
    player_count: int,
    entry_fee_per_player: float,
    *,
    ctp_percentage: float = DEFAULT_CTP_PERCENTAGE,
    low_net_percentage: float = 0,
    second_place_percentage: float = 0,
    admin_fee_percentage: float = 0,
    total_skins: int = 0,
    enforce_split_limit: bool = False,
) -> PotBreakdown:
    """
    Split the pot across admin fee, CTP, low net, second place and skins.

    Percentages are not checked by default, so a split over 100% yields a
    negative skins pot. With enforce_split_limit the payout percentages must
    sum to at most 1.

    Raises:
        PotConfigurationError: If enforce_split_limit is set and the payout
            percentages sum above 1.

    """
    split = ctp_percentage + low_net_percentage + second_place_percentage
    if enforce_split_limit and (split > 1 or admin_fee_percentage > 1):
        msg = f"Pot percentages exceed the whole pot (payout split {split:.2f}, admin fee {admin_fee_percentage:.2f})"
        raise PotConfigurationError(msg)

    total = _cents(player_count * entry_fee_per_player)
    admin_fee = _cents(total * admin_fee_percentage)
    available = _cents(total - admin_fee)
    ctp = _cents(available * ctp_percentage)
    low_net = _cents(available * low_net_percentage)
    second_place = _cents(available * second_place_percentage)
    skins = _cents(available - ctp - low_net - second_place)
    skin_value = _cents(skins / total_skins) if total_skins > 0 else 0.0

    if skins < 0:
        logger.debug("pot split over 100%%: skins pot is %.2f", skins)

    return PotBreakdown(
        total=total,
        available=available,
        admin_fee=admin_fee,
        skins=skins,
        ctp=ctp,
        low_net=low_net,
        second_place=second_place,
        ctp_value=ctp,
        skin_value=skin_value,
        per_player=entry_fee_per_player,
        total_skins=total_skins,
    )
