"""
Pydantic models for scoring data structures.

Contains typed models for scoring inputs (players, hole definitions) and the
results ledger (hole results, player payouts, pot breakdown) that cross the
boundary between the scoring engine and the game record.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from outing.logic.enums import HoleStatus, SkinsFormat


class WireModel(BaseModel):
    """Frozen model serialized with camelCase field names.

    Accepts both camelCase (persisted records) and snake_case (Python callers)
    on input.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ScoringPlayer(WireModel):
    """A player as seen by the skins engine."""

    id: str
    name: str = ""
    course_handicap: float


class HoleDefinition(WireModel):
    """Static per-course hole data; stroke index 1 is the hardest hole."""

    par: int = Field(ge=1)
    stroke_index: int = Field(ge=1, le=18)


class HoleResult(WireModel):
    """Outcome of one hole."""

    hole_number: int
    par: int
    stroke_index: int
    gross_scores: dict[str, int] = Field(default_factory=dict)
    net_scores: dict[str, float] = Field(default_factory=dict)
    winner_id: str | None = None
    winner_name: str | None = None
    winner_score_type: str | None = None  # "birdie", "par", ... from the winner's gross
    status: HoleStatus
    skin_value: int = 0
    carryover: int = 0  # unclaimed skins pending after this hole
    tied_player_ids: tuple[str, ...] = ()


class PlayerResult(WireModel):
    """Aggregated per-player outcome of a round."""

    player_id: str
    player_name: str = ""
    course_handicap: float = 0
    skins_won: int = 0
    winnings: float = 0
    ctp_winnings: float = 0
    total_winnings: float = 0
    total_gross: int = 0
    total_net: float = 0
    holes_played: int = 0
    skin_holes: tuple[int, ...] = ()


class SkinsResult(WireModel):
    """Full output of a skins calculation."""

    hole_results: tuple[HoleResult, ...] = ()
    player_results: tuple[PlayerResult, ...] = ()
    carryover: int = 0  # forfeited when the round ends without a sole winner
    total_skins: int = 0
    skins_format: SkinsFormat = SkinsFormat.MONARCH_HALF_STROKE


class PotBreakdown(WireModel):
    """Distribution of the entry-fee pool across payout categories."""

    total: float = 0
    available: float = 0
    admin_fee: float = 0
    skins: float = 0
    ctp: float = 0
    low_net: float = 0
    second_place: float = 0
    ctp_value: float = 0
    skin_value: float = 0
    per_player: float = 0
    total_skins: int = 0


class ScoreLedger(WireModel):
    """Computed results stored on a game as scores.calculated."""

    hole_results: tuple[HoleResult, ...] = ()
    player_results: tuple[PlayerResult, ...] = ()
    carryover: int = 0
    total_skins: int = 0
    pot: PotBreakdown | None = None
    ctp_player_id: str | None = None
    skins_format: SkinsFormat = SkinsFormat.MONARCH_HALF_STROKE

    @property
    def player_ids(self) -> set[str]:
        return {result.player_id for result in self.player_results}
