"""
Validation of game records, updates, transitions and score batches.

Every function here is pure and never raises for bad input: problems are
returned as human-readable messages so callers can surface all of them at
once. Inputs are plain wire-shaped mappings (camelCase keys); pydantic models
are dumped to that shape first.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel

from outing.logic.enums import GameStatus, SkinsFormat
from outing.logic.state import MAX_GROUP_SIZE
from outing.logic.status import WIRE_TIMESTAMP_FIELDS, is_valid_transition

VALID_HOLE_COUNTS = (9, 18)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# written only by status transitions
_LIFECYCLE_FIELDS = frozenset({"statusHistory", *WIRE_TIMESTAMP_FIELDS.values()})


class TransitionCheck(BaseModel, frozen=True):
    """Legality of a proposed status change, with the reason when illegal."""

    is_valid: bool
    reason: str | None = None


def _as_mapping(record: object) -> Mapping[str, Any] | None:
    """Wire-shaped view of record, or None when it is not an object at all."""
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json", by_alias=True)
    return record if isinstance(record, Mapping) else None


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return not math.isnan(value)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _parse_status(value: object) -> GameStatus | None:
    """Return the status for value, or None when it is not a known status."""
    if isinstance(value, GameStatus):
        return value
    try:
        return GameStatus(value)
    except ValueError:
        return None


def _status_text(value: object) -> str:
    return value.value if isinstance(value, GameStatus) else str(value)


def _parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken as UTC so comparisons never fail."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _check_holes(holes: object, errors: list[str]) -> None:
    if not _is_number(holes) or holes not in VALID_HOLE_COUNTS:
        errors.append("Holes must be either 9 or 18")


def _check_entry_fee(entry_fee: object, errors: list[str]) -> None:
    if not _is_number(entry_fee) or entry_fee < 0:
        errors.append("Entry fee must be a non-negative number")


def _check_ctp_hole(ctp_hole: object, holes: object, errors: list[str]) -> None:
    max_hole = holes if _is_number(holes) and holes in VALID_HOLE_COUNTS else max(VALID_HOLE_COUNTS)
    if not _is_positive_int(ctp_hole) or ctp_hole > max_hole:
        errors.append(f"CTP hole must be a valid hole number (1-{max_hole})")


def _check_skins_format(skins_format: object, errors: list[str]) -> None:
    options = [f.value for f in SkinsFormat]
    if skins_format not in options:
        errors.append("Skins format must be one of: " + ", ".join(options))


def _check_groups(groups: object, errors: list[str]) -> None:
    if not isinstance(groups, list | tuple):
        errors.append("Groups must be an array")
        return
    assigned: set[str] = set()
    for index, group in enumerate(groups, start=1):
        if not isinstance(group, Mapping):
            errors.append(f"Group {index} must be an object")
            continue
        player_ids = group.get("playerIds") or []
        if not isinstance(player_ids, list | tuple):
            errors.append(f"Group {index} player list must be an array")
            continue
        if len(player_ids) > MAX_GROUP_SIZE:
            errors.append(f"Group {index} has more than {MAX_GROUP_SIZE} players")
        for player_id in player_ids:
            if not isinstance(player_id, str) or not player_id:
                errors.append(f"Group {index} has an invalid player ID")
                continue
            if player_id in assigned:
                errors.append(f"Player {player_id} is assigned to more than one group")
            assigned.add(player_id)


def _check_status_history(history: object, status: GameStatus | None, errors: list[str]) -> None:
    if not isinstance(history, list | tuple):
        errors.append("Status history must be an array")
        return
    if not history:
        return
    previous: datetime | None = None
    for entry in history:
        timestamp = _parse_timestamp(entry.get("timestamp")) if isinstance(entry, Mapping) else None
        if timestamp is None:
            errors.append("Status history entries must have a valid timestamp")
            return
        if previous is not None and timestamp < previous:
            errors.append("Status history timestamps must be non-decreasing")
            return
        previous = timestamp
    last = history[-1]
    if status is not None and _parse_status(last.get("status")) != status:
        errors.append(f"Last status history entry must match current status {status.value}")


def _string_values(entries: object, key: str) -> list[str]:
    if not isinstance(entries, list | tuple):
        return []
    values = (entry.get(key) for entry in entries if isinstance(entry, Mapping))
    return [value for value in values if isinstance(value, str)]


def _ledger_player_ids(calculated: Mapping[str, Any]) -> set[str]:
    return {
        *_string_values(calculated.get("playerResults"), "playerId"),
        *_string_values(calculated.get("holeResults"), "winnerId"),
    }


def _check_scores(scores: object, errors: list[str]) -> None:
    if not isinstance(scores, Mapping):
        errors.append("Game must have a scores object")
        return
    raw = scores.get("raw")
    if not isinstance(raw, list | tuple):
        errors.append("Game scores must have a valid raw array")
        return
    calculated = scores.get("calculated")
    if isinstance(calculated, Mapping):
        raw_ids = set(_string_values(raw, "playerId"))
        missing = sorted(_ledger_player_ids(calculated) - raw_ids)
        if missing:
            errors.append(f"Calculated scores reference players without raw scores: {', '.join(missing)}")


def validate_game(game: Mapping[str, Any] | BaseModel) -> list[str]:
    """Check the structural validity of a whole game record.

    Returns the list of problems found; an empty list means the game is valid.
    """
    data = _as_mapping(game)
    if data is None:
        return ["Game must be an object"]
    errors: list[str] = []

    if not data.get("id"):
        errors.append("Game ID is required")
    if not data.get("date"):
        errors.append("Game date is required")
    if not data.get("course"):
        errors.append("Game course is required")

    status: GameStatus | None = None
    raw_status = data.get("status")
    if raw_status is not None:
        status = _parse_status(raw_status)
        if status is None:
            errors.append(f"Invalid status: {raw_status}")
        elif not data.get(WIRE_TIMESTAMP_FIELDS[status]):
            errors.append(f"Missing timestamp for status {status.value}")

    _check_scores(data.get("scores"), errors)

    if data.get("groups") is not None:
        _check_groups(data["groups"], errors)
    if "entryFee" in data:
        _check_entry_fee(data["entryFee"], errors)
    if "holes" in data:
        _check_holes(data["holes"], errors)
    if "skinsFormat" in data:
        _check_skins_format(data["skinsFormat"], errors)
    if data.get("ctpHole") is not None:
        _check_ctp_hole(data["ctpHole"], data.get("holes", 18), errors)
    if data.get("statusHistory") is not None:
        _check_status_history(data["statusHistory"], status, errors)

    return errors


def validate_transition(current: GameStatus | str | None, target: GameStatus | str) -> TransitionCheck:
    """Check a proposed status change against the lifecycle graph."""
    target_status = _parse_status(target)
    if target_status is None:
        return TransitionCheck(is_valid=False, reason=f"Invalid status: {_status_text(target)}")

    if current is None:
        if target_status == GameStatus.CREATED:
            return TransitionCheck(is_valid=True)
        return TransitionCheck(
            is_valid=False,
            reason=f'New games must start with "{GameStatus.CREATED.value}" status',
        )

    current_status = _parse_status(current)
    if current_status is None:
        return TransitionCheck(is_valid=False, reason=f"Invalid current status: {_status_text(current)}")

    if is_valid_transition(current_status, target_status):
        return TransitionCheck(is_valid=True)
    return TransitionCheck(
        is_valid=False,
        reason=f'Cannot transition from "{current_status.value}" to "{target_status.value}"',
    )


def validate_updates(game: Mapping[str, Any] | BaseModel, updates: Mapping[str, Any]) -> list[str]:
    """Check a partial update against the current record.

    A FINALIZED game accepts nothing but a transition back to COMPLETED.
    Bounds are re-checked on the merged result so an update cannot leave,
    say, the CTP hole outside a reduced hole count.
    """
    data = _as_mapping(game)
    if data is None:
        return ["Game must be an object"]
    if not isinstance(updates, Mapping):
        return ["Updates must be an object"]
    errors: list[str] = []

    if "id" in updates and updates["id"] != data.get("id"):
        errors.append("Cannot change game ID")
    errors.extend(
        f"{field} can only change through a status transition" for field in sorted(_LIFECYCLE_FIELDS.intersection(updates))
    )

    current_status = _parse_status(data.get("status"))
    requested = updates.get("status")
    status_changing = requested is not None and _parse_status(requested) != current_status
    if status_changing:
        check = validate_transition(current_status, requested)
        if not check.is_valid:
            errors.append(check.reason or f"Invalid transition to {_status_text(requested)}")

    if current_status == GameStatus.FINALIZED and not (
        status_changing and _parse_status(requested) == GameStatus.COMPLETED
    ):
        errors.append("Finalized games cannot be modified except to revert to Completed status")

    merged = {**data, **updates}
    if "holes" in updates:
        _check_holes(merged["holes"], errors)
    if "entryFee" in updates:
        _check_entry_fee(merged["entryFee"], errors)
    if merged.get("ctpHole") is not None and ("ctpHole" in updates or "holes" in updates):
        _check_ctp_hole(merged["ctpHole"], merged.get("holes", 18), errors)
    if "skinsFormat" in updates:
        _check_skins_format(updates["skinsFormat"], errors)
    if "scores" in updates and not isinstance(updates["scores"], Mapping):
        errors.append("Scores must be an object")
    if "groups" in updates and updates["groups"] is not None:
        _check_groups(updates["groups"], errors)

    return errors


def _check_hole_scores(player_id: object, holes: Mapping[Any, Any], errors: list[str]) -> None:
    for hole, score in holes.items():
        hole_number = int(hole) if isinstance(hole, str) and hole.isdecimal() else hole
        if not _is_positive_int(hole_number):
            errors.append(f"Invalid hole number {hole!r} for player {player_id}")
        elif score is not None and not _is_positive_int(score):
            errors.append(f"Invalid score for player {player_id}, hole {hole_number}")


def validate_scores(score_entries: object) -> list[str]:
    """Check a batch of raw score entries.

    Each entry needs a playerId and either a ``holes`` mapping (hole number to
    gross score) or a legacy ``scores`` list. Scores are absent/None or
    positive integers. One bad entry invalidates the whole batch.
    """
    if not isinstance(score_entries, list | tuple):
        return ["Scores must be an array"]

    errors: list[str] = []
    seen: set[str] = set()
    for index, entry in enumerate(score_entries, start=1):
        if isinstance(entry, BaseModel):
            entry = entry.model_dump(mode="json", by_alias=True)  # noqa: PLW2901
        if not isinstance(entry, Mapping):
            errors.append(f"Score entry {index} must be an object")
            continue

        player_id = entry.get("playerId", entry.get("player_id"))
        if not player_id:
            errors.append(f"Score entry {index} missing player ID")
        elif not isinstance(player_id, str):
            errors.append(f"Score entry {index} has an invalid player ID")
            continue
        elif player_id in seen:
            errors.append(f"Duplicate score entry for player {player_id}")
        else:
            seen.add(player_id)

        holes = entry.get("holes")
        if isinstance(holes, Mapping):
            _check_hole_scores(player_id, holes, errors)
        elif holes is None and isinstance(entry.get("scores"), list | tuple):
            _check_hole_scores(player_id, dict(enumerate(entry["scores"], start=1)), errors)
        else:
            errors.append(f"Score entry {index} has invalid holes structure")

        handicap = entry.get("courseHandicap", entry.get("course_handicap"))
        if handicap is not None and not _is_number(handicap):
            errors.append(f"Invalid course handicap for player {player_id}")

    return errors


def validate_game_creation(data: Mapping[str, Any]) -> list[str]:
    """Check the fields supplied when a new game is scheduled."""
    if not isinstance(data, Mapping):
        return ["Game must be an object"]
    errors: list[str] = []

    if not data.get("course"):
        errors.append("Game course is required")
    game_date = data.get("date")
    if not game_date:
        errors.append("Game date is required")
    else:
        try:
            date.fromisoformat(str(game_date))
        except ValueError:
            errors.append("Invalid date format")

    game_time = data.get("time")
    if game_time and not _TIME_PATTERN.match(str(game_time)):
        errors.append("Invalid time format. Use HH:MM in 24-hour format")

    if data.get("holes") is not None:
        _check_holes(data["holes"], errors)
    if data.get("entryFee") is not None:
        _check_entry_fee(data["entryFee"], errors)
    if data.get("ctpHole") is not None:
        _check_ctp_hole(data["ctpHole"], data.get("holes", 18), errors)
    if data.get("skinsFormat") is not None:
        _check_skins_format(data["skinsFormat"], errors)

    return errors


def missing_ledger_players(raw_player_ids: Sequence[str], ledger_player_ids: set[str]) -> list[str]:
    """Return ledger player ids that have no raw score entry, sorted."""
    return sorted(ledger_player_ids - set(raw_player_ids))
