"""
Game lifecycle transition graph and per-state metadata.

Each state has forward and backward neighbours. Backward edges exist for
correcting mistakes (re-opening enrollment, un-finalizing results), never for
skipping stages.
"""

from pydantic import BaseModel

from outing.logic.enums import GamePhase, GameStatus

# (forward, backward) neighbours per state
_TRANSITIONS: dict[GameStatus, tuple[tuple[GameStatus, ...], tuple[GameStatus, ...]]] = {
    GameStatus.CREATED: ((GameStatus.OPEN,), ()),
    GameStatus.OPEN: ((GameStatus.ENROLLMENT_COMPLETE,), (GameStatus.CREATED,)),
    GameStatus.ENROLLMENT_COMPLETE: ((GameStatus.IN_PROGRESS,), (GameStatus.OPEN,)),
    GameStatus.IN_PROGRESS: ((GameStatus.COMPLETED,), (GameStatus.ENROLLMENT_COMPLETE,)),
    GameStatus.COMPLETED: ((GameStatus.FINALIZED,), (GameStatus.IN_PROGRESS,)),
    GameStatus.FINALIZED: ((), (GameStatus.COMPLETED,)),
}

TIMESTAMP_FIELDS: dict[GameStatus, str] = {
    GameStatus.CREATED: "created_at",
    GameStatus.OPEN: "opened_at",
    GameStatus.ENROLLMENT_COMPLETE: "enrollment_completed_at",
    GameStatus.IN_PROGRESS: "started_at",
    GameStatus.COMPLETED: "completed_at",
    GameStatus.FINALIZED: "finalized_at",
}

# wire (camelCase) names of the timestamp fields
WIRE_TIMESTAMP_FIELDS: dict[GameStatus, str] = {
    GameStatus.CREATED: "createdAt",
    GameStatus.OPEN: "openedAt",
    GameStatus.ENROLLMENT_COMPLETE: "enrollmentCompletedAt",
    GameStatus.IN_PROGRESS: "startedAt",
    GameStatus.COMPLETED: "completedAt",
    GameStatus.FINALIZED: "finalizedAt",
}

STATUS_LABELS: dict[GameStatus, str] = {
    GameStatus.CREATED: "Created",
    GameStatus.OPEN: "Open for Enrollment",
    GameStatus.ENROLLMENT_COMPLETE: "Enrollment Complete",
    GameStatus.IN_PROGRESS: "In Progress",
    GameStatus.COMPLETED: "Completed",
    GameStatus.FINALIZED: "Finalized",
}

_ACTION_LABELS: dict[GameStatus, str] = {
    GameStatus.OPEN: "Open Registration",
    GameStatus.ENROLLMENT_COMPLETE: "Close Registration",
    GameStatus.IN_PROGRESS: "Start Game",
    GameStatus.COMPLETED: "Complete Game",
    GameStatus.FINALIZED: "Finalize Results",
    GameStatus.CREATED: "Reset to Created",
}

_PHASES: dict[GameStatus, GamePhase] = {
    GameStatus.CREATED: GamePhase.SETUP,
    GameStatus.OPEN: GamePhase.REGISTRATION,
    GameStatus.ENROLLMENT_COMPLETE: GamePhase.REGISTRATION,
    GameStatus.IN_PROGRESS: GamePhase.PLAY,
    GameStatus.COMPLETED: GamePhase.COMPLETED,
    GameStatus.FINALIZED: GamePhase.COMPLETED,
}

SCORING_STATUSES = frozenset({GameStatus.IN_PROGRESS, GameStatus.COMPLETED})


def _check_exhaustive() -> None:
    for name, mapping in (
        ("transition", _TRANSITIONS),
        ("timestamp", TIMESTAMP_FIELDS),
        ("wire timestamp", WIRE_TIMESTAMP_FIELDS),
        ("label", STATUS_LABELS),
        ("phase", _PHASES),
    ):
        missing = set(GameStatus) - set(mapping)
        if missing:
            raise RuntimeError(f"Missing {name} mapping for statuses: {sorted(s.value for s in missing)}")


_check_exhaustive()


class LifecycleAction(BaseModel, frozen=True):
    """A transition offered to the organizer for the current state."""

    action_id: str
    label: str
    next_status: GameStatus


def valid_next_statuses(current: GameStatus | None) -> tuple[GameStatus, ...]:
    """Return all legal targets from current, forward targets first.

    A game without a status may only be initialized to CREATED.
    """
    if current is None:
        return (GameStatus.CREATED,)
    forward, backward = _TRANSITIONS[current]
    return forward + backward


def is_valid_transition(current: GameStatus | None, target: GameStatus) -> bool:
    return target in valid_next_statuses(current)


def is_forward_transition(current: GameStatus, target: GameStatus) -> bool:
    return target in _TRANSITIONS[current][0]


def timestamp_field(status: GameStatus) -> str:
    return TIMESTAMP_FIELDS[status]


def status_label(status: GameStatus) -> str:
    return STATUS_LABELS[status]


def game_phase(status: GameStatus) -> GamePhase:
    return _PHASES[status]


def is_game_editable(status: GameStatus) -> bool:
    return status != GameStatus.FINALIZED


def can_sign_up_players(status: GameStatus) -> bool:
    return status == GameStatus.OPEN


def can_enter_scores(status: GameStatus) -> bool:
    return status in SCORING_STATUSES


def available_actions(current: GameStatus | None) -> list[LifecycleAction]:
    """Describe each legal transition from current as an organizer action."""
    return [
        LifecycleAction(
            action_id=f"transition-to-{target.value}",
            label=_ACTION_LABELS.get(target, f"Move to {status_label(target)}"),
            next_status=target,
        )
        for target in valid_next_statuses(current)
    ]
