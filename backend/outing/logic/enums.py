"""
String enum definitions for golf outing concepts.
"""

from enum import Enum


class GameStatus(str, Enum):
    """Lifecycle state of a game, in lifecycle order."""

    CREATED = "created"
    OPEN = "open"
    ENROLLMENT_COMPLETE = "enrollment_complete"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FINALIZED = "finalized"


class GamePhase(str, Enum):
    """Coarse grouping of lifecycle states."""

    SETUP = "setup"
    REGISTRATION = "registration"
    PLAY = "play"
    COMPLETED = "completed"


class HoleStatus(str, Enum):
    """Outcome of a single hole in a skins round."""

    WON = "won"
    CARRYOVER = "carryover"
    INCOMPLETE = "incomplete"
    TIED = "tied"  # shared low net with no carryover; the skin is dropped


class SkinsFormat(str, Enum):
    """How strokes are given and what happens to a tied hole."""

    MONARCH_HALF_STROKE = "monarch_half_stroke"
    STANDARD = "standard"
    NO_CARRYOVER = "no_carryover"
