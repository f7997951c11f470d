"""
String enum definitions for game concepts.
"""

from enum import StrEnum


class CardKind(StrEnum):
    TRUTH = "truth"
    LIE = "lie"


class GamePhase(StrEnum):
    """Session-wide state machine phase.

    ACCUSATION is never entered. An accusation resolves in the same call and
    the session lands directly in REVELATION; the value stays in the wire
    vocabulary that clients match on.
    """

    WAITING = "waiting"
    PLAYING = "playing"
    ACCUSATION = "accusation"
    REVELATION = "revelation"
    FINISHED = "finished"


class GameEventKind(StrEnum):
    """Kind of a narration event. REVELATION marks play resuming after an accusation."""

    CARD_PLAYED = "card_played"
    ACCUSATION = "accusation"
    REVELATION = "revelation"
    PENALTY = "penalty"
    JOIN = "join"
    LEAVE = "leave"
    GAME_START = "game_start"


class ErrorKind(StrEnum):
    """Failure category callers map to their own representation (e.g. HTTP status)."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
