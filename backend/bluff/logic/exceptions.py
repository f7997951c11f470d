"""Typed domain exceptions for game rule violations.

Every rejected command raises a subclass of GameRuleError. The transition
functions raise before building any new state, so a rejected command never
changes the stored session. Each subclass carries an ErrorKind and a stable
code that the gateway maps to its own responses.
"""

from bluff.logic.enums import ErrorKind


class GameRuleError(Exception):
    """Base exception for rejected game commands."""

    kind: ErrorKind = ErrorKind.CONFLICT
    code: str = "game_error"


class GameNotFoundError(GameRuleError):
    kind = ErrorKind.NOT_FOUND
    code = "game_not_found"

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class PlayerNotFoundError(GameRuleError):
    kind = ErrorKind.NOT_FOUND
    code = "player_not_found"

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found in game")


class GameFullError(GameRuleError):
    code = "game_full"


class NotYourTurnError(GameRuleError):
    code = "not_your_turn"


class CardNotFoundError(GameRuleError):
    code = "card_not_found"


class NoCardToAccuseError(GameRuleError):
    code = "no_card_to_accuse"


class InvalidAccusationError(GameRuleError):
    """Accused player is not the author of the last play, or accuses themselves."""

    code = "invalid_accusation"


class InvalidPhaseError(GameRuleError):
    """Command is not allowed in the session's current phase."""

    code = "invalid_phase"


class InvalidPlayerNameError(GameRuleError):
    kind = ErrorKind.VALIDATION
    code = "invalid_player_name"
