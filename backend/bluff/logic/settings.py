"""Fixed rule constants for the truth-or-lie card game."""

import string

DECK_TRUTH_CARDS = 30
DECK_LIE_CARDS = 30
DECK_SIZE = DECK_TRUTH_CARDS + DECK_LIE_CARDS
HAND_SIZE = 7
PENALTY_SIZE = 3

MIN_PLAYERS = 2
MAX_PLAYERS = 6

PLAYER_NAME_MAX_LENGTH = 20
DEFAULT_TURN_TIMER_SECONDS = 45

GAME_ID_LENGTH = 6
GAME_ID_ALPHABET = string.ascii_uppercase + string.digits
GAME_ID_PATTERN = rf"^[A-Z0-9]{{{GAME_ID_LENGTH}}}$"
