"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate the input session; they always return a new
GameSession with the requested changes applied.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from bluff.logic.enums import GamePhase
from bluff.logic.types import Card, GameEvent, GameSession, Player

_PLAYER_FIELDS = set(Player.model_fields)


def update_player(session: GameSession, player_id: str, **updates: object) -> GameSession:
    """
    Return new session with the given player's fields replaced.

    Raises:
        ValueError: If the player is not in the session or update fields are invalid

    """
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    index = session.player_index(player_id)
    if index is None:
        raise ValueError(f"Player {player_id} is not in game {session.id}")
    players = list(session.players)
    players[index] = players[index].model_copy(update=updates)
    return session.model_copy(update={"players": tuple(players)})


def add_cards_to_player(session: GameSession, player_id: str, cards: Sequence[Card]) -> GameSession:
    player = session.get_player(player_id)
    if player is None:
        raise ValueError(f"Player {player_id} is not in game {session.id}")
    return update_player(session, player_id, hand=(*player.hand, *cards))


def remove_card_from_player(session: GameSession, player_id: str, card_id: str) -> GameSession:
    player = session.get_player(player_id)
    if player is None:
        raise ValueError(f"Player {player_id} is not in game {session.id}")
    return update_player(session, player_id, hand=tuple(c for c in player.hand if c.id != card_id))


def append_event(session: GameSession, event: GameEvent) -> GameSession:
    return session.model_copy(update={"events": (*session.events, event)})


def next_player_id(session: GameSession, player_id: str) -> str:
    """Return the id of the player after `player_id` in circular array order."""
    index = session.player_index(player_id)
    if index is None:
        raise ValueError(f"Player {player_id} is not in game {session.id}")
    return session.players[(index + 1) % len(session.players)].id


def finish(session: GameSession) -> GameSession:
    """Return new session in the terminal FINISHED phase."""
    if session.phase == GamePhase.FINISHED:
        return session
    return session.model_copy(update={"phase": GamePhase.FINISHED, "finished_at": datetime.now(UTC)})
