"""
Game session state machine.

Each transition is a pure function: it takes a frozen GameSession, validates
the command against phase and turn rules, and returns a new session with one
or more events appended. Validation happens before any new state is built,
so a rejected command leaves the caller's session untouched.

Phases:
    WAITING -> PLAYING          (maybe_start_game, once enough players joined)
    PLAYING -> REVELATION       (accuse_player; ACCUSATION resolves immediately)
    REVELATION -> PLAYING       (continue_after_revelation)
    any -> FINISHED             (a hand is emptied, or membership drops below the minimum)
"""

import random

from bluff.logic.deck import build_penalty_cards, deal_hand
from bluff.logic.enums import CardKind, GameEventKind, GamePhase
from bluff.logic.exceptions import (
    CardNotFoundError,
    GameFullError,
    InvalidAccusationError,
    InvalidPhaseError,
    InvalidPlayerNameError,
    NoCardToAccuseError,
    NotYourTurnError,
    PlayerNotFoundError,
)
from bluff.logic.settings import DEFAULT_TURN_TIMER_SECONDS, PENALTY_SIZE, PLAYER_NAME_MAX_LENGTH
from bluff.logic.state_utils import (
    add_cards_to_player,
    append_event,
    finish,
    next_player_id,
    remove_card_from_player,
)
from bluff.logic.types import GameEvent, GameSession, PendingAccusation, Player


def validate_player_name(name: str) -> None:
    if not name.strip() or len(name) > PLAYER_NAME_MAX_LENGTH:
        raise InvalidPlayerNameError(f"Player name must be 1-{PLAYER_NAME_MAX_LENGTH} characters")


def _require_player(session: GameSession, player_id: str) -> Player:
    player = session.get_player(player_id)
    if player is None:
        raise PlayerNotFoundError(player_id)
    return player


def create_session(
    game_id: str,
    host_name: str,
    *,
    turn_timer_seconds: int = DEFAULT_TURN_TIMER_SECONDS,
    rng: random.Random | None = None,
) -> tuple[GameSession, str]:
    """Create a WAITING session with the host seated and dealt in. Return (session, host_id)."""
    validate_player_name(host_name)
    host = Player(name=host_name, hand=deal_hand(rng))
    session = GameSession(
        id=game_id,
        players=(host,),
        current_player_id=host.id,
        turn_timer_seconds=turn_timer_seconds,
        events=(
            GameEvent(
                kind=GameEventKind.JOIN,
                actor_id=host.id,
                actor_name=host.name,
                message=f"{host.name} created the game",
            ),
        ),
    )
    return session, host.id


def maybe_start_game(session: GameSession) -> GameSession:
    """Start a WAITING session once it has enough players; otherwise return it unchanged."""
    if session.phase != GamePhase.WAITING or session.player_count < session.min_players:
        return session
    started = session.model_copy(update={"phase": GamePhase.PLAYING})
    return append_event(
        started,
        GameEvent(
            kind=GameEventKind.GAME_START,
            message=f"The game starts with {session.player_count} players!",
        ),
    )


def add_player(
    session: GameSession,
    name: str,
    *,
    rng: random.Random | None = None,
) -> tuple[GameSession, Player]:
    """Seat a new player at the end of the rotation and deal them a fresh hand."""
    validate_player_name(name)
    if session.phase == GamePhase.FINISHED:
        raise InvalidPhaseError("Game is already finished")
    if session.is_full:
        raise GameFullError("Game is full")

    player = Player(name=name, hand=deal_hand(rng))
    updated = session.model_copy(update={"players": (*session.players, player)})
    updated = append_event(
        updated,
        GameEvent(
            kind=GameEventKind.JOIN,
            actor_id=player.id,
            actor_name=player.name,
            message=f"{player.name} joined the game",
        ),
    )
    return maybe_start_game(updated), player


def remove_player(session: GameSession, player_id: str) -> tuple[GameSession, Player]:
    """Remove a player and discard their hand.

    A departing current player hands the turn to whoever takes their position
    in the rotation. A departing author of the last play takes that play with
    them: it can no longer be accused.
    """
    player = _require_player(session, player_id)
    index = session.player_index(player_id)
    remaining = tuple(p for p in session.players if p.id != player_id)

    updates: dict[str, object] = {"players": remaining}
    if session.current_player_id == player_id and remaining:
        updates["current_player_id"] = remaining[index % len(remaining)].id
    if session.last_player_id == player_id:
        updates["last_played_card"] = None
        updates["last_player_id"] = None

    updated = append_event(
        session.model_copy(update=updates),
        GameEvent(
            kind=GameEventKind.LEAVE,
            actor_id=player.id,
            actor_name=player.name,
            message=f"{player.name} left the game",
        ),
    )
    if len(remaining) < session.min_players:
        updated = finish(updated)
    return updated, player


def play_card(session: GameSession, player_id: str, card_id: str) -> GameSession:
    """Play a card face-down onto the center pile.

    Emptying the hand wins the game: the session finishes and the turn does
    not advance. Otherwise the turn passes to the next player in array order.
    """
    player = _require_player(session, player_id)
    if session.phase != GamePhase.PLAYING:
        raise InvalidPhaseError(f"Cannot play a card while the game is {session.phase}")
    if session.current_player_id != player_id:
        raise NotYourTurnError("Not your turn")
    card = player.find_card(card_id)
    if card is None:
        raise CardNotFoundError("Card not found")

    updated = remove_card_from_player(session, player_id, card_id)
    updated = updated.model_copy(
        update={
            "center_pile": (*session.center_pile, card),
            "last_played_card": card,
            "last_player_id": player_id,
        },
    )

    if player.hand_size == 1:
        return append_event(
            finish(updated),
            GameEvent(
                kind=GameEventKind.CARD_PLAYED,
                actor_id=player.id,
                actor_name=player.name,
                message=f"{player.name} won the game!",
            ),
        )

    updated = updated.model_copy(update={"current_player_id": next_player_id(updated, player_id)})
    return append_event(
        updated,
        GameEvent(
            kind=GameEventKind.CARD_PLAYED,
            actor_id=player.id,
            actor_name=player.name,
            message=f"{player.name} played a card",
        ),
    )


def accuse_player(
    session: GameSession,
    accusing_player_id: str,
    accused_player_id: str,
    *,
    rng: random.Random | None = None,
) -> GameSession:
    """Challenge the most recent play and reveal it.

    A revealed lie sends the penalty batch to the accused; a revealed truth
    sends it to the accuser. Only the author of the last play may be accused.
    """
    if session.last_played_card is None or session.last_player_id is None:
        raise NoCardToAccuseError("No card to accuse")
    if session.phase != GamePhase.PLAYING:
        raise InvalidPhaseError(f"Cannot accuse while the game is {session.phase}")
    accuser = _require_player(session, accusing_player_id)
    accused = _require_player(session, accused_player_id)
    if accused.id != session.last_player_id:
        raise InvalidAccusationError("Only the player who made the last play can be accused")
    if accuser.id == accused.id:
        raise InvalidAccusationError("Players cannot accuse their own play")

    revealed = session.last_played_card
    was_lie = revealed.kind == CardKind.LIE
    penalized = accused if was_lie else accuser

    updated = add_cards_to_player(session, penalized.id, build_penalty_cards(PENALTY_SIZE, rng))
    updated = updated.model_copy(
        update={
            "phase": GamePhase.REVELATION,
            "pending_accusation": PendingAccusation(
                accusing_player_id=accuser.id,
                accused_player_id=accused.id,
                penalized_player_id=penalized.id,
                revealed_card=revealed,
                was_lie=was_lie,
            ),
        },
    )
    outcome = "Lie revealed!" if was_lie else "Truth revealed!"
    updated = append_event(
        updated,
        GameEvent(
            kind=GameEventKind.ACCUSATION,
            actor_id=accuser.id,
            actor_name=accuser.name,
            target_id=accused.id,
            target_name=accused.name,
            card_kind=revealed.kind,
            message=f"{accuser.name} accused {accused.name} - {outcome}",
        ),
    )
    return append_event(
        updated,
        GameEvent(
            kind=GameEventKind.PENALTY,
            actor_id=penalized.id,
            actor_name=penalized.name,
            message=f"{penalized.name} draws {PENALTY_SIZE} penalty cards",
        ),
    )


def continue_after_revelation(session: GameSession) -> GameSession:
    """Resume play after a revelation. The resolved play is no longer accusable."""
    if session.phase != GamePhase.REVELATION:
        raise InvalidPhaseError(f"Nothing to continue while the game is {session.phase}")
    updated = session.model_copy(
        update={
            "phase": GamePhase.PLAYING,
            "pending_accusation": None,
            "last_played_card": None,
            "last_player_id": None,
        },
    )
    current = updated.get_player(updated.current_player_id)
    return append_event(
        updated,
        GameEvent(
            kind=GameEventKind.REVELATION,
            actor_id=current.id if current else "",
            actor_name=current.name if current else "",
            message=f"Play resumes with {current.name}" if current else "Play resumes",
        ),
    )
