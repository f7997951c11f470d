"""
Frozen game state models.

All models are immutable; transitions build new instances with model_copy
instead of mutating. Sequences are tuples.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from bluff.logic.enums import CardKind, GameEventKind, GamePhase
from bluff.logic.settings import (
    DEFAULT_TURN_TIMER_SECONDS,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PLAYER_NAME_MAX_LENGTH,
)


def new_id() -> str:
    return str(uuid4())


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    kind: CardKind


class Player(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1, max_length=PLAYER_NAME_MAX_LENGTH)
    hand: tuple[Card, ...] = ()
    is_online: bool = True  # wire field for clients; disconnected players are removed instead

    @computed_field  # type: ignore[prop-decorator]
    @property
    def avatar(self) -> str:
        return self.name[0].upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hand_size(self) -> int:
        return len(self.hand)

    def find_card(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None


class GameEvent(BaseModel):
    """Narration record appended to the session log. Never read back by game logic."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    kind: GameEventKind
    actor_id: str = ""
    actor_name: str = ""
    target_id: str | None = None
    target_name: str | None = None
    card_kind: CardKind | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    message: str


class PendingAccusation(BaseModel):
    """Outcome of the accusation currently being revealed."""

    model_config = ConfigDict(frozen=True)

    accusing_player_id: str
    accused_player_id: str
    penalized_player_id: str
    revealed_card: Card
    was_lie: bool


class GameSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    phase: GamePhase = GamePhase.WAITING
    players: tuple[Player, ...] = ()
    current_player_id: str
    center_pile: tuple[Card, ...] = ()
    last_played_card: Card | None = None
    last_player_id: str | None = None
    pending_accusation: PendingAccusation | None = None
    events: tuple[GameEvent, ...] = ()
    turn_timer_seconds: int = DEFAULT_TURN_TIMER_SECONDS
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def revealed_card(self) -> Card | None:
        if self.pending_accusation is None:
            return None
        return self.pending_accusation.revealed_card

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_full(self) -> bool:
        return self.player_count >= self.max_players

    @property
    def total_cards(self) -> int:
        """Cards in existence for this session: every hand plus the center pile."""
        return sum(p.hand_size for p in self.players) + len(self.center_pile)

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int | None:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None
