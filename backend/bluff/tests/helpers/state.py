"""Game state builders for tests."""

from collections.abc import Sequence

from bluff.logic.enums import CardKind, GamePhase
from bluff.logic.types import Card, GameSession, Player


def create_cards(*kinds: CardKind, prefix: str = "card") -> tuple[Card, ...]:
    return tuple(Card(id=f"{prefix}-{i}", kind=kind) for i, kind in enumerate(kinds))


def create_player(
    player_id: str = "p0",
    name: str | None = None,
    *,
    hand: Sequence[Card] | None = None,
) -> Player:
    """Create a Player with sensible defaults for testing (seven truth cards)."""
    if hand is None:
        hand = create_cards(*([CardKind.TRUTH] * 7), prefix=player_id)
    return Player(id=player_id, name=name if name is not None else f"Player {player_id}", hand=tuple(hand))


def create_session(
    *,
    players: Sequence[Player] | None = None,
    phase: GamePhase = GamePhase.PLAYING,
    current_player_id: str | None = None,
    center_pile: Sequence[Card] = (),
    last_played_card: Card | None = None,
    last_player_id: str | None = None,
    game_id: str = "ABC123",
) -> GameSession:
    """Create a GameSession with sensible defaults for testing (Alice and Bob, PLAYING)."""
    if players is None:
        players = (create_player("p0", "Alice"), create_player("p1", "Bob"))
    return GameSession(
        id=game_id,
        phase=phase,
        players=tuple(players),
        current_player_id=current_player_id if current_player_id is not None else players[0].id,
        center_pile=tuple(center_pile),
        last_played_card=last_played_card,
        last_player_id=last_player_id,
    )
