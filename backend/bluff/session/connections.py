"""Connection registry and per-game broadcaster."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from bluff.logic.exceptions import GameRuleError
from bluff.messaging.encoder import encode
from bluff.messaging.types import PlayerLeftData, PlayerLeftMessage

if TYPE_CHECKING:
    from bluff.logic.types import GameSession, Player
    from bluff.messaging.protocol import ConnectionProtocol
    from bluff.messaging.types import ServerMessage
    from bluff.session.registry import GameRegistry

logger = structlog.get_logger()


@dataclass(frozen=True)
class Subscription:
    """The game and player a connection announced itself as."""

    game_id: str
    player_id: str


class Broadcaster:
    """Track live connections and fan out game notifications.

    Keeps a bidirectional index: connection_id -> Subscription and
    game_id -> {connection_id -> connection}. Index updates happen in
    synchronous sections, so the two sides never disagree.
    """

    def __init__(self, registry: GameRegistry) -> None:
        self._registry = registry
        self._connections: dict[str, ConnectionProtocol] = {}  # connection_id -> connection
        self._subscriptions: dict[str, Subscription] = {}  # connection_id -> Subscription
        self._game_connections: dict[str, dict[str, ConnectionProtocol]] = {}  # game_id -> {conn_id -> conn}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def register(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def get_subscription(self, connection_id: str) -> Subscription | None:
        return self._subscriptions.get(connection_id)

    def subscribers(self, game_id: str) -> list[str]:
        return list(self._game_connections.get(game_id, {}))

    async def subscribe(self, connection: ConnectionProtocol, game_id: str, player_id: str) -> Subscription:
        """Associate a connection with (game_id, player_id).

        Announcing a different game or player releases the previous one: that
        player is removed from their game exactly as on disconnect.
        """
        subscription = Subscription(game_id=game_id, player_id=player_id)
        previous = self._subscriptions.get(connection.connection_id)
        self._connections[connection.connection_id] = connection
        if previous == subscription:
            return subscription

        self._unsubscribe(connection.connection_id)
        self._subscriptions[connection.connection_id] = subscription
        self._game_connections.setdefault(game_id, {})[connection.connection_id] = connection
        logger.info(
            "connection subscribed",
            connection_id=connection.connection_id,
            game_id=game_id,
            player_id=player_id,
        )
        if previous is not None:
            await self._leave_game(connection.connection_id, previous)
        return subscription

    def _unsubscribe(self, connection_id: str) -> Subscription | None:
        subscription = self._subscriptions.pop(connection_id, None)
        if subscription is None:
            return None
        game_connections = self._game_connections.get(subscription.game_id)
        if game_connections is not None:
            game_connections.pop(connection_id, None)
            if not game_connections:
                del self._game_connections[subscription.game_id]
        return subscription

    async def broadcast(self, game_id: str, message: ServerMessage) -> None:
        """Send a message to every connection subscribed to the game. Best-effort."""
        payload = encode(message.model_dump(mode="json"))
        for connection in list(self._game_connections.get(game_id, {}).values()):
            with contextlib.suppress(ConnectionError, RuntimeError, OSError):
                await connection.send_bytes(payload)

    async def _announce_departure(self, session: GameSession, player: Player) -> None:
        await self.broadcast(session.id, PlayerLeftMessage(data=PlayerLeftData(player_id=player.id)))

    async def _leave_game(self, connection_id: str, subscription: Subscription) -> None:
        """Remove the subscribed player from their game and tell the remaining subscribers."""
        try:
            await self._registry.remove_player(
                subscription.game_id,
                subscription.player_id,
                notify=self._announce_departure,
            )
        except GameRuleError as e:
            logger.warning(
                "could not remove departed player",
                connection_id=connection_id,
                game_id=subscription.game_id,
                player_id=subscription.player_id,
                error=str(e),
            )

    async def disconnect(self, connection: ConnectionProtocol) -> None:
        """Forget a lost connection. A subscribed player is removed from their game."""
        self._connections.pop(connection.connection_id, None)
        subscription = self._unsubscribe(connection.connection_id)
        if subscription is not None:
            await self._leave_game(connection.connection_id, subscription)

    def unsubscribe_game(self, game_id: str) -> list[ConnectionProtocol]:
        """Drop every subscription to a game. Return the connections that were subscribed."""
        connections = self._game_connections.pop(game_id, {})
        for connection_id in connections:
            self._subscriptions.pop(connection_id, None)
        return list(connections.values())

    async def close_game(self, game_id: str, code: int = 4002, reason: str = "game_expired") -> None:
        """Unsubscribe an evicted game and close its connections."""
        for connection in self.unsubscribe_game(game_id):
            with contextlib.suppress(ConnectionError, RuntimeError, OSError):
                await connection.close(code=code, reason=reason)
