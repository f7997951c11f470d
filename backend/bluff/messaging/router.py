from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from bluff.messaging.types import (
    ConnectionErrorCode,
    JoinGameMessage,
    PingMessage,
    PongMessage,
    SubscribedMessage,
    SubscriptionData,
    error_message,
    parse_client_message,
)

if TYPE_CHECKING:
    from bluff.messaging.protocol import ConnectionProtocol
    from bluff.session.connections import Broadcaster
    from bluff.session.registry import GameRegistry

logger = structlog.get_logger()


class MessageRouter:
    """
    Route decoded client messages to the broadcaster.

    Holds no transport state, so it is tested with mock connections.
    """

    def __init__(self, registry: GameRegistry, broadcaster: Broadcaster) -> None:
        self._registry = registry
        self._broadcaster = broadcaster

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._broadcaster.register(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._broadcaster.disconnect(connection)

    async def handle_message(self, connection: ConnectionProtocol, raw_message: dict[str, Any]) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(
                error_message(ConnectionErrorCode.INVALID_MESSAGE, str(e)).model_dump(mode="json"),
            )
            return

        if isinstance(message, JoinGameMessage):
            await self._handle_join_game(connection, message)
        elif isinstance(message, PingMessage):
            await connection.send_message(PongMessage().model_dump(mode="json"))

    async def _handle_join_game(self, connection: ConnectionProtocol, message: JoinGameMessage) -> None:
        """Subscribe the connection once the announced game and player check out."""
        session = self._registry.get(message.game_id)
        if session is None:
            await connection.send_message(
                error_message(ConnectionErrorCode.GAME_NOT_FOUND, "Game not found").model_dump(mode="json"),
            )
            return
        if session.get_player(message.player_id) is None:
            await connection.send_message(
                error_message(ConnectionErrorCode.PLAYER_NOT_FOUND, "Player not found").model_dump(mode="json"),
            )
            return

        await self._broadcaster.subscribe(connection, message.game_id, message.player_id)
        await connection.send_message(
            SubscribedMessage(
                data=SubscriptionData(game_id=message.game_id, player_id=message.player_id),
            ).model_dump(mode="json"),
        )
