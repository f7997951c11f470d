"""WebSocket message models.

Client messages are parsed through a discriminated union on "type". Server
messages form a closed union: each kind has a fixed "data" payload shape.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from bluff.logic.settings import GAME_ID_PATTERN
from bluff.logic.types import GameSession, Player


class ClientMessageType(StrEnum):
    JOIN_GAME = "join_game"
    PING = "ping"


class ServerMessageType(StrEnum):
    SUBSCRIBED = "subscribed"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    CARD_PLAYED = "card_played"
    ACCUSATION = "accusation"
    GAME_STATE = "game_state"
    ERROR = "error"
    PONG = "pong"


class ConnectionErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    GAME_NOT_FOUND = "game_not_found"
    PLAYER_NOT_FOUND = "player_not_found"


class JoinGameMessage(BaseModel):
    """Announce which game and player this connection belongs to."""

    type: Literal[ClientMessageType.JOIN_GAME] = ClientMessageType.JOIN_GAME
    game_id: str = Field(pattern=GAME_ID_PATTERN)
    player_id: str = Field(min_length=1, max_length=64)


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[JoinGameMessage | PingMessage, Field(discriminator="type")]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> JoinGameMessage | PingMessage:
    return _client_message_adapter.validate_python(data)


class SubscriptionData(BaseModel):
    game_id: str
    player_id: str


class PlayerJoinedData(BaseModel):
    game: GameSession
    new_player: Player


class PlayerLeftData(BaseModel):
    player_id: str


class ErrorData(BaseModel):
    code: str
    message: str


class SubscribedMessage(BaseModel):
    type: Literal[ServerMessageType.SUBSCRIBED] = ServerMessageType.SUBSCRIBED
    data: SubscriptionData


class PlayerJoinedMessage(BaseModel):
    type: Literal[ServerMessageType.PLAYER_JOINED] = ServerMessageType.PLAYER_JOINED
    data: PlayerJoinedData


class PlayerLeftMessage(BaseModel):
    type: Literal[ServerMessageType.PLAYER_LEFT] = ServerMessageType.PLAYER_LEFT
    data: PlayerLeftData


class CardPlayedMessage(BaseModel):
    type: Literal[ServerMessageType.CARD_PLAYED] = ServerMessageType.CARD_PLAYED
    data: GameSession


class AccusationMessage(BaseModel):
    """Recipients show the reveal for data.revealed_card."""

    type: Literal[ServerMessageType.ACCUSATION] = ServerMessageType.ACCUSATION
    data: GameSession


class GameStateMessage(BaseModel):
    type: Literal[ServerMessageType.GAME_STATE] = ServerMessageType.GAME_STATE
    data: GameSession


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    data: ErrorData


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG


ServerMessage = (
    SubscribedMessage
    | PlayerJoinedMessage
    | PlayerLeftMessage
    | CardPlayedMessage
    | AccusationMessage
    | GameStateMessage
    | ErrorMessage
    | PongMessage
)


def error_message(code: str, message: str) -> ErrorMessage:
    return ErrorMessage(data=ErrorData(code=code, message=message))
