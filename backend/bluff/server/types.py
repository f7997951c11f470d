"""HTTP request bodies for game commands."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bluff.logic.settings import GAME_ID_PATTERN, PLAYER_NAME_MAX_LENGTH

_PLAYER_NAME_FIELD = Field(min_length=1, max_length=PLAYER_NAME_MAX_LENGTH)
_ID_FIELD = Field(min_length=1, max_length=64)


class CreateGameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player_name: str = _PLAYER_NAME_FIELD


class JoinGameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    game_id: str = Field(pattern=GAME_ID_PATTERN)
    player_name: str = _PLAYER_NAME_FIELD

    @field_validator("game_id", mode="before")
    @classmethod
    def _normalize_game_id(cls, v: object) -> object:
        # accept lowercase codes and surrounding whitespace
        return v.strip().upper() if isinstance(v, str) else v


class PlayCardRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player_id: str = _ID_FIELD
    card_id: str = _ID_FIELD


class AccusePlayerRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    accusing_player_id: str = _ID_FIELD
    accused_player_id: str = _ID_FIELD
