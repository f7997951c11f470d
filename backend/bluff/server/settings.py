"""Game server configuration via environment variables."""

import json
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from bluff.logic.settings import DEFAULT_TURN_TIMER_SECONDS


def parse_origins(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string."""
    if isinstance(value, list):
        return value
    stripped = value.strip()
    if not stripped:
        raise ValueError("cors_origins must not be empty")
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            raise ValueError("JSON value must be an array of strings")
        return parsed
    return [origin.strip() for origin in stripped.split(",") if origin.strip()]


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "BLUFF_"}

    max_capacity: int = Field(default=500, ge=1)
    log_dir: str = Field(default="backend/logs/game", min_length=1)
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5000"]
    turn_timer_seconds: int = Field(default=DEFAULT_TURN_TIMER_SECONDS, ge=5)
    finished_game_ttl_seconds: int = Field(default=600, ge=0)
    waiting_game_ttl_seconds: int = Field(default=3600, ge=60)
    reaper_interval_seconds: float = Field(default=30, gt=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origins(v)
