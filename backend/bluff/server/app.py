from __future__ import annotations

import contextlib
import json
from http import HTTPStatus
from typing import TYPE_CHECKING, TypeVar, cast

import structlog
from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from bluff.logic.enums import ErrorKind
from bluff.logic.exceptions import GameNotFoundError, GameRuleError
from bluff.messaging.router import MessageRouter
from bluff.messaging.types import (
    AccusationMessage,
    CardPlayedMessage,
    GameStateMessage,
    PlayerJoinedData,
    PlayerJoinedMessage,
)
from bluff.server.settings import GameServerSettings
from bluff.server.types import AccusePlayerRequest, CreateGameRequest, JoinGameRequest, PlayCardRequest
from bluff.server.websocket import websocket_endpoint
from bluff.session.connections import Broadcaster
from bluff.session.registry import GameRegistry
from shared.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from bluff.logic.types import GameSession, Player

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

_MAX_REQUEST_BODY_SIZE = 4096

_STATUS_BY_ERROR_KIND = {
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.VALIDATION: HTTPStatus.BAD_REQUEST,
}


class RequestBodyError(Exception):
    """Malformed, oversized, or schema-invalid request body."""

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = status_code


async def _read_body(request: Request, model: type[T]) -> T:
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        raise RequestBodyError("Request body too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    try:
        body = json.loads(raw_body) if raw_body.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RequestBodyError("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise RequestBodyError("Request body must be a JSON object")
    try:
        return model(**body)
    except ValidationError as e:
        raise RequestBodyError(_summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors())


def _session_json(session: GameSession) -> dict:
    return session.model_dump(mode="json")


async def _handle_game_rule_error(_request: Request, exc: Exception) -> JSONResponse:
    error = cast("GameRuleError", exc)
    return JSONResponse(
        {"error": str(error), "code": error.code},
        status_code=_STATUS_BY_ERROR_KIND[error.kind],
    )


async def _handle_request_body_error(_request: Request, exc: Exception) -> JSONResponse:
    error = cast("RequestBodyError", exc)
    return JSONResponse({"error": str(error), "code": "invalid_request"}, status_code=error.status_code)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def list_games(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    return JSONResponse(
        {
            "games": [
                {
                    "id": session.id,
                    "phase": session.phase,
                    "player_count": session.player_count,
                    "max_players": session.max_players,
                    "players": [p.name for p in session.players],
                }
                for session in registry.list_games()
            ],
        },
    )


async def create_game(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    settings: GameServerSettings = request.app.state.settings

    game_request = await _read_body(request, CreateGameRequest)
    if registry.game_count >= settings.max_capacity:
        return JSONResponse({"error": "Server at capacity", "code": "at_capacity"}, status_code=503)

    try:
        session, player_id = await registry.create(game_request.player_name)
    except RuntimeError:
        logger.exception("game id allocation failed")
        return JSONResponse({"error": "Server at capacity", "code": "at_capacity"}, status_code=503)

    return JSONResponse({"game": _session_json(session), "player_id": player_id}, status_code=201)


def _broadcast_session(
    broadcaster: Broadcaster,
    message_type: type[CardPlayedMessage | AccusationMessage | GameStateMessage],
) -> Callable[[GameSession], Awaitable[None]]:
    async def notify(session: GameSession) -> None:
        await broadcaster.broadcast(session.id, message_type(data=session))

    return notify


async def join_game(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    broadcaster: Broadcaster = request.app.state.broadcaster

    async def notify(session: GameSession, player: Player) -> None:
        await broadcaster.broadcast(
            session.id,
            PlayerJoinedMessage(data=PlayerJoinedData(game=session, new_player=player)),
        )

    join_request = await _read_body(request, JoinGameRequest)
    session, player = await registry.add_player(join_request.game_id, join_request.player_name, notify=notify)
    return JSONResponse({"game": _session_json(session), "player_id": player.id})


async def get_game(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    game_id = request.path_params["game_id"]
    session = registry.get(game_id)
    if session is None:
        raise GameNotFoundError(game_id)
    return JSONResponse(_session_json(session))


async def play_card(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    broadcaster: Broadcaster = request.app.state.broadcaster

    play_request = await _read_body(request, PlayCardRequest)
    session = await registry.play_card(
        request.path_params["game_id"],
        play_request.player_id,
        play_request.card_id,
        notify=_broadcast_session(broadcaster, CardPlayedMessage),
    )
    return JSONResponse(_session_json(session))


async def accuse_player(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    broadcaster: Broadcaster = request.app.state.broadcaster

    accuse_request = await _read_body(request, AccusePlayerRequest)
    session = await registry.accuse_player(
        request.path_params["game_id"],
        accuse_request.accusing_player_id,
        accuse_request.accused_player_id,
        notify=_broadcast_session(broadcaster, AccusationMessage),
    )
    return JSONResponse(_session_json(session))


async def continue_game(request: Request) -> JSONResponse:
    registry: GameRegistry = request.app.state.registry
    broadcaster: Broadcaster = request.app.state.broadcaster

    session = await registry.continue_after_revelation(
        request.path_params["game_id"],
        notify=_broadcast_session(broadcaster, GameStateMessage),
    )
    return JSONResponse(_session_json(session))


def create_app(
    settings: GameServerSettings | None = None,
    registry: GameRegistry | None = None,
    broadcaster: Broadcaster | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if registry is None:

        async def on_game_evicted(game_id: str) -> None:
            await app_broadcaster.close_game(game_id)

        registry = GameRegistry(
            turn_timer_seconds=settings.turn_timer_seconds,
            finished_game_ttl_seconds=settings.finished_game_ttl_seconds,
            waiting_game_ttl_seconds=settings.waiting_game_ttl_seconds,
            reaper_interval_seconds=settings.reaper_interval_seconds,
            on_game_evicted=on_game_evicted,
        )

    app_broadcaster = broadcaster if broadcaster is not None else Broadcaster(registry)

    if message_router is None:
        message_router = MessageRouter(registry, app_broadcaster)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/api/games", list_games, methods=["GET"]),
        Route("/api/games", create_game, methods=["POST"]),
        Route("/api/games/join", join_game, methods=["POST"]),
        Route("/api/games/{game_id}", get_game, methods=["GET"]),
        Route("/api/games/{game_id}/play", play_card, methods=["POST"]),
        Route("/api/games/{game_id}/accuse", accuse_player, methods=["POST"]),
        Route("/api/games/{game_id}/continue", continue_game, methods=["POST"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        registry.start_reaper()
        yield
        await registry.stop_reaper()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            GameRuleError: _handle_game_rule_error,
            RequestBodyError: _handle_request_body_error,
        },
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.broadcaster = app_broadcaster

    logger.info("game server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory bluff.server.app:get_app)."""
    settings = GameServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
