"""Authoritative in-memory store of game sessions."""

from __future__ import annotations

import asyncio
import contextlib
import random
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from bluff.logic import transitions
from bluff.logic.enums import GamePhase
from bluff.logic.exceptions import GameNotFoundError
from bluff.logic.settings import DEFAULT_TURN_TIMER_SECONDS, GAME_ID_ALPHABET, GAME_ID_LENGTH

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from bluff.logic.types import GameSession, Player

    SessionNotifier = Callable[[GameSession], Awaitable[None]]
    PlayerNotifier = Callable[[GameSession, Player], Awaitable[None]]

logger = structlog.get_logger()

_MAX_ID_ATTEMPTS = 100


class GameRegistry:
    """Own every GameSession and serialize mutations per session.

    Each session has its own asyncio.Lock, so commands against one game are
    applied strictly one at a time while different games never contend.
    Sessions are frozen; a mutation swaps in the new session returned by the
    state machine, so readers never observe a half-applied command.

    Mutations accept a `notify` callback that is awaited after the new
    session is stored but before the lock is released. Notifications for
    one game therefore go out in the order the commands were applied.
    """

    def __init__(
        self,
        *,
        turn_timer_seconds: int = DEFAULT_TURN_TIMER_SECONDS,
        finished_game_ttl_seconds: int = 600,
        waiting_game_ttl_seconds: int = 3600,
        reaper_interval_seconds: float = 30,
        on_game_evicted: Callable[[str], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._games: dict[str, GameSession] = {}  # game_id -> GameSession
        self._game_locks: dict[str, asyncio.Lock] = {}  # game_id -> Lock
        self._turn_timer_seconds = turn_timer_seconds
        self._finished_ttl = timedelta(seconds=finished_game_ttl_seconds)
        self._waiting_ttl = timedelta(seconds=waiting_game_ttl_seconds)
        self._reaper_interval_seconds = reaper_interval_seconds
        self._on_game_evicted = on_game_evicted
        self._rng = rng
        self._id_rng = rng if rng is not None else random.Random()  # noqa: S311
        self._reaper_task: asyncio.Task[None] | None = None

    @property
    def game_count(self) -> int:
        return len(self._games)

    def get(self, game_id: str) -> GameSession | None:
        return self._games.get(game_id)

    def list_games(self) -> list[GameSession]:
        return list(self._games.values())

    def save(self, session: GameSession) -> GameSession:
        """Replace the stored session with the same id."""
        if session.id not in self._games:
            raise GameNotFoundError(session.id)
        self._games[session.id] = session
        return session

    def _generate_game_id(self) -> str:
        return "".join(self._id_rng.choice(GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))

    def _allocate_game_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            game_id = self._generate_game_id()
            if game_id not in self._games:
                return game_id
            logger.debug("game id collision, retrying", game_id=game_id)
        raise RuntimeError(f"Could not allocate a unique game id after {_MAX_ID_ATTEMPTS} attempts")

    @contextlib.asynccontextmanager
    async def _locked(self, game_id: str) -> AsyncIterator[GameSession]:
        """Hold the game's lock and yield its current session."""
        lock = self._game_locks.get(game_id)
        if lock is None:
            raise GameNotFoundError(game_id)
        async with lock:
            # the game may have been evicted while we waited for the lock
            session = self._games.get(game_id)
            if session is None:
                raise GameNotFoundError(game_id)
            yield session

    async def create(self, host_name: str) -> tuple[GameSession, str]:
        """Create a session hosted by `host_name`. Return (session, host_player_id)."""
        game_id = self._allocate_game_id()
        session, host_id = transitions.create_session(
            game_id,
            host_name,
            turn_timer_seconds=self._turn_timer_seconds,
            rng=self._rng,
        )
        self._games[game_id] = session
        self._game_locks[game_id] = asyncio.Lock()
        logger.info("game created", game_id=game_id, player_id=host_id)
        return session, host_id

    async def add_player(
        self,
        game_id: str,
        name: str,
        *,
        notify: PlayerNotifier | None = None,
    ) -> tuple[GameSession, Player]:
        async with self._locked(game_id) as session:
            updated, player = transitions.add_player(session, name, rng=self._rng)
            self._games[game_id] = updated
            if notify is not None:
                await notify(updated, player)
        logger.info(
            "player joined",
            game_id=game_id,
            player_id=player.id,
            player_count=updated.player_count,
            phase=updated.phase,
        )
        return updated, player

    async def remove_player(
        self,
        game_id: str,
        player_id: str,
        *,
        notify: PlayerNotifier | None = None,
    ) -> tuple[GameSession, Player]:
        async with self._locked(game_id) as session:
            updated, player = transitions.remove_player(session, player_id)
            self._games[game_id] = updated
            if notify is not None:
                await notify(updated, player)
        logger.info(
            "player left",
            game_id=game_id,
            player_id=player_id,
            player_count=updated.player_count,
            phase=updated.phase,
        )
        return updated, player

    async def play_card(
        self,
        game_id: str,
        player_id: str,
        card_id: str,
        *,
        notify: SessionNotifier | None = None,
    ) -> GameSession:
        async with self._locked(game_id) as session:
            updated = transitions.play_card(session, player_id, card_id)
            self._games[game_id] = updated
            if notify is not None:
                await notify(updated)
        logger.info("card played", game_id=game_id, player_id=player_id, phase=updated.phase)
        return updated

    async def accuse_player(
        self,
        game_id: str,
        accusing_player_id: str,
        accused_player_id: str,
        *,
        notify: SessionNotifier | None = None,
    ) -> GameSession:
        async with self._locked(game_id) as session:
            updated = transitions.accuse_player(session, accusing_player_id, accused_player_id, rng=self._rng)
            self._games[game_id] = updated
            if notify is not None:
                await notify(updated)
        accusation = updated.pending_accusation
        logger.info(
            "accusation resolved",
            game_id=game_id,
            player_id=accusing_player_id,
            accused_player_id=accused_player_id,
            was_lie=accusation.was_lie if accusation else None,
        )
        return updated

    async def continue_after_revelation(
        self,
        game_id: str,
        *,
        notify: SessionNotifier | None = None,
    ) -> GameSession:
        async with self._locked(game_id) as session:
            updated = transitions.continue_after_revelation(session)
            self._games[game_id] = updated
            if notify is not None:
                await notify(updated)
        logger.info("play resumed", game_id=game_id)
        return updated

    def remove_game(self, game_id: str) -> GameSession | None:
        self._game_locks.pop(game_id, None)
        return self._games.pop(game_id, None)

    def start_reaper(self) -> None:
        """Start the periodic eviction task."""
        if self._reaper_task is not None:
            return
        self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def stop_reaper(self) -> None:
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None

    async def _reaper_loop(self) -> None:  # pragma: no cover
        while True:
            await asyncio.sleep(self._reaper_interval_seconds)
            await self.reap_expired_games()

    def _is_expired(self, session: GameSession, now: datetime) -> bool:
        if session.phase == GamePhase.FINISHED:
            finished_at = session.finished_at or session.created_at
            return now - finished_at > self._finished_ttl
        if session.phase == GamePhase.WAITING:
            return now - session.created_at > self._waiting_ttl
        return False

    async def reap_expired_games(self) -> list[str]:
        """Evict sessions finished past their TTL or left waiting too long. Return evicted ids."""
        now = datetime.now(UTC)
        expired = [game_id for game_id, session in self._games.items() if self._is_expired(session, now)]
        for game_id in expired:
            self.remove_game(game_id)
            logger.info("game evicted", game_id=game_id)

        if self._on_game_evicted:
            for game_id in expired:
                try:
                    await self._on_game_evicted(game_id)
                except Exception:
                    logger.exception("error in on_game_evicted callback", game_id=game_id)
        return expired
