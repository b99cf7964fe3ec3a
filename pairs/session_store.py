from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from pairs.api.models import GameSnapshot, SessionState
from pairs.config import EngineConfig, config_from_env
from pairs.scheduler import TurnScheduler
from pairs.streams import publish_snapshot
from pairs.timers import AsyncioTimers, Timers

logger = logging.getLogger(__name__)

SessionListener = Callable[[UUID, GameSnapshot], None]


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class GameSession:
    session_id: UUID
    scheduler: TurnScheduler
    timers: Timers
    created_at: datetime
    seed: int

    def state(self) -> SessionState:
        return SessionState(session_id=self.session_id, snapshot=self.scheduler.snapshot())


class SessionRegistry:
    """In-process sessions keyed by id.

    Sessions live only as long as the process; Redis only receives an outbox of
    snapshots for external consumers.
    """

    def __init__(
        self,
        *,
        config: EngineConfig | None = None,
        timers_factory: Callable[[], Timers] = AsyncioTimers,
    ) -> None:
        self._config = config
        self._timers_factory = timers_factory
        self._sessions: dict[UUID, GameSession] = {}
        self._listeners: list[SessionListener] = []

    @property
    def config(self) -> EngineConfig:
        if self._config is None:
            self._config = config_from_env()
        return self._config

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def create(
        self,
        *,
        player_names: list[str],
        r: redis.Redis | None = None,
        turn_delay_ms: int | None = None,
        reveal_delay_ms: int | None = None,
        seed: int | None = None,
    ) -> GameSession:
        config = self.config.with_overrides(turn_delay_ms=turn_delay_ms, reveal_delay_ms=reveal_delay_ms)

        if seed is None:
            seed = random.SystemRandom().randint(1, 2**31 - 1)
        timers = self._timers_factory()
        scheduler = TurnScheduler.new_game(
            player_names=player_names,
            timers=timers,
            config=config,
            rng=random.Random(seed),
        )

        session = GameSession(session_id=uuid4(), scheduler=scheduler, timers=timers, created_at=_now(), seed=seed)
        self._sessions[session.session_id] = session

        def _on_snapshot(snapshot: GameSnapshot) -> None:
            self._publish(session.session_id, snapshot, r=r)

        scheduler.subscribe(_on_snapshot)
        self._publish(session.session_id, scheduler.snapshot(), r=r)

        logger.info("Created session %s with %d players (seed=%d)", session.session_id, len(player_names), seed)
        return session

    def get(self, session_id: UUID) -> GameSession | None:
        return self._sessions.get(session_id)

    def require(self, session_id: UUID) -> GameSession:
        session = self.get(session_id)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        return session

    def remove(self, session_id: UUID) -> GameSession:
        """Drop a session and cancel its outstanding timers."""

        session = self._sessions.pop(session_id, None)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        session.scheduler.cancel_timers()
        logger.info("Removed session %s", session_id)
        return session

    def all(self) -> list[GameSession]:
        return sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)

    def _publish(self, session_id: UUID, snapshot: GameSnapshot, *, r: redis.Redis | None) -> None:
        if r is not None:
            try:
                publish_snapshot(r=r, session_id=str(session_id), snapshot=snapshot)
            except redis.RedisError:
                logger.exception("Failed to publish snapshot for session %s", session_id)

        for listener in list(self._listeners):
            listener(session_id, snapshot)
