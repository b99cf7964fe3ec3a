from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from pairs.config import EngineConfig
from pairs.core.cards import build_deck
from pairs.core.context import GameContext, new_context
from pairs.core.roster import build_roster
from pairs.scheduler import TurnScheduler
from pairs.session_store import SessionRegistry
from pairs.timers import ManualTimers
from pairs.websocket_hub import hub


def _make_context(*, values: str = "ab", names: tuple[str, ...] = ("Ann",)) -> GameContext:
    """Unshuffled deck: cards[0], cards[1] share values[0], and so on."""

    return new_context(cards=build_deck(values), players=build_roster(list(names)))


def _make_scheduler(
    *,
    values: str = "ab",
    names: tuple[str, ...] = ("Ann",),
    timers: ManualTimers | None = None,
) -> tuple[TurnScheduler, ManualTimers]:
    clock = timers or ManualTimers()
    scheduler = TurnScheduler(context=_make_context(values=values, names=names), timers=clock, config=EngineConfig(values=values))
    return scheduler, clock


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis, SessionRegistry], None, None]:
    """FastAPI TestClient wired to fakeredis and a registry on a manual clock."""

    from pairs.api.deps import get_redis, get_registry
    from pairs.main import app

    r = fakeredis.FakeRedis(decode_responses=True)
    registry = SessionRegistry(config=EngineConfig(), timers_factory=ManualTimers)
    registry.subscribe(hub.notify)

    app.dependency_overrides[get_redis] = lambda: r
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c, r, registry
    app.dependency_overrides.clear()


@pytest.fixture()
def make_context():
    return _make_context


@pytest.fixture()
def make_scheduler():
    return _make_scheduler
