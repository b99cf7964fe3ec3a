from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

EventSource = Literal["command", "timer"]

EventName = Literal[
    "guess",
    "restart",
    "reveal",
    "turn_elapsed",
    "reveal_elapsed",
]


@dataclass(frozen=True, slots=True)
class EngineEvent:
    """One entry on the scheduler's queue: a user command or a timer firing.

    `epoch` is only meaningful for timer events; it records the restart
    generation the timer was scheduled in.
    """

    source: EventSource
    name: EventName
    payload: dict[str, Any] = field(default_factory=dict)
    epoch: int = 0
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def command(*, name: EventName, payload: dict[str, Any] | None = None) -> "EngineEvent":
        return EngineEvent(source="command", name=name, payload=payload or {})

    @staticmethod
    def timer(*, name: EventName, epoch: int) -> "EngineEvent":
        return EngineEvent(source="timer", name=name, epoch=epoch)
