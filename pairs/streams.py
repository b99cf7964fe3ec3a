from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import cast

import redis

from pairs.api.models import GameSnapshot


@dataclass(frozen=True, slots=True)
class SessionStream:
    session_id: str

    @property
    def key(self) -> str:
        return f"pairs:session:{self.session_id}"


def publish_to_stream(*, r: redis.Redis, stream: SessionStream, fields: Mapping[str, str], maxlen: int | None = None) -> str:
    """Append an entry to a session's outbox stream."""

    stream_id = r.xadd(stream.key, {str(k): str(v) for k, v in fields.items()}, maxlen=maxlen, approximate=maxlen is not None)
    return cast(str, stream_id)


def publish_snapshot(*, r: redis.Redis, session_id: str, snapshot: GameSnapshot, maxlen: int | None = 1000) -> str:
    return publish_to_stream(
        r=r,
        stream=SessionStream(session_id=session_id),
        fields={
            "type": "snapshot",
            "session_id": session_id,
            "phase": snapshot.phase.value,
            "game_over": "1" if snapshot.game_over else "0",
            "snapshot": snapshot.model_dump_json(),
        },
        maxlen=maxlen,
    )


def read_stream(*, r: redis.Redis, session_id: str, count: int = 20, start: str = "-", end: str = "+") -> list[tuple[str, dict[str, str]]]:
    entries = r.xrange(SessionStream(session_id=session_id).key, min=start, max=end, count=count)
    return cast(list[tuple[str, dict[str, str]]], entries)
