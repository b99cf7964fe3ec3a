from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from uuid import UUID

from fastapi import WebSocket

from pairs.api.models import GameSnapshot

logger = logging.getLogger(__name__)


class SessionWebSocketHub:
    """In-process WebSocket pub/sub keyed by session_id.

    Contract:
      - assign connection to a session via `connect(session_id, websocket)`.
      - `broadcast(session_id, payload)` from coroutines.
      - `notify(session_id, snapshot)` from synchronous code running on the loop
        (scheduler listeners, including timer callbacks).
    """

    def __init__(self) -> None:
        self._by_session: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_session[session_id].add(websocket)

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_session.get(session_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_session.pop(session_id, None)

    async def broadcast(self, session_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_session.get(session_id, set()))

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("Dropping dead websocket for session %s", session_id, exc_info=True)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_session.get(session_id, set()).discard(ws)

    def notify(self, session_id: UUID, snapshot: GameSnapshot) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Driven outside the event loop (e.g. a manual clock); nobody to push to.
            return

        payload: dict[str, object] = {
            "type": "session_updated",
            "session_id": str(session_id),
            "phase": snapshot.phase.value,
        }
        task = loop.create_task(self.broadcast(str(session_id), payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


hub = SessionWebSocketHub()
