from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from pairs.api.deps import get_redis, get_registry
from pairs.api.models import (
    GameSnapshot,
    SessionCreateRequest,
    SessionListResponse,
    SessionState,
    parse_command,
)
from pairs.session_store import GameSession, SessionRegistry
from pairs.streams import read_stream
from pairs.websocket_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_session(registry: SessionRegistry, session_id: UUID) -> GameSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    sid = str(session_id)
    await hub.connect(sid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(sid, websocket)
    except Exception:
        await hub.disconnect(sid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/session", response_model=SessionState, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    payload: SessionCreateRequest,
    r: redis.Redis = Depends(get_redis),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionState:
    try:
        session = registry.create(
            r=r,
            player_names=payload.player_names,
            turn_delay_ms=payload.turn_delay_ms,
            reveal_delay_ms=payload.reveal_delay_ms,
            seed=payload.seed,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return session.state()


@router.get("/session", response_model=SessionListResponse)
async def list_sessions_route(registry: SessionRegistry = Depends(get_registry)) -> SessionListResponse:
    return SessionListResponse(sessions=[s.state() for s in registry.all()])


@router.get("/session/{session_id}", response_model=GameSnapshot)
async def get_session_route(session_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> GameSnapshot:
    return _require_session(registry, session_id).scheduler.snapshot()


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> None:
    try:
        registry.remove(session_id)
    except KeyError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e


@router.post("/session/{session_id}/commands", response_model=GameSnapshot)
async def command_route(
    session_id: UUID,
    body: dict[str, Any],
    registry: SessionRegistry = Depends(get_registry),
) -> GameSnapshot:
    session = _require_session(registry, session_id)
    try:
        command = parse_command(body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    logger.debug("Session %s command %s", session_id, command.type)
    return session.scheduler.dispatch(command)


@router.get("/session/{session_id}/events")
async def get_session_events_route(
    session_id: UUID,
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, object]:
    """Debug endpoint: read a session's snapshot outbox stream."""

    _require_session(registry, session_id)
    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    try:
        entries = read_stream(r=r, session_id=str(session_id), count=count, start=start, end=end)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"session_id": str(session_id), "messages": messages}
