"""Subscription endpoints: Server-Sent Events and WebSocket."""
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from relay_service.api.deps import RegistryDep
from relay_service.config import settings
from relay_service.infrastructure.realtime.connection import SubscriberConnection
from relay_service.infrastructure.realtime.errors import ConnectionClosedError
from relay_service.infrastructure.realtime.protocol import ERROR, PONG, Envelope, WsInbound
from relay_service.infrastructure.realtime.sinks import SSESink, WebSocketSink

logger = logging.getLogger(__name__)
router = APIRouter(tags=["stream"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _event_stream(connection: SubscriberConnection, sink: SSESink) -> AsyncIterator[str]:
    try:
        if not await connection.open():
            return
        async for chunk in sink.stream():
            yield chunk
    finally:
        await connection.close("client disconnected")


@router.get("/api/sse/{session_id}")
async def sse_stream(session_id: str, registry: RegistryDep) -> StreamingResponse:
    logger.info("SSE connection request for session=%s", session_id)
    sink = SSESink(settings.SSE_QUEUE_SIZE)
    connection = SubscriberConnection(
        session_id,
        sink,
        registry,
        heartbeat_interval=settings.HEARTBEAT_INTERVAL_SECONDS,
        pulse_timeout=settings.SEND_TIMEOUT_SECONDS,
    )
    return StreamingResponse(
        _event_stream(connection, sink),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.websocket("/ws/sessions/{session_id}")
async def ws_session(websocket: WebSocket, session_id: str, registry: RegistryDep) -> None:
    await websocket.accept()
    connection = SubscriberConnection(
        session_id,
        WebSocketSink(websocket),
        registry,
        heartbeat_interval=settings.HEARTBEAT_INTERVAL_SECONDS,
        pulse_timeout=settings.SEND_TIMEOUT_SECONDS,
    )
    if not await connection.open():
        return

    try:
        await _read_loop(websocket, connection)
    except (WebSocketDisconnect, ConnectionClosedError):
        pass
    except Exception:
        logger.exception("WS error for session=%s", session_id)
    finally:
        await connection.close("client disconnected")


async def _read_loop(ws: WebSocket, connection: SubscriberConnection) -> None:
    while connection.is_open:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            await connection.send(Envelope(type=ERROR, detail="invalid_payload").to_json())
            continue

        if msg.type == "ping":
            await connection.send(Envelope(type=PONG).to_json())
        else:
            await connection.send(Envelope(type=ERROR, detail=f"unknown_type:{msg.type}").to_json())
