"""Transport sinks a SubscriberConnection writes to."""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

from relay_service.infrastructure.realtime.errors import SinkClosedError, SinkOverflowError
from relay_service.infrastructure.realtime.protocol import PONG, Envelope

logger = logging.getLogger(__name__)

SSE_HEARTBEAT = ":heartbeat\n\n"


class Sink(Protocol):
    async def send(self, raw: str) -> None: ...
    async def heartbeat(self) -> None: ...
    async def close(self) -> None: ...


class WebSocketSink:
    """Writes envelopes as WebSocket text frames."""

    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws

    async def send(self, raw: str) -> None:
        if self._ws.application_state != WebSocketState.CONNECTED:
            raise SinkClosedError("websocket is not connected")
        await self._ws.send_text(raw)

    async def heartbeat(self) -> None:
        await self.send(Envelope(type=PONG).to_json())

    async def close(self) -> None:
        if WebSocketState.DISCONNECTED in (self._ws.application_state, self._ws.client_state):
            return
        try:
            await self._ws.close()
        except (RuntimeError, WebSocketDisconnect):
            # Peer already went away; the ASGI server rejects a second close.
            logger.debug("WebSocket already closed", exc_info=True)


class SSESink:
    """Bounded per-connection queue drained by a streaming response.

    Writes never block: a full queue means the client is not keeping up and
    the write fails, which the caller treats as a dead connection.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=max_queue_size)
        self._max_queue_size = max_queue_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, raw: str) -> None:
        self._put(f"data: {raw}\n\n")

    async def heartbeat(self) -> None:
        self._put(SSE_HEARTBEAT)

    def _put(self, chunk: str) -> None:
        if self._closed:
            raise SinkClosedError("event stream is closed")
        try:
            self._queue.put_nowait(chunk)
        except asyncio.QueueFull:
            raise SinkOverflowError(
                f"event stream queue full (size={self._max_queue_size})"
            ) from None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Make room for the end marker; pending chunks are dropped.
        while True:
            try:
                self._queue.put_nowait(None)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    async def stream(self) -> AsyncIterator[str]:
        """Yield framed chunks until the sink is closed."""
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk
