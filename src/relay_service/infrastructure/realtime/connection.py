"""Subscriber connection lifecycle: handshake, heartbeat, one-shot teardown."""
from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from relay_service.infrastructure.realtime.errors import ConnectionClosedError
from relay_service.infrastructure.realtime.protocol import Envelope
from relay_service.infrastructure.realtime.registry import SubscriberRegistry
from relay_service.infrastructure.realtime.sinks import Sink

logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    HANDSHAKING = "handshaking"
    OPEN = "open"
    CLOSED = "closed"


class SubscriberConnection:
    """One live delivery channel bound to a single session.

    HANDSHAKING -> OPEN -> CLOSED. Every termination trigger (peer close,
    failed write, failed heartbeat, shutdown) ends in :meth:`close`, which
    runs its cleanup at most once.
    """

    def __init__(
        self,
        session_id: str,
        sink: Sink,
        registry: SubscriberRegistry,
        *,
        heartbeat_interval: float = 30.0,
        pulse_timeout: float = 5.0,
    ) -> None:
        self.session_id = session_id
        self._sink = sink
        self._registry = registry
        self._heartbeat_interval = heartbeat_interval
        self._pulse_timeout = pulse_timeout
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self.state = ConnectionState.HANDSHAKING
        self.close_reason: str | None = None

    def __repr__(self) -> str:
        return f"<SubscriberConnection session={self.session_id!r} state={self.state}>"

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def open(self) -> bool:
        """Send the handshake, register, start the heartbeat.

        Returns False when the handshake write already failed; the
        connection is closed in that case.
        """
        try:
            await self._write(Envelope.connected(self.session_id).to_json())
        except Exception:
            logger.warning("Handshake failed for session=%s", self.session_id, exc_info=True)
            await self.close("handshake failed")
            return False

        if self.state is ConnectionState.CLOSED:
            return False

        self._registry.register(self.session_id, self)
        self.state = ConnectionState.OPEN
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat(), name=f"heartbeat-{self.session_id}",
        )
        return True

    async def send(self, raw: str) -> None:
        """Write one serialized envelope to the sink."""
        if self.state is ConnectionState.CLOSED:
            raise ConnectionClosedError(f"connection for session {self.session_id} is closed")
        await self._write(raw)

    async def _write(self, raw: str) -> None:
        async with self._write_lock:
            await self._sink.send(raw)

    async def _pulse(self) -> None:
        async with self._write_lock:
            await self._sink.heartbeat()

    async def _heartbeat(self) -> None:
        while self.state is ConnectionState.OPEN:
            await asyncio.sleep(self._heartbeat_interval)
            if self.state is not ConnectionState.OPEN:
                return
            try:
                await asyncio.wait_for(self._pulse(), timeout=self._pulse_timeout)
            except Exception as exc:
                logger.info("Heartbeat failed for session=%s: %r", self.session_id, exc)
                await self.close("heartbeat failed")
                return

    async def close(self, reason: str = "closed") -> bool:
        """Tear the connection down; returns True only for the call that did it."""
        if self.state is ConnectionState.CLOSED:
            return False
        self.state = ConnectionState.CLOSED
        self.close_reason = reason

        task = self._heartbeat_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        self._registry.unregister(self.session_id, self)
        try:
            await self._sink.close()
        except Exception:
            logger.warning("Failed to release sink for session=%s", self.session_id, exc_info=True)
        finally:
            self._closed.set()

        logger.info("Connection closed for session=%s (%s)", self.session_id, reason)
        return True

    async def wait_closed(self) -> None:
        await self._closed.wait()
