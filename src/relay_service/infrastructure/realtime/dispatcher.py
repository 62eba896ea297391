"""Session-scoped fan-out of envelopes to live subscribers."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from relay_service.infrastructure.realtime.connection import SubscriberConnection
from relay_service.infrastructure.realtime.protocol import Envelope
from relay_service.infrastructure.realtime.registry import SubscriberRegistry

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """Implements application.ports.broadcast.Broadcaster."""

    def __init__(self, registry: SubscriberRegistry, *, send_timeout: float = 5.0) -> None:
        self._registry = registry
        self._send_timeout = send_timeout

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    async def broadcast(self, session_id: str, envelope: Envelope) -> int:
        """Deliver *envelope* to every subscriber of *session_id*.

        Returns the number of subscribers that accepted the write. A
        subscriber whose write fails or times out is closed and drops out
        of the registry; the others are unaffected.
        """
        subscribers = self._registry.snapshot(session_id)
        if not subscribers:
            logger.debug("No subscribers for session=%s", session_id)
            return 0

        raw = envelope.to_json()
        logger.info(
            "Broadcasting %s to %d subscriber(s) in session=%s",
            envelope.type, len(subscribers), session_id,
        )
        results = await asyncio.gather(*(self._deliver(sub, raw) for sub in subscribers))
        return sum(results)

    async def _deliver(self, subscriber: SubscriberConnection, raw: str) -> bool:
        try:
            await asyncio.wait_for(subscriber.send(raw), timeout=self._send_timeout)
        except Exception as exc:
            logger.warning(
                "Delivery failed for session=%s, dropping subscriber: %r",
                subscriber.session_id, exc,
            )
            await subscriber.close("delivery failed")
            return False
        return True

    async def broadcast_message(self, session_id: str, record: dict[str, Any]) -> int:
        return await self.broadcast(session_id, Envelope.new_message(record))

    async def close_all(self, reason: str = "shutdown") -> int:
        """Close every registered subscriber; used on process shutdown."""
        closed = 0
        for session_id in self._registry.list_active_sessions():
            for subscriber in self._registry.snapshot(session_id):
                if await subscriber.close(reason):
                    closed += 1
        if closed:
            logger.info("Closed %d subscriber connection(s) (%s)", closed, reason)
        return closed
