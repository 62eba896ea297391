"""Per-session subscriber registry."""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relay_service.infrastructure.realtime.connection import SubscriberConnection

logger = logging.getLogger(__name__)


class SubscriberRegistry:
    """Tracks live subscribers per session id.

    Every mutation and read goes through one lock, so a broadcast sees
    either the old or the new membership of a session. Sessions are pruned
    as soon as their last subscriber leaves. The lock is only held for the
    dict/set bookkeeping, never while writing to a subscriber.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, set[SubscriberConnection]] = {}
        self._lock = threading.Lock()

    def register(self, session_id: str, subscriber: SubscriberConnection) -> None:
        with self._lock:
            subs = self._sessions.setdefault(session_id, set())
            subs.add(subscriber)
            total = len(subs)
        logger.info("Subscriber joined session=%s (total=%d)", session_id, total)

    def unregister(self, session_id: str, subscriber: SubscriberConnection) -> bool:
        """Remove *subscriber*; returns False when it was not registered."""
        with self._lock:
            subs = self._sessions.get(session_id)
            if not subs or subscriber not in subs:
                return False
            subs.discard(subscriber)
            if not subs:
                del self._sessions[session_id]
            remaining = len(subs)
        logger.info("Subscriber left session=%s (remaining=%d)", session_id, remaining)
        return True

    def snapshot(self, session_id: str) -> frozenset[SubscriberConnection]:
        with self._lock:
            return frozenset(self._sessions.get(session_id, ()))

    def list_active_sessions(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def subscriber_count(self, session_id: str | None = None) -> int:
        with self._lock:
            if session_id is not None:
                return len(self._sessions.get(session_id, ()))
            return sum(len(subs) for subs in self._sessions.values())
