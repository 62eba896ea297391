from __future__ import annotations

from typing import Any, Protocol


class Broadcaster(Protocol):
    async def broadcast_message(self, session_id: str, record: dict[str, Any]) -> int:
        """Push a NEW_MESSAGE envelope for *record* to the session's subscribers."""
        ...
