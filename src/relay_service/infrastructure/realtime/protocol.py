"""Envelope models pushed to subscribers."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

CONNECTED = "connected"
NEW_MESSAGE = "NEW_MESSAGE"
PONG = "pong"
ERROR = "error"


class Envelope(BaseModel):
    """Server → Client."""

    type: str  # connected | NEW_MESSAGE | pong | error
    session_id: str | None = None
    message: dict[str, Any] | None = None
    detail: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_unset=True)

    @classmethod
    def connected(cls, session_id: str) -> Envelope:
        return cls(type=CONNECTED, session_id=session_id)

    @classmethod
    def new_message(cls, record: dict[str, Any]) -> Envelope:
        return cls(type=NEW_MESSAGE, message=record)


class WsInbound(BaseModel):
    """Client → Server (WebSocket transport only)."""

    type: str  # ping
    data: dict[str, Any] = {}
