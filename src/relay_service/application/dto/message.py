from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    session_id: str | None
    sender_id: str | None
    message_text: str | None
    recipient_id: str | None = None
