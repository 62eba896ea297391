from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    session_id: str
    sender_id: str
    recipient_id: str
    message_text: str
    message_type: str
    status: str
    timestamp: datetime
