from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class SendMessageRequest(BaseModel):
    """Fields are optional here so that a missing one is reported by name."""

    session_id: str | None = None
    sender_id: str | None = None
    message_text: str | None = None
    recipient_id: str | None = None


class MessageResponse(BaseModel):
    id: UUID
    session_id: str
    sender_id: str
    recipient_id: str
    message_text: str
    message_type: str
    status: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class MessageListResponse(BaseModel):
    success: bool = True
    session_id: str
    count: int
    messages: list[MessageResponse]
    timestamp: datetime


class SendMessageResponse(BaseModel):
    success: bool = True
    message: str = "Message sent successfully!"
    id: UUID
    session_id: str
    sender_id: str
    timestamp: datetime
    data: MessageResponse


class MessageDetailResponse(BaseModel):
    success: bool = True
    message: MessageResponse


class SessionListResponse(BaseModel):
    success: bool = True
    count: int
    sessions: list[str]
    active_sse_sessions: list[str]
