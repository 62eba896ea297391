from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from relay_service.api.deps import DispatcherDep, RegistryDep, UoWDep
from relay_service.api.v1.schemas.message import (
    MessageDetailResponse,
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionListResponse,
)
from relay_service.application.dto.message import SendMessageDTO
from relay_service.config import settings
from relay_service.services import message_service

router = APIRouter(prefix="/api", tags=["messages"])


@router.get("/messages/{session_id}", response_model=MessageListResponse)
async def list_messages(session_id: str, uow: UoWDep) -> MessageListResponse:
    messages = await message_service.list_messages(session_id, uow)
    return MessageListResponse(
        session_id=session_id,
        count=len(messages),
        messages=[MessageResponse.model_validate(m, from_attributes=True) for m in messages],
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/messages", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    uow: UoWDep,
    dispatcher: DispatcherDep,
) -> SendMessageResponse:
    msg = await message_service.send_message(
        SendMessageDTO(
            session_id=body.session_id,
            sender_id=body.sender_id,
            message_text=body.message_text,
            recipient_id=body.recipient_id,
        ),
        uow,
        dispatcher,
        default_recipient_id=settings.DEFAULT_RECIPIENT_ID,
    )
    return SendMessageResponse(
        id=msg.id,
        session_id=msg.session_id,
        sender_id=msg.sender_id,
        timestamp=msg.timestamp,
        data=MessageResponse.model_validate(msg, from_attributes=True),
    )


@router.get("/message/{message_id}", response_model=MessageDetailResponse)
async def get_message(message_id: str, uow: UoWDep) -> MessageDetailResponse:
    msg = await message_service.get_message(message_id, uow)
    return MessageDetailResponse(message=MessageResponse.model_validate(msg, from_attributes=True))


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(uow: UoWDep, registry: RegistryDep) -> SessionListResponse:
    sessions = await message_service.list_sessions(uow)
    return SessionListResponse(
        count=len(sessions),
        sessions=sessions,
        active_sse_sessions=registry.list_active_sessions(),
    )
