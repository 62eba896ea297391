from __future__ import annotations

import logging
import uuid

from relay_service.application.dto.message import SendMessageDTO
from relay_service.application.exceptions import NotFoundError, ValidationError
from relay_service.application.ports.broadcast import Broadcaster
from relay_service.application.ports.clock import (
    Clock,
    IdGenerator,
    SystemClock,
    Uuid4Generator,
)
from relay_service.application.uow import UnitOfWork
from relay_service.domain.entities.message import Message
from relay_service.domain.value_objects.enums import MessageStatus, MessageType

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("session_id", "sender_id", "message_text")
DEFAULT_RECIPIENT_ID = "bot"

_system_clock = SystemClock()
_uuid4 = Uuid4Generator()


def validate_send(dto: SendMessageDTO) -> None:
    """Raise ValidationError naming the first missing or blank field."""
    if not dto.session_id:
        raise ValidationError("Missing required field: session_id", field="session_id")
    if not dto.sender_id:
        raise ValidationError("Missing required field: sender_id", field="sender_id")
    if not dto.message_text or not dto.message_text.strip():
        raise ValidationError("Missing required field: message_text", field="message_text")


async def send_message(
    dto: SendMessageDTO,
    uow: UnitOfWork,
    broadcaster: Broadcaster,
    *,
    default_recipient_id: str = DEFAULT_RECIPIENT_ID,
    clock: Clock = _system_clock,
    ids: IdGenerator = _uuid4,
) -> Message:
    """Persist a new message, then push it to the session's live subscribers.

    Persist and broadcast are not atomic: a crash between them leaves the
    message stored but undelivered until subscribers re-fetch history or
    the change feed reports the insert.
    """
    validate_send(dto)
    assert dto.session_id and dto.sender_id and dto.message_text

    msg = Message(
        id=ids.new_id(),
        session_id=dto.session_id,
        sender_id=dto.sender_id,
        recipient_id=dto.recipient_id or default_recipient_id,
        message_text=dto.message_text,
        message_type=MessageType.TEXT.value,
        status=MessageStatus.SENT.value,
        timestamp=clock.now(),
    )
    preview = msg.message_text[:50] + ("..." if len(msg.message_text) > 50 else "")
    logger.info("New message from %s to %s: %r", msg.sender_id, msg.recipient_id, preview)

    stored = await uow.messages.insert(msg)
    await uow.commit()
    logger.info("Message saved id=%s session=%s", stored.id, stored.session_id)

    await broadcaster.broadcast_message(stored.session_id, message_to_record(stored))
    return stored


async def list_messages(session_id: str, uow: UnitOfWork) -> list[Message]:
    messages = await uow.messages.list_by_session(session_id)
    logger.debug("Found %d messages for session=%s", len(messages), session_id)
    return messages


async def get_message(message_id: str, uow: UnitOfWork) -> Message:
    try:
        key = uuid.UUID(message_id)
    except ValueError:
        raise NotFoundError("Message not found") from None

    msg = await uow.messages.get_by_id(key)
    if msg is None:
        raise NotFoundError("Message not found")
    return msg


async def list_sessions(uow: UnitOfWork) -> list[str]:
    return await uow.messages.list_session_ids()


async def count_messages(uow: UnitOfWork) -> int:
    return await uow.messages.count()


def message_to_record(msg: Message) -> dict[str, str]:
    """JSON-ready record as pushed to subscribers and returned by the API."""
    return {
        "id": str(msg.id),
        "session_id": msg.session_id,
        "sender_id": msg.sender_id,
        "recipient_id": msg.recipient_id,
        "message_text": msg.message_text,
        "message_type": msg.message_type,
        "status": msg.status,
        "timestamp": msg.timestamp.isoformat(),
    }
