from __future__ import annotations

from relay_service.domain.entities.message import Message
from relay_service.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        session_id=model.session_id,
        sender_id=model.sender_id,
        recipient_id=model.recipient_id,
        message_text=model.message_text,
        message_type=model.message_type,
        status=model.status,
        timestamp=model.timestamp,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        session_id=entity.session_id,
        sender_id=entity.sender_id,
        recipient_id=entity.recipient_id,
        message_text=entity.message_text,
        message_type=entity.message_type,
        status=entity.status,
        timestamp=entity.timestamp,
    )
