from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from relay_service.application.exceptions import StoreError
from relay_service.domain.entities.message import Message
from relay_service.infrastructure.db.mappers import message as mapper
from relay_service.infrastructure.db.models.message import MessageModel


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"{action} failed: {exc}") from exc


class MessageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        with _store_errors("insert message"):
            self._session.add(model)
            await self._session.flush()
            await self._session.refresh(model)
        return mapper.model_to_entity(model)

    async def list_by_session(self, session_id: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.session_id == session_id)
            .order_by(MessageModel.timestamp.asc(), MessageModel.id.asc())
        )
        with _store_errors("list messages"):
            result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def get_by_id(self, message_id: UUID) -> Message | None:
        with _store_errors("get message"):
            model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None

    async def list_session_ids(self) -> list[str]:
        stmt = select(MessageModel.session_id).distinct().order_by(MessageModel.session_id)
        with _store_errors("list sessions"):
            result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        with _store_errors("count messages"):
            result = await self._session.execute(select(func.count()).select_from(MessageModel))
        return int(result.scalar_one())
