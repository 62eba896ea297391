from __future__ import annotations

from typing import Protocol
from uuid import UUID

from relay_service.domain.entities.message import Message


class MessageStore(Protocol):
    async def insert(self, message: Message) -> Message:
        """Persist *message* and return the stored record."""
        ...

    async def list_by_session(self, session_id: str) -> list[Message]:
        """All messages of a session, oldest first."""
        ...

    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def list_session_ids(self) -> list[str]: ...

    async def count(self) -> int: ...
