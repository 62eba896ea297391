from __future__ import annotations

from typing import Protocol

from relay_service.application.repositories.message import MessageStore


class UnitOfWork(Protocol):
    messages: MessageStore

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
