"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends
from starlette.requests import HTTPConnection

from relay_service.infrastructure.db.session import AsyncSessionLocal
from relay_service.infrastructure.db.uow import SqlAlchemyUoW
from relay_service.infrastructure.realtime.dispatcher import BroadcastDispatcher
from relay_service.infrastructure.realtime.registry import SubscriberRegistry


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_registry(conn: HTTPConnection) -> SubscriberRegistry:
    return conn.app.state.registry


def get_dispatcher(conn: HTTPConnection) -> BroadcastDispatcher:
    return conn.app.state.dispatcher


RegistryDep = Annotated[SubscriberRegistry, Depends(get_registry)]
DispatcherDep = Annotated[BroadcastDispatcher, Depends(get_dispatcher)]
