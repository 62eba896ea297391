"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from relay_service.application.exceptions import StoreError
from relay_service.domain.entities.message import Message
from relay_service.domain.value_objects.enums import MessageStatus, MessageType
from relay_service.infrastructure.realtime.connection import SubscriberConnection
from relay_service.infrastructure.realtime.registry import SubscriberRegistry

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_message(
    *,
    session_id: str = "s1",
    sender_id: str = "u1",
    body: str = "hello",
    timestamp: datetime | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        session_id=session_id,
        sender_id=sender_id,
        recipient_id="bot",
        message_text=body,
        message_type=MessageType.TEXT,
        status=MessageStatus.SENT,
        timestamp=timestamp or datetime.now(timezone.utc),
    )


@dataclass
class FakeMessageStore:
    _messages: list[Message] = field(default_factory=list)
    fail_with: str | None = None

    def _check(self) -> None:
        if self.fail_with:
            raise StoreError(self.fail_with)

    async def insert(self, message: Message) -> Message:
        self._check()
        self._messages.append(message)
        return message

    async def list_by_session(self, session_id: str) -> list[Message]:
        self._check()
        found = [m for m in self._messages if m.session_id == session_id]
        return sorted(found, key=lambda m: (m.timestamp, str(m.id)))

    async def get_by_id(self, message_id: UUID) -> Message | None:
        self._check()
        return next((m for m in self._messages if m.id == message_id), None)

    async def list_session_ids(self) -> list[str]:
        self._check()
        return sorted({m.session_id for m in self._messages})

    async def count(self) -> int:
        self._check()
        return len(self._messages)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageStore = field(default_factory=FakeMessageStore)
    _committed: bool = False

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass


@dataclass
class FakeBroadcaster:
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    async def broadcast_message(self, session_id: str, record: dict[str, Any]) -> int:
        self.calls.append((session_id, record))
        return 1


@dataclass
class FixedClock:
    current: datetime = T0
    step: timedelta = timedelta(seconds=1)

    def now(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class RecordingSink:
    """Sink that keeps every write; can be told to fail from a given write on."""

    def __init__(self, *, fail_after: int | None = None, fail_heartbeat: bool = False) -> None:
        self.writes: list[str] = []
        self.heartbeats = 0
        self.close_calls = 0
        self._fail_after = fail_after
        self._fail_heartbeat = fail_heartbeat

    async def send(self, raw: str) -> None:
        if self._fail_after is not None and len(self.writes) >= self._fail_after:
            raise ConnectionResetError("peer reset")
        self.writes.append(raw)

    async def heartbeat(self) -> None:
        if self._fail_heartbeat:
            raise ConnectionResetError("peer reset")
        self.heartbeats += 1

    async def close(self) -> None:
        self.close_calls += 1


class StalledSink(RecordingSink):
    """Accepts the handshake, then blocks forever on the next write."""

    async def send(self, raw: str) -> None:
        if self.writes:
            await asyncio.Event().wait()
        self.writes.append(raw)


class HangingHeartbeatSink(RecordingSink):
    """Accepts writes, but a heartbeat pulse never completes."""

    async def heartbeat(self) -> None:
        await asyncio.Event().wait()


class GatedHeartbeatSink(RecordingSink):
    """Heartbeat pulse that blocks on `gate`, then fails."""

    def __init__(self) -> None:
        super().__init__()
        self.pulse_started = asyncio.Event()
        self.gate = asyncio.Event()

    async def heartbeat(self) -> None:
        self.pulse_started.set()
        await self.gate.wait()
        raise ConnectionResetError("peer reset")


@pytest.fixture
def registry() -> SubscriberRegistry:
    return SubscriberRegistry()


def make_connection(
    registry: SubscriberRegistry,
    session_id: str = "s1",
    sink: RecordingSink | None = None,
    *,
    heartbeat_interval: float = 30.0,
    pulse_timeout: float = 5.0,
) -> tuple[SubscriberConnection, RecordingSink]:
    sink = sink or RecordingSink()
    conn = SubscriberConnection(
        session_id, sink, registry,
        heartbeat_interval=heartbeat_interval, pulse_timeout=pulse_timeout,
    )
    return conn, sink
