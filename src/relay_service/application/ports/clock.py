from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Default wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class IdGenerator(Protocol):
    def new_id(self) -> uuid.UUID: ...


class Uuid4Generator:
    def new_id(self) -> uuid.UUID:
        return uuid.uuid4()
