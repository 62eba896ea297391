from __future__ import annotations

from enum import StrEnum


class MessageType(StrEnum):
    TEXT = "text"


class MessageStatus(StrEnum):
    SENT = "sent"


class ChangeType(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
