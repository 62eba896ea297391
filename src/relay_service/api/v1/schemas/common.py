from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    field: str | None = None
    required_fields: list[str] | None = None
    example: dict[str, Any] | None = None
    hint: str | None = None
    session_id: str | None = None
    messages: list[Any] | None = None
    requested_url: str | None = None
    available_endpoints: list[str] | None = None


class WebhookAck(BaseModel):
    success: bool = True
    message: str = "Webhook received"
