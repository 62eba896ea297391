from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Request

from relay_service.api.deps import DispatcherDep
from relay_service.api.v1.schemas.common import WebhookAck
from relay_service.config import settings
from relay_service.services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhook", tags=["webhooks"])


@router.post("/supabase", response_model=WebhookAck)
async def supabase_webhook(
    request: Request,
    background: BackgroundTasks,
    dispatcher: DispatcherDep,
) -> WebhookAck:
    """Acknowledge first; the event is parsed and dispatched after the response."""
    raw = await request.body()
    logger.info("Change notification received (%d bytes)", len(raw))
    background.add_task(
        notification_service.handle_raw_event,
        raw,
        dispatcher,
        messages_table=settings.MESSAGES_TABLE,
    )
    return WebhookAck()
