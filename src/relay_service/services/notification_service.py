"""Change-notification ingress: store inserts become NEW_MESSAGE broadcasts."""
from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from relay_service.application.dto.events import ChangeEvent
from relay_service.application.ports.broadcast import Broadcaster
from relay_service.domain.value_objects.enums import ChangeType

logger = logging.getLogger(__name__)


async def handle_change_event(
    event: ChangeEvent,
    broadcaster: Broadcaster,
    *,
    messages_table: str = "messages",
) -> int:
    """Broadcast inserted message rows; other mutations are ignored.

    Returns the number of subscribers reached. The same insert may also have
    been broadcast by the direct-write path; consumers de-duplicate by id.
    """
    if event.type is not ChangeType.INSERT or event.table != messages_table:
        logger.debug("Ignoring %s on table=%s", event.type, event.table)
        return 0

    record = event.record or {}
    session_id = record.get("session_id")
    if not session_id:
        logger.warning("Insert on %s without session_id, skipping", event.table)
        return 0

    delivered = await broadcaster.broadcast_message(str(session_id), record)
    logger.info("Change feed insert delivered to %d subscriber(s) in session=%s", delivered, session_id)
    return delivered


async def handle_raw_event(
    raw: str | bytes,
    broadcaster: Broadcaster,
    *,
    messages_table: str = "messages",
) -> int:
    """Parse and handle one event; failures are logged, never raised."""
    try:
        event = ChangeEvent.model_validate_json(raw)
    except PydanticValidationError as exc:
        logger.warning("Malformed change event: %s", exc.errors(include_url=False))
        return 0

    try:
        return await handle_change_event(event, broadcaster, messages_table=messages_table)
    except Exception:
        logger.exception("Error processing change event on table=%s", event.table)
        return 0
