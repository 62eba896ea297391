from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from relay_service.api.deps import RegistryDep, UoWDep
from relay_service.config import settings
from relay_service.infrastructure.db.session import AsyncSessionLocal
from relay_service.services import message_service

router = APIRouter(tags=["health"])

ENDPOINTS: dict[str, str] = {
    "health": "GET /",
    "testDB": "GET /api/test",
    "getMessages": "GET /api/messages/{session_id}",
    "sendMessage": "POST /api/messages",
    "getMessage": "GET /api/message/{message_id}",
    "getSessions": "GET /api/sessions",
    "sseStream": "GET /api/sse/{session_id}",
    "wsStream": "WS /ws/sessions/{session_id}",
    "webhook": "POST /webhook/supabase",
}


@router.get("/")
async def root(request: Request, registry: RegistryDep) -> dict[str, Any]:
    return {
        "message": "Session relay is running",
        "status": "healthy",
        "version": request.app.version,
        "sse_enabled": True,
        "connected_sessions": registry.list_active_sessions(),
        "endpoints": ENDPOINTS,
    }


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    errors: list[str] = []

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        errors.append(f"postgres: {exc}")

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        try:
            await redis.ping()
        except Exception as exc:  # noqa: BLE001
            errors.append(f"redis: {exc}")

    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": errors},
        )
    return JSONResponse(content={"status": "ready"})


@router.get("/api/test")
async def test_store(uow: UoWDep, registry: RegistryDep) -> dict[str, Any]:
    """Round-trip to the store; StoreError surfaces as a 500."""
    total = await message_service.count_messages(uow)
    return {
        "success": True,
        "message": "Database connected successfully!",
        "total_messages": total,
        "messages_table": settings.MESSAGES_TABLE,
        "sse_active_sessions": registry.list_active_sessions(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
