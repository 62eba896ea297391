from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay_service.api.middleware.correlation_id import CorrelationIdMiddleware
from relay_service.api.v1.routers import health, messages, stream, webhooks
from relay_service.api.v1.routers.health import ENDPOINTS
from relay_service.api.v1.schemas.common import ErrorResponse
from relay_service.application.exceptions import (
    NotFoundError,
    StoreError,
    ValidationError,
)
from relay_service.config import settings
from relay_service.infrastructure.bus.redis_pubsub import RedisChangeFeedSubscriber
from relay_service.infrastructure.db.session import engine
from relay_service.infrastructure.realtime.dispatcher import BroadcastDispatcher
from relay_service.infrastructure.realtime.registry import SubscriberRegistry
from relay_service.services import message_service, notification_service

logger = logging.getLogger(__name__)

SEND_EXAMPLE = {
    "session_id": "chat-session-123",
    "sender_id": "user1",
    "message_text": "Hello there!",
    "recipient_id": "user2",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    dispatcher: BroadcastDispatcher = app.state.dispatcher
    subscriber: RedisChangeFeedSubscriber | None = None

    if settings.CHANGE_FEED_ENABLED:
        app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Redis connection pool created")

        async def _on_change(raw: str) -> None:
            await notification_service.handle_raw_event(
                raw, dispatcher, messages_table=settings.MESSAGES_TABLE,
            )

        subscriber = RedisChangeFeedSubscriber(
            app.state.redis,
            settings.CHANGE_FEED_CHANNEL,
            _on_change,
            retry_seconds=settings.CHANGE_FEED_RETRY_SECONDS,
        )
        await subscriber.start()

    logger.info("Session relay started (heartbeat=%.0fs)", settings.HEARTBEAT_INTERVAL_SECONDS)

    yield

    logger.info("Shutting down, closing subscriber connections")
    await dispatcher.close_all("shutdown")
    if subscriber is not None:
        await subscriber.stop()
        await app.state.redis.aclose()
        logger.info("Redis connection pool closed")
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Session Relay",
        version="2.0.0",
        lifespan=lifespan,
    )

    registry = SubscriberRegistry()
    app.state.registry = registry
    app.state.dispatcher = BroadcastDispatcher(
        registry, send_timeout=settings.SEND_TIMEOUT_SECONDS,
    )
    app.state.redis = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(stream.router)
    app.include_router(webhooks.router)

    return app


def _error_response(body: ErrorResponse, status_code: int, **kwargs: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), **kwargs)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(ErrorResponse(
            error=exc.detail,
            field=exc.field,
            required_fields=list(message_service.REQUIRED_FIELDS),
            example=SEND_EXAMPLE,
        ), 400)

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(ErrorResponse(error=exc.detail), 404)

    @app.exception_handler(StoreError)
    async def _store(req: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error on %s %s: %s", req.method, req.url.path, exc.detail)
        body = ErrorResponse(
            error=exc.detail,
            hint="Check that the database is reachable and the messages table exists",
        )
        # session-scoped reads still report which session and an empty list
        session_id = req.path_params.get("session_id")
        if session_id is not None:
            body.session_id = session_id
            body.messages = []
        return _error_response(body, 500)

    @app.exception_handler(StarletteHTTPException)
    async def _http(req: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error_response(ErrorResponse(
                error="Route not found",
                requested_url=req.url.path,
                available_endpoints=list(ENDPOINTS.values()),
            ), 404)
        return _error_response(
            ErrorResponse(error=str(exc.detail)),
            exc.status_code,
            headers=getattr(exc, "headers", None),
        )
