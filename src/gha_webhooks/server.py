"""FastAPI webhook server."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from gha_webhooks.config import Credentials, WebhookSettings
from gha_webhooks.dispatch import DynamicDispatcher, EventDispatcher, RedisStreamDispatcher
from gha_webhooks.exceptions import WebhookInternalError
from gha_webhooks.handler import WebhookHandler
from gha_webhooks.models import EVENT_HEADER, IncomingRequest

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting webhook server")
    yield
    logger.info("Shutting down webhook server")


def _content_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _charset(request: Request) -> Optional[str]:
    """Get the charset parameter of the Content-Type header, if any."""
    content_type = request.headers.get("content-type", "")
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        value = value.strip().strip('"')
        if name.strip().lower() == "charset" and value:
            return value
    return None


async def _read_body(request: Request, limit: int) -> Optional[bytes]:
    """Read the request body, giving up once it exceeds ``limit`` bytes."""
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def create_app(
    settings: Optional[WebhookSettings] = None,
    credentials: Optional[Credentials] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> FastAPI:
    """Create and configure the FastAPI webhook application.

    Args:
        settings: Server settings, defaults loaded from the environment
        credentials: Secret store, built from ``settings`` when omitted
        dispatcher: Event dispatcher, a Redis stream dispatcher when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or WebhookSettings()
    credentials = credentials or Credentials.from_settings(settings)
    if dispatcher is None:
        dispatcher = DynamicDispatcher(
            RedisStreamDispatcher(
                redis_url=settings.redis_url,
                stream_name=settings.stream,
                max_length=settings.stream_max_length,
            )
        )

    app = FastAPI(
        title="GitHub Actions Webhook Receiver",
        description="Authenticates GitHub webhooks and forwards them to the event stream",
        version="0.1.0",
        lifespan=lifespan,
    )

    handler = WebhookHandler(credentials, dispatcher)
    app.state.settings = settings
    app.state.credentials = credentials
    app.state.handler = handler

    @app.exception_handler(WebhookInternalError)
    async def internal_error_handler(request: Request, exc: WebhookInternalError):
        logger.error(f"Webhook processing failed: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "message": "Webhook server is running",
            "secret_configured": credentials.is_configured(),
        }

    @app.post(settings.path)
    async def receive_webhook(request: Request):
        """Receive a GitHub webhook delivery."""
        client_ip = request.client.host if request.client else "unknown"
        incoming = IncomingRequest(
            method=request.method,
            headers=dict(request.headers),
            content_length=_content_length(request),
            encoding=_charset(request),
        )

        response = handler.check(incoming)
        if response is None:
            body = await _read_body(request, handler.max_body_size)
            if body is None:
                response = handler.oversize()
            else:
                response = await run_in_threadpool(handler.process, incoming.with_body(body))

        if not response.ok:
            logger.debug(
                f"AUDIT: Webhook rejected from {client_ip}: {response.status_code}",
                extra={
                    "event_type": incoming.header(EVENT_HEADER),
                    "client_ip": client_ip,
                    "reason": response.detail,
                },
            )
            raise HTTPException(status_code=response.status_code, detail=response.detail)

        event = response.event
        logger.info(
            f"AUDIT: Webhook {event.event_type} accepted from {client_ip}",
            extra={
                "event_type": event.event_type,
                "client_ip": client_ip,
                "delivery_id": event.delivery_id,
            },
        )
        return {
            "status": "accepted",
            "event_type": event.event_type,
            "delivery_id": event.delivery_id,
        }

    return app
