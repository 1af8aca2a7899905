"""Calmish Companion API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CalmishError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Responder and rate limiter live on app.state, built once per app

Design Decisions:
    - create_app() factory: tests inject a fake model client without patching
    - Responder is None when no real API key is configured; /api/chat then
      answers 503 and /api/health reports aiAvailable=false
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calmish.api.error_handlers import register_error_handlers
from calmish.api.routes import chat, health
from calmish.config import Settings, get_settings
from calmish.infrastructure.anthropic_client import ResilientAnthropicClient
from calmish.infrastructure.observability import setup_logging
from calmish.infrastructure.rate_limiter import FixedWindowRateLimiter
from calmish.services.companion_responder import CompanionResponder, MessageClient

logger = logging.getLogger(__name__)

_PLACEHOLDER_KEY = "sk-ant-placeholder"


def _build_client(settings: Settings) -> ResilientAnthropicClient | None:
    if not settings.anthropic_api_key or settings.anthropic_api_key == _PLACEHOLDER_KEY:
        logger.warning("ANTHROPIC_API_KEY not set, companion chat disabled")
        return None
    return ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        max_retries=settings.anthropic_max_retries,
        base_delay_ms=settings.anthropic_base_delay_ms,
        max_delay_ms=settings.anthropic_max_delay_ms,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        f"Calmish companion API started (AI service: "
        f"{'available' if app.state.responder else 'not available'})",
    )
    yield
    client = app.state.model_client
    if isinstance(client, ResilientAnthropicClient):
        await client.close()
    logger.info("Calmish companion API shutting down")


def create_app(
    settings: Settings | None = None,
    model_client: MessageClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    model_client = model_client or _build_client(settings)

    app = FastAPI(title="Calmish Companion API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.model_client = model_client
    app.state.responder = (
        CompanionResponder(
            model_client,
            model=settings.chat_model,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
        )
        if model_client is not None else None
    )
    app.state.rate_limiter = FixedWindowRateLimiter(
        settings.chat_rate_limit_max, settings.chat_rate_limit_window_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(chat.router)
    register_error_handlers(app)
    return app


def run() -> None:
    """Console entry point: serve the companion API with uvicorn."""
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=3001)  # nosec B104
