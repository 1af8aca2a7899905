"""API Dependencies - per-app collaborators read from app.state.

Invariants:
    - Routes never build clients themselves; create_app() owns construction
    - A missing responder means the AI service is not configured
"""

from fastapi import Request

from calmish.core.errors import ChatServiceError
from calmish.infrastructure.rate_limiter import FixedWindowRateLimiter
from calmish.services.companion_responder import CompanionResponder, UNAVAILABLE_MESSAGE


def ai_available(request: Request) -> bool:
    return request.app.state.responder is not None


def get_responder(request: Request) -> CompanionResponder:
    responder = request.app.state.responder
    if responder is None:
        raise ChatServiceError("Chat responder not configured", UNAVAILABLE_MESSAGE)
    return responder


def enforce_rate_limit(request: Request) -> None:
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "unknown"
    limiter.hit(client)
