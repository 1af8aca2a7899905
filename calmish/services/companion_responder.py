"""Companion Responder - turns a validated ChatRequest into a model reply.

Invariants:
    - Every failure leaves as ChatServiceError with a user-facing message
    - Model refusals map to the "rephrase" message, quota/rate limits to the
      "high demand" message, everything else to the generic message
    - No user state is kept between requests

Design Decisions:
    - Model client injected (ResilientAnthropicClient in production, fakes in tests)
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from calmish.core.errors import AnthropicAPIError, ChatServiceError, ErrorContext
from calmish.schemas.chat import ChatReply, ChatRequest
from calmish.services.companion_prompt import build_messages, build_system_prompt

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = (
    "I'm having trouble connecting right now. Please try again later."
)
HIGH_DEMAND_MESSAGE = (
    "I'm currently experiencing high demand. Please try again in a few minutes."
)
SAFETY_MESSAGE = (
    "I want to make sure I provide helpful and safe responses. "
    "Could you rephrase that?"
)
UNAVAILABLE_MESSAGE = "AI service not available. Please check server configuration."


class MessageClient(Protocol):
    async def create_message(
        self, *, model: str, max_tokens: int, system: str, messages: list,
        temperature: float = 0.7, context: ErrorContext | None = None,
    ): ...


def user_message_for(error: AnthropicAPIError) -> str:
    text = f"{error.api_error_type} {error.message}".lower()
    if error.api_error_type in ("rate_limit", "overloaded") or "quota" in text:
        return HIGH_DEMAND_MESSAGE
    if "safety" in text or "refusal" in text:
        return SAFETY_MESSAGE
    return GENERIC_ERROR_MESSAGE


class CompanionResponder:
    def __init__(
        self,
        client: MessageClient,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def reply(self, request: ChatRequest) -> ChatReply:
        context = ErrorContext(operation="chat")
        try:
            response = await self.client.create_message(
                model=self.model,
                max_tokens=self.max_tokens,
                system=build_system_prompt(request.user_display_name),
                messages=build_messages(request.conversation_history, request.message),
                temperature=self.temperature,
                context=context,
            )
        except AnthropicAPIError as e:
            logger.error(
                f"Chat model call failed: {e.message}",
                extra={"error_code": e.code},
            )
            raise ChatServiceError(e.message, user_message_for(e), context)

        if getattr(response, "stop_reason", None) == "refusal":
            raise ChatServiceError("Model refused to answer", SAFETY_MESSAGE, context)

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            raise ChatServiceError("Model returned no text", GENERIC_ERROR_MESSAGE, context)

        return ChatReply(reply_text=text, timestamp=datetime.now(timezone.utc))
