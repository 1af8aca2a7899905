"""Chat Companion - app-side client for the remote companion chat service.

Invariants:
    - The user message is appended to the conversation log before the call
      and stays there even if the call fails
    - The assistant reply is appended only on success
    - Every failure surfaces as ChatServiceError with a user-facing message
    - History sent to the service is the log as it was before this message,
      trimmed to the turn and length limits the service validates

Design Decisions:
    - httpx.AsyncClient injected (ADR: tests use MockTransport, no network)
    - Store mutations stay synchronous; only the HTTP call is awaited
"""

import logging
from datetime import datetime, timezone

import httpx

from calmish.core.app_state import ConversationMessage
from calmish.core.domain_types import (
    MAX_CHAT_MESSAGE_CHARS, MAX_CHAT_TURN_CHARS, MAX_DISPLAY_NAME_CHARS, MessageRole,
)
from calmish.core.errors import ChatServiceError, StateValidationError
from calmish.schemas.chat import MAX_HISTORY_TURNS
from calmish.services.companion_responder import GENERIC_ERROR_MESSAGE
from calmish.services.state_store import StateStore

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


class ChatCompanion:
    def __init__(self, store: StateStore, http: httpx.AsyncClient):
        self.store = store
        self.http = http

    def _history(self) -> list[dict]:
        """Last turns in the shape ChatTurn accepts: empty turns skipped, long ones cut."""
        turns = [
            {"role": m.role.value, "text": m.text[:MAX_CHAT_TURN_CHARS]}
            for m in self.store.conversations if m.text
        ]
        return turns[-MAX_HISTORY_TURNS:]

    def _display_name(self) -> str | None:
        name = self.store.user.name.strip()
        return name[:MAX_DISPLAY_NAME_CHARS] or None

    async def send(self, text: str) -> ConversationMessage:
        """Send one user message; returns the appended assistant message."""
        message = text.strip() if isinstance(text, str) else ""
        if not message or len(message) > MAX_CHAT_MESSAGE_CHARS:
            raise StateValidationError(
                f"message must be 1-{MAX_CHAT_MESSAGE_CHARS} characters",
                field="message", value=text,
            )

        payload = {
            "message": message,
            "conversationHistory": self._history(),
            "userDisplayName": self._display_name(),
        }
        self.store.append_conversation_message(ConversationMessage(
            role=MessageRole.USER, text=message,
            timestamp=datetime.now(timezone.utc),
        ))

        try:
            response = await self.http.post(CHAT_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Chat service unreachable: {e}")
            raise ChatServiceError(f"Chat service unreachable: {e}", GENERIC_ERROR_MESSAGE)

        body = _json_or_empty(response)
        if response.is_error:
            error = body.get("error") if isinstance(body.get("error"), dict) else {}
            user_message = error.get("message") or GENERIC_ERROR_MESSAGE
            logger.warning(
                f"Chat service returned {response.status_code}",
                extra={"error_code": error.get("code")},
            )
            raise ChatServiceError(
                f"Chat service returned {response.status_code}", user_message,
            )

        reply_text = body.get("replyText")
        if not isinstance(reply_text, str) or not reply_text:
            raise ChatServiceError("Chat service reply missing replyText", GENERIC_ERROR_MESSAGE)

        reply = ConversationMessage(
            role=MessageRole.ASSISTANT, text=reply_text,
            timestamp=_parse_timestamp(body.get("timestamp")),
        )
        self.store.append_conversation_message(reply)
        return reply


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse_timestamp(value) -> datetime:
    if isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    return datetime.now(timezone.utc)
