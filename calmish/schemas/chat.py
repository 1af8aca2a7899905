"""Chat Schemas - Pydantic models with field-level validation for the chat API.

Invariants:
    - ChatRequest.message: 1-2000 chars, stripped, non-empty
    - conversationHistory turns are role-tagged (user | assistant)
    - Wire names are camelCase; Python attributes are snake_case

Design Decisions:
    - Literal type for ChatTurn.role over str enum: Pydantic handles validation natively
    - field_validator for side-effect-free transforms (strip) - keeps models pure
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from calmish.core.domain_types import (
    MAX_CHAT_MESSAGE_CHARS, MAX_CHAT_TURN_CHARS, MAX_DISPLAY_NAME_CHARS,
)

MAX_HISTORY_TURNS = 50


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    text: str = Field(min_length=1, max_length=MAX_CHAT_TURN_CHARS)


class ChatRequest(BaseModel):
    """Companion chat request - message plus prior turns."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=MAX_CHAT_MESSAGE_CHARS)
    conversation_history: list[ChatTurn] = Field(
        default_factory=list, alias="conversationHistory",
        max_length=MAX_HISTORY_TURNS,
    )
    user_display_name: str | None = Field(
        None, alias="userDisplayName", max_length=MAX_DISPLAY_NAME_CHARS,
    )

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message cannot be empty or whitespace")
        return v


class ChatReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply_text: str = Field(alias="replyText")
    timestamp: datetime


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    timestamp: datetime
    ai_available: bool = Field(alias="aiAvailable")


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    uptime_seconds: float = Field(alias="uptimeSeconds")
    ai_available: bool = Field(alias="aiAvailable")
