"""Chat Route - POST /api/chat, one companion reply per request.

Invariants:
    - Body validated by ChatRequest before the handler runs (1-2000 char message)
    - Rate limit checked before the model is called
    - Failures surface as ChatServiceError envelopes with user-facing messages
"""

import logging

from fastapi import APIRouter, Depends

from calmish.api.dependencies import enforce_rate_limit, get_responder
from calmish.schemas.chat import ChatReply, ChatRequest
from calmish.services.companion_responder import CompanionResponder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


@router.post(
    "/chat", response_model=ChatReply, response_model_by_alias=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def chat(
    body: ChatRequest,
    responder: CompanionResponder = Depends(get_responder),
):
    """Send a message to the companion and return its reply."""
    return await responder.reply(body)
