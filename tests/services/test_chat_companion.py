"""Chat Companion - tests for the app-side chat client against a mock service.

Invariants:
    - Success appends the user message then the assistant reply
    - Failure keeps the user message and raises ChatServiceError
    - Validation failures send nothing and append nothing
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from calmish.config import Settings
from calmish.core.app_state import ConversationMessage, UserProfile
from calmish.core.domain_types import MAX_CHAT_TURN_CHARS, MessageRole, Slice
from calmish.main import create_app
from calmish.core.errors import ChatServiceError, StateValidationError
from calmish.services.chat_companion import CHAT_PATH, ChatCompanion
from calmish.services.companion_responder import GENERIC_ERROR_MESSAGE, HIGH_DEMAND_MESSAGE
from tests.fakes import FakeMessageClient


def _companion(store, handler):
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://chat.test",
    )
    return ChatCompanion(store, http)


async def test_successful_send_appends_both_messages(store):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        assert request.url.path == CHAT_PATH
        return httpx.Response(200, json={
            "replyText": "That sounds hard, Ana.",
            "timestamp": "2026-03-01T09:30:00.000Z",
        })

    store.update_profile(name="Ana")
    reply = await _companion(store, handler).send("  rough day  ")

    assert reply.role == MessageRole.ASSISTANT
    assert reply.text == "That sounds hard, Ana."
    assert reply.timestamp.year == 2026
    assert [(m.role, m.text) for m in store.conversations] == [
        (MessageRole.USER, "rough day"),
        (MessageRole.ASSISTANT, "That sounds hard, Ana."),
    ]
    assert seen == [{
        "message": "rough day",
        "conversationHistory": [],
        "userDisplayName": "Ana",
    }]


async def test_history_is_log_before_this_message(store):
    payloads = []

    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"replyText": "ok"})

    companion = _companion(store, handler)
    await companion.send("first")
    await companion.send("second")

    assert payloads[0]["userDisplayName"] is None
    assert payloads[1]["conversationHistory"] == [
        {"role": "user", "text": "first"},
        {"role": "assistant", "text": "ok"},
    ]
    assert len(store.conversations) == 4


async def test_error_body_message_surfaces(store):
    def handler(request):
        return httpx.Response(503, json={
            "error": {"code": "CHAT_SERVICE_ERROR", "message": HIGH_DEMAND_MESSAGE},
        })

    with pytest.raises(ChatServiceError) as exc:
        await _companion(store, handler).send("hello")
    assert exc.value.user_message == HIGH_DEMAND_MESSAGE
    assert [m.role for m in store.conversations] == [MessageRole.USER]


async def test_non_json_error_uses_generic_message(store):
    def handler(request):
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(ChatServiceError) as exc:
        await _companion(store, handler).send("hello")
    assert exc.value.user_message == GENERIC_ERROR_MESSAGE


async def test_unreachable_service(store):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ChatServiceError) as exc:
        await _companion(store, handler).send("hello")
    assert exc.value.user_message == GENERIC_ERROR_MESSAGE
    assert len(store.conversations) == 1


async def test_missing_reply_text(store):
    def handler(request):
        return httpx.Response(200, json={"timestamp": "2026-03-01T09:30:00Z"})

    with pytest.raises(ChatServiceError):
        await _companion(store, handler).send("hello")


@pytest.mark.parametrize("text", ["", "   ", "x" * 2001, None])
async def test_invalid_message_sends_nothing(store, text):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"replyText": "ok"})

    with pytest.raises(StateValidationError):
        await _companion(store, handler).send(text)
    assert calls == []
    assert store.conversations == []


# -- Payload stays within the service's request limits --------------------------

def _echo_payloads(payloads):
    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"replyText": "ok"})
    return handler


async def test_long_restored_name_is_truncated(store):
    store.restore(Slice.USER, UserProfile(name="A" * 150))
    payloads = []
    await _companion(store, _echo_payloads(payloads)).send("hello")
    assert payloads[0]["userDisplayName"] == "A" * 100


async def test_history_skips_empty_and_cuts_long_turns(store):
    now = datetime.now(timezone.utc)
    store.restore(Slice.CONVERSATIONS, [
        ConversationMessage(MessageRole.ASSISTANT, "", now),
        ConversationMessage(MessageRole.ASSISTANT, "x" * (MAX_CHAT_TURN_CHARS + 5), now),
    ])
    payloads = []
    await _companion(store, _echo_payloads(payloads)).send("hello")
    history = payloads[0]["conversationHistory"]
    assert len(history) == 1
    assert len(history[0]["text"]) == MAX_CHAT_TURN_CHARS


async def test_companion_service_accepts_client_payloads(store):
    now = datetime.now(timezone.utc)
    store.restore(Slice.USER, UserProfile(name="A" * 150))
    store.restore(Slice.CONVERSATIONS, [
        ConversationMessage(MessageRole.ASSISTANT, "", now),
        ConversationMessage(MessageRole.ASSISTANT, "y" * (MAX_CHAT_TURN_CHARS + 1), now),
    ])
    app = create_app(
        Settings(anthropic_api_key="sk-ant-test-fake-key", log_format="text"),
        model_client=FakeMessageClient(),
    )
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    companion = ChatCompanion(store, http)

    first = await companion.send("hello")
    second = await companion.send("still there?")
    await http.aclose()

    assert first.text == "Hello there."
    assert second.role == MessageRole.ASSISTANT
