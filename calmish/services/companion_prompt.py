"""Companion Prompt - system prompt and message list for the chat model.

Invariants:
    - Display name falls back to "there" when missing or blank
    - Built message list starts with a user turn and alternates roles
    - Input history is never mutated
"""

from calmish.schemas.chat import ChatTurn

FALLBACK_DISPLAY_NAME = "there"

_SYSTEM_PROMPT = """You are Calmish, a warm, empathetic wellness companion for women over 40.
You're supportive, gentle, and understanding. Always address the user by name ({name}) when possible.

Your responses should be:
- Warm and validating
- Supportive without being dismissive
- Practical but gentle
- Understanding of life transitions
- Encouraging self-care and boundaries

Keep responses concise but meaningful, typically 2-4 sentences unless more detail is needed.
If someone shares something difficult, acknowledge their feelings before offering support."""


def build_system_prompt(display_name: str | None) -> str:
    name = (display_name or "").strip() or FALLBACK_DISPLAY_NAME
    return _SYSTEM_PROMPT.format(name=name)


def build_messages(history: list[ChatTurn], message: str) -> list[dict]:
    """Anthropic messages: history + new user message, roles alternating.

    Leading assistant turns are dropped; consecutive same-role turns are
    joined with a blank line.
    """
    turns = [(t.role, t.text) for t in history] + [("user", message)]
    while turns and turns[0][0] != "user":
        turns.pop(0)

    messages: list[dict] = []
    for role, text in turns:
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n\n" + text
        else:
            messages.append({"role": role, "content": text})
    return messages
