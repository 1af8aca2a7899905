"""Event Bus - in-process publish/subscribe with typed topics.

Invariants:
    - Handlers run synchronously, in registration order, on the publisher's turn
    - A failing handler is logged and skipped; remaining handlers still run
    - Handler failures never propagate to the publisher
    - Payload type is checked against the topic before any handler runs
    - Subscriptions changed during a publish apply from the next publish on

Design Decisions:
    - EventTopic enum + TOPIC_PAYLOADS table over free-form strings: a payload
      mismatch is a programming error and fails loudly (TypeError)
    - No cycle detection: handlers that mutate the store recurse synchronously,
      keeping mutation cycles bounded is the handler author's job
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from calmish.core.app_state import BreathingSession

logger = logging.getLogger(__name__)

Handler = Callable[[Any], object]


class EventTopic(str, Enum):
    WATER_UPDATED = "waterUpdated"
    MOOD_UPDATED = "moodUpdated"
    HABIT_COMPLETED = "habitCompleted"
    SESSION_COMPLETED = "sessionCompleted"


TOPIC_PAYLOADS: dict[EventTopic, type] = {
    EventTopic.WATER_UPDATED: int,
    EventTopic.MOOD_UPDATED: int,
    EventTopic.HABIT_COMPLETED: str,
    EventTopic.SESSION_COMPLETED: BreathingSession,
}


@dataclass(frozen=True)
class Subscription:
    """Handle returned by subscribe(); cancel() removes the handler."""
    bus: "EventBus"
    topic: EventTopic
    handler: Handler

    def cancel(self) -> None:
        self.bus.unsubscribe(self.topic, self.handler)


class EventBus:
    """Ordered listener lists per topic."""

    def __init__(self):
        self._handlers: dict[EventTopic, list[Handler]] = {}

    def subscribe(self, topic: EventTopic | str, handler: Handler) -> Subscription:
        topic = EventTopic(topic)
        self._handlers.setdefault(topic, []).append(handler)
        return Subscription(self, topic, handler)

    def unsubscribe(self, topic: EventTopic | str, handler: Handler) -> None:
        """Remove the first registration of handler. No-op if absent."""
        handlers = self._handlers.get(EventTopic(topic), [])
        for index, registered in enumerate(handlers):
            if registered is handler or registered == handler:
                del handlers[index]
                return

    def publish(self, topic: EventTopic | str, payload: Any) -> None:
        topic = EventTopic(topic)
        _check_payload(topic, payload)
        for handler in list(self._handlers.get(topic, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception(
                    f"Event handler {getattr(handler, '__name__', handler)!s} "
                    f"failed on {topic.value}",
                    extra={"topic": topic.value, "error_code": "HANDLER_FAILURE"},
                )

    def handler_count(self, topic: EventTopic | str) -> int:
        return len(self._handlers.get(EventTopic(topic), []))


def _check_payload(topic: EventTopic, payload: Any) -> None:
    expected = TOPIC_PAYLOADS[topic]
    # bool is an int subclass but never a valid counter
    if isinstance(payload, bool) or not isinstance(payload, expected):
        raise TypeError(
            f"{topic.value} expects {expected.__name__}, "
            f"got {type(payload).__name__}"
        )
