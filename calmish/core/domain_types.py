"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - Mood and energy level are bounded 1-5
    - Slice values double as storage domain names (persisted key suffixes)
    - All valid states encoded as Enums - no raw string matching

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (ADR: blobs are JSON)
    - NewType for ids: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", str)


# ─── Bounds ──────────────────────────────────────────────────────

MOOD_MIN = 1
MOOD_MAX = 5
ENERGY_MIN = 1
ENERGY_MAX = 5

DEFAULT_MOOD = 3
DEFAULT_ENERGY_LEVEL = 3
DEFAULT_STREAK_DAYS = 1

MAX_RECENT_SCRIPTS = 10
MAX_CHAT_MESSAGE_CHARS = 2000
MAX_CHAT_TURN_CHARS = 10_000
MAX_DISPLAY_NAME_CHARS = 100


# ─── Enums ───────────────────────────────────────────────────────

class Slice(str, Enum):
    """Independently persistable sub-trees of the app state."""
    USER = "user"
    WELLNESS = "wellness"
    BREATHING = "breathing"
    BOUNDARIES = "boundaries"
    CONVERSATIONS = "conversations"


class Theme(str, Enum):
    DEFAULT = "default"
    LIGHT = "light"
    DARK = "dark"
    CALM = "calm"


class BreathingType(str, Enum):
    """Guided breathing exercise kinds."""
    FOUR_SEVEN_EIGHT = "478"
    BOX = "box"
    CALM = "calm"
    ENERGY = "energy"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ScriptCategory(str, Enum):
    """Boundary script categories."""
    WORK = "work"
    FAMILY = "family"
    FRIENDS = "friends"
    SELF = "self"


class LifecycleState(str, Enum):
    """Lifecycle manager states. RESTORING runs at most once per process."""
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    READY = "ready"
    FLUSHING = "flushing"
