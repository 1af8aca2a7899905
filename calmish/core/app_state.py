"""App State - dataclasses for each independently persistable slice.

Invariants:
    - Every slice is constructible with no arguments (compiled-in defaults)
    - BreathingSession and ConversationMessage are frozen once created
    - mood and energy_level stay within 1-5 (enforced by the state store)

Design Decisions:
    - Pure dataclasses, no IO: serialization lives in state_snapshot.py
    - progress counters are denormalized, incremented on append only
      (ADR: cheap reads, single append path keeps them in step with the log)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from calmish.core.domain_types import (
    BreathingType, MessageRole, SessionId, Theme,
    DEFAULT_MOOD, DEFAULT_ENERGY_LEVEL, DEFAULT_STREAK_DAYS,
)


# ─── User ────────────────────────────────────────────────────────

@dataclass
class UserPreferences:
    notifications: bool = True
    theme: Theme = Theme.DEFAULT
    language: str = "en"


@dataclass
class UserProfile:
    """Created with defaults at first run, never deleted, only reset."""
    name: str = ""
    life_stage: str = ""
    onboarding_complete: bool = False
    preferences: UserPreferences = field(default_factory=UserPreferences)


# ─── Wellness ────────────────────────────────────────────────────

@dataclass
class WellnessState:
    water_glasses: int = 0
    mood: int = DEFAULT_MOOD
    habits: dict[str, bool] = field(default_factory=dict)
    symptoms: dict[str, Any] = field(default_factory=dict)
    weekly_data: list[dict] = field(default_factory=list)

    @property
    def completed_habit_count(self) -> int:
        return sum(1 for done in self.habits.values() if done)


# ─── Breathing ───────────────────────────────────────────────────

@dataclass(frozen=True)
class BreathingSession:
    """One completed breathing exercise. Immutable once appended."""
    id: SessionId
    type: BreathingType
    duration_seconds: int
    timestamp: datetime


@dataclass
class BreathingProgress:
    today_sessions: int = 0
    today_minutes: int = 0
    streak_days: int = DEFAULT_STREAK_DAYS


@dataclass
class BreathingState:
    sessions: list[BreathingSession] = field(default_factory=list)
    progress: BreathingProgress = field(default_factory=BreathingProgress)

    @property
    def session_ids(self) -> set[SessionId]:
        return {s.id for s in self.sessions}


# ─── Boundaries ──────────────────────────────────────────────────

@dataclass
class BoundariesState:
    profile: dict | None = None
    energy_level: int = DEFAULT_ENERGY_LEVEL
    recent_scripts: list[dict] = field(default_factory=list)


# ─── Conversation ────────────────────────────────────────────────

@dataclass(frozen=True)
class ConversationMessage:
    role: MessageRole
    text: str
    timestamp: datetime


ConversationLog = list[ConversationMessage]
