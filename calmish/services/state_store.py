"""State Store - sole owner and mutator of every app state slice.

Invariants:
    - Every mutation runs: validate -> update memory -> persist slice -> publish
    - Validation failures raise StateValidationError before anything changes
    - Persistence is best effort: a failed save never rolls back memory or
      suppresses the event; the mutation returns False instead
    - Readers get deep copies, never the live slices
    - today_sessions/today_minutes only move through append_breathing_session
    - Breathing session ids are unique across the process and the restored log
    - A slice is only written to storage after restore() installed it, so
      changes made before LifecycleManager.init() stay in memory (return False)

Design Decisions:
    - Explicitly constructed and injected (ADR: no global app singleton)
    - Boundary profile, energy, scripts, profile and conversation updates
      publish nothing: no component observes them today
    - Counters never reset at a day boundary (ADR: unbounded accumulation kept,
      day rollover belongs to a future streak/rollover feature)
"""

import copy
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Callable

from calmish.core.app_state import (
    BoundariesState, BreathingSession, BreathingState, ConversationLog,
    ConversationMessage, UserPreferences, UserProfile, WellnessState,
)
from calmish.core.domain_types import (
    BreathingType, ScriptCategory, SessionId, Slice, Theme,
    ENERGY_MAX, ENERGY_MIN, MAX_DISPLAY_NAME_CHARS, MAX_RECENT_SCRIPTS,
    MOOD_MAX, MOOD_MIN,
)
from calmish.core.errors import StateValidationError
from calmish.core.event_bus import EventBus, EventTopic
from calmish.core.state_snapshot import default_slice, slice_to_snapshot
from calmish.core.wellness_catalog import get_boundary_scripts
from calmish.services.state_persistence import StatePersistence

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class SessionIdGenerator:
    """Base-36 millisecond stamp (strictly increasing) + random base-36 suffix."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.SystemRandom()
        self._last_ms = 0

    def __call__(self) -> SessionId:
        now_ms = time.time_ns() // 1_000_000
        self._last_ms = max(now_ms, self._last_ms + 1)
        return SessionId(_to_base36(self._last_ms) + _to_base36(self._rng.getrandbits(52)))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_range(field: str, value: Any, low: int, high: int) -> None:
    if not _is_int(value) or not low <= value <= high:
        raise StateValidationError(
            f"{field} must be an integer between {low} and {high}, got {value!r}",
            field=field, value=value,
        )


class StateStore:
    """In-memory source of truth for user, wellness, breathing, boundaries, chat."""

    def __init__(
        self,
        persistence: StatePersistence,
        bus: EventBus,
        clock: Clock = _utc_now,
        id_generator: Callable[[], SessionId] | None = None,
    ):
        self.persistence = persistence
        self.bus = bus
        self._clock = clock
        self._next_id = id_generator or SessionIdGenerator()
        self._slices: dict[Slice, Any] = {s: default_slice(s) for s in Slice}
        # slices installed by restore(); only these are written to storage
        self._restored: set[Slice] = set()

    # --- Snapshot reads -------------------------------------------------------

    @property
    def user(self) -> UserProfile:
        return copy.deepcopy(self._slices[Slice.USER])

    @property
    def wellness(self) -> WellnessState:
        return copy.deepcopy(self._slices[Slice.WELLNESS])

    @property
    def breathing(self) -> BreathingState:
        return copy.deepcopy(self._slices[Slice.BREATHING])

    @property
    def boundaries(self) -> BoundariesState:
        return copy.deepcopy(self._slices[Slice.BOUNDARIES])

    @property
    def conversations(self) -> ConversationLog:
        return list(self._slices[Slice.CONVERSATIONS])

    def snapshot(self, slice_: Slice) -> Any:
        return copy.deepcopy(self._slices[slice_])

    # --- Wellness -------------------------------------------------------------

    def set_water(self, glasses: int) -> bool:
        if not _is_int(glasses) or glasses < 0:
            raise StateValidationError(
                f"water glasses must be a non-negative integer, got {glasses!r}",
                field="water_glasses", value=glasses,
            )
        self._slices[Slice.WELLNESS].water_glasses = glasses
        persisted = self._persist(Slice.WELLNESS)
        self.bus.publish(EventTopic.WATER_UPDATED, glasses)
        return persisted

    def set_mood(self, mood: int) -> bool:
        _require_range("mood", mood, MOOD_MIN, MOOD_MAX)
        self._slices[Slice.WELLNESS].mood = mood
        persisted = self._persist(Slice.WELLNESS)
        self.bus.publish(EventTopic.MOOD_UPDATED, mood)
        return persisted

    def complete_habit(self, name: str) -> bool:
        """Mark a habit done. State is idempotent, the event is not deduplicated."""
        if not isinstance(name, str) or not name.strip():
            raise StateValidationError(
                "habit name must be a non-empty string", field="habit", value=name,
            )
        self._slices[Slice.WELLNESS].habits[name] = True
        persisted = self._persist(Slice.WELLNESS)
        self.bus.publish(EventTopic.HABIT_COMPLETED, name)
        return persisted

    # --- Breathing ------------------------------------------------------------

    def append_breathing_session(
        self, breathing_type: BreathingType | str, duration_seconds: int,
    ) -> tuple[BreathingSession, bool]:
        """Append a completed session and bump today's counters."""
        try:
            kind = BreathingType(breathing_type)
        except ValueError:
            raise StateValidationError(
                f"unknown breathing type {breathing_type!r}",
                field="type", value=breathing_type,
            )
        if not _is_int(duration_seconds) or duration_seconds <= 0:
            raise StateValidationError(
                f"duration must be a positive number of seconds, got {duration_seconds!r}",
                field="duration_seconds", value=duration_seconds,
            )

        state: BreathingState = self._slices[Slice.BREATHING]
        session = BreathingSession(
            id=self._unique_session_id(state),
            type=kind,
            duration_seconds=duration_seconds,
            timestamp=self._clock(),
        )
        state.sessions.append(session)
        state.progress.today_sessions += 1
        state.progress.today_minutes += duration_seconds // 60

        persisted = self._persist(Slice.BREATHING)
        self.bus.publish(EventTopic.SESSION_COMPLETED, session)
        return session, persisted

    def _unique_session_id(self, state: BreathingState) -> SessionId:
        taken = state.session_ids
        session_id = self._next_id()
        while session_id in taken:
            logger.warning(f"Session id collision on {session_id}, regenerating")
            session_id = self._next_id()
        return session_id

    # --- Boundaries -----------------------------------------------------------

    def set_boundary_profile(self, profile: dict | None) -> bool:
        if profile is not None and not isinstance(profile, dict):
            raise StateValidationError(
                "boundary profile must be a mapping or None",
                field="profile", value=profile,
            )
        self._slices[Slice.BOUNDARIES].profile = copy.deepcopy(profile)
        return self._persist(Slice.BOUNDARIES)

    def set_energy_level(self, level: int) -> bool:
        _require_range("energy_level", level, ENERGY_MIN, ENERGY_MAX)
        self._slices[Slice.BOUNDARIES].energy_level = level
        return self._persist(Slice.BOUNDARIES)

    def add_recent_script(self, script: dict) -> bool:
        """Most recent first, capped at MAX_RECENT_SCRIPTS."""
        if not isinstance(script, dict) or not script.get("title"):
            raise StateValidationError(
                "script reference needs a title", field="script", value=script,
            )
        state: BoundariesState = self._slices[Slice.BOUNDARIES]
        state.recent_scripts = [
            copy.deepcopy(script), *state.recent_scripts,
        ][:MAX_RECENT_SCRIPTS]
        return self._persist(Slice.BOUNDARIES)

    def use_boundary_script(self, category: ScriptCategory | str, title: str) -> bool:
        """Record a catalog script as recently used. Unknown titles are rejected."""
        try:
            kind = ScriptCategory(category)
        except ValueError:
            raise StateValidationError(
                f"unknown script category {category!r}", field="category", value=category,
            )
        if not any(s["title"] == title for s in get_boundary_scripts(kind)):
            raise StateValidationError(
                f"no {kind.value} boundary script titled {title!r}",
                field="script", value=title,
            )
        return self.add_recent_script({"title": title, "category": kind.value})

    # --- Conversation ---------------------------------------------------------

    def append_conversation_message(self, message: ConversationMessage) -> bool:
        if not isinstance(message, ConversationMessage):
            raise StateValidationError(
                "expected a ConversationMessage", field="message", value=message,
            )
        if not isinstance(message.text, str) or not message.text:
            raise StateValidationError(
                "conversation message text must be non-empty",
                field="text", value=message.text,
            )
        self._slices[Slice.CONVERSATIONS].append(message)
        return self._persist(Slice.CONVERSATIONS)

    # --- Profile --------------------------------------------------------------

    def update_profile(
        self,
        *,
        name: str | None = None,
        life_stage: str | None = None,
        onboarding_complete: bool | None = None,
    ) -> bool:
        for field, value in (("name", name), ("life_stage", life_stage)):
            if value is not None and not isinstance(value, str):
                raise StateValidationError(
                    f"{field} must be a string", field=field, value=value,
                )
        if name is not None and len(name) > MAX_DISPLAY_NAME_CHARS:
            raise StateValidationError(
                f"name must be at most {MAX_DISPLAY_NAME_CHARS} characters",
                field="name", value=name,
            )
        if onboarding_complete is not None and not isinstance(onboarding_complete, bool):
            raise StateValidationError(
                "onboarding_complete must be a bool",
                field="onboarding_complete", value=onboarding_complete,
            )
        profile: UserProfile = self._slices[Slice.USER]
        if name is not None:
            profile.name = name
        if life_stage is not None:
            profile.life_stage = life_stage
        if onboarding_complete is not None:
            profile.onboarding_complete = onboarding_complete
        return self._persist(Slice.USER)

    def update_preferences(
        self,
        *,
        notifications: bool | None = None,
        theme: Theme | str | None = None,
        language: str | None = None,
    ) -> bool:
        resolved_theme = None
        if theme is not None:
            try:
                resolved_theme = Theme(theme)
            except ValueError:
                raise StateValidationError(
                    f"unknown theme {theme!r}", field="theme", value=theme,
                )
        if notifications is not None and not isinstance(notifications, bool):
            raise StateValidationError(
                "notifications must be a bool", field="notifications", value=notifications,
            )
        if language is not None and (not isinstance(language, str) or not language):
            raise StateValidationError(
                "language must be a non-empty string", field="language", value=language,
            )
        prefs: UserPreferences = self._slices[Slice.USER].preferences
        if notifications is not None:
            prefs.notifications = notifications
        if resolved_theme is not None:
            prefs.theme = resolved_theme
        if language is not None:
            prefs.language = language
        return self._persist(Slice.USER)

    def reset_profile(self) -> bool:
        self._slices[Slice.USER] = UserProfile()
        return self._persist(Slice.USER)

    # --- Bulk -----------------------------------------------------------------

    def save_all(self) -> dict[Slice, bool]:
        """Flush every slice. Not a semantic change, so nothing is published."""
        return {s: self._persist(s) for s in Slice}

    def clear_slice(self, slice_: Slice) -> bool:
        """Reset one slice to defaults and drop its stored blob."""
        self._slices[slice_] = default_slice(slice_)
        return self.persistence.clear(slice_)

    def restore(self, slice_: Slice, value: Any) -> None:
        """Install a restored slice. Reserved for the lifecycle manager."""
        self._slices[slice_] = value
        self._restored.add(slice_)

    def _persist(self, slice_: Slice) -> bool:
        if slice_ not in self._restored:
            logger.warning(
                f"{slice_.value} changed before restore, not written over stored data",
                extra={"slice": slice_.value, "error_code": "PERSIST_BEFORE_RESTORE"},
            )
            return False
        ok = self.persistence.save(
            slice_, slice_to_snapshot(slice_, self._slices[slice_]),
        )
        if not ok:
            logger.warning(
                f"{slice_.value} kept in memory only, persistence failed",
                extra={"slice": slice_.value, "error_code": "PERSISTENCE_DEGRADED"},
            )
        return ok
