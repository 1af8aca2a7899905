"""State Snapshot - serialization / deserialization for every app state slice.

Invariants:
    - *_to_snapshot produces a JSON-safe dict (no Enums, no datetimes, camelCase keys)
    - *_from_snapshot starts from the slice defaults and overlays persisted fields
    - Missing keys keep their defaults; wrong-typed or out-of-range values are
      treated as missing (logged, never raised)
    - Malformed log entries (sessions, messages) are dropped one by one

Design Decisions:
    - camelCase keys match the existing on-device blob format (ADR: stored data stays readable)
    - Field tables keep the merge DRY: (json key -> attribute, validity check)
    - Nested records (preferences, progress) merge field by field too
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from calmish.core.app_state import (
    BoundariesState, BreathingProgress, BreathingSession, BreathingState,
    ConversationLog, ConversationMessage, UserPreferences, UserProfile,
    WellnessState,
)
from calmish.core.domain_types import (
    BreathingType, MessageRole, SessionId, Slice, Theme,
    ENERGY_MAX, ENERGY_MIN, MOOD_MAX, MOOD_MIN,
)

logger = logging.getLogger(__name__)

Check = Callable[[Any], bool]


# ─── Field checks ────────────────────────────────────────────────

def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _non_negative_int(v: Any) -> bool:
    return _is_int(v) and v >= 0


def _positive_int(v: Any) -> bool:
    return _is_int(v) and v >= 1


def _in_range(low: int, high: int) -> Check:
    return lambda v: _is_int(v) and low <= v <= high


def _is_bool(v: Any) -> bool:
    return isinstance(v, bool)


def _is_str(v: Any) -> bool:
    return isinstance(v, str)


def _is_dict(v: Any) -> bool:
    return isinstance(v, dict)


def _is_list(v: Any) -> bool:
    return isinstance(v, list)


def _dict_or_none(v: Any) -> bool:
    return v is None or isinstance(v, dict)


def _is_theme(v: Any) -> bool:
    return v in {t.value for t in Theme}


# (json key) -> (attribute, check)
_PREFERENCE_FIELDS: dict[str, tuple[str, Check]] = {
    "notifications": ("notifications", _is_bool),
    "theme": ("theme", _is_theme),
    "language": ("language", _is_str),
}
_USER_FIELDS: dict[str, tuple[str, Check]] = {
    "name": ("name", _is_str),
    "lifeStage": ("life_stage", _is_str),
    "onboardingComplete": ("onboarding_complete", _is_bool),
}
_WELLNESS_FIELDS: dict[str, tuple[str, Check]] = {
    "waterGlasses": ("water_glasses", _non_negative_int),
    "mood": ("mood", _in_range(MOOD_MIN, MOOD_MAX)),
    "habits": ("habits", _is_dict),
    "symptoms": ("symptoms", _is_dict),
    "weeklyData": ("weekly_data", _is_list),
}
_PROGRESS_FIELDS: dict[str, tuple[str, Check]] = {
    "todaySessions": ("today_sessions", _non_negative_int),
    "todayMinutes": ("today_minutes", _non_negative_int),
    "streakDays": ("streak_days", _positive_int),
}
_BOUNDARIES_FIELDS: dict[str, tuple[str, Check]] = {
    "profile": ("profile", _dict_or_none),
    "energyLevel": ("energy_level", _in_range(ENERGY_MIN, ENERGY_MAX)),
    "recentScripts": ("recent_scripts", _is_list),
}


def _merge_fields(
    target: object, data: dict, fields: dict[str, tuple[str, Check]], where: str,
) -> None:
    """Overlay valid persisted fields onto target. Invalid ones keep defaults."""
    for key, (attr, check) in fields.items():
        if key not in data:
            continue
        value = data[key]
        if check(value):
            setattr(target, attr, value)
        else:
            logger.warning(
                f"Ignoring invalid persisted field {where}.{key}={value!r}",
                extra={"slice": where},
            )


def _as_mapping(data: Any, where: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            f"Persisted {where} is {type(data).__name__}, expected object",
            extra={"slice": where},
        )
        return {}
    return data


def _parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ─── User ────────────────────────────────────────────────────────

def user_to_snapshot(profile: UserProfile) -> dict:
    return {
        "name": profile.name,
        "lifeStage": profile.life_stage,
        "onboardingComplete": profile.onboarding_complete,
        "preferences": {
            "notifications": profile.preferences.notifications,
            "theme": profile.preferences.theme.value,
            "language": profile.preferences.language,
        },
    }


def user_from_snapshot(data: Any) -> UserProfile:
    profile = UserProfile()
    data = _as_mapping(data, Slice.USER.value)
    _merge_fields(profile, data, _USER_FIELDS, Slice.USER.value)
    prefs = _as_mapping(data.get("preferences"), "user.preferences")
    _merge_fields(profile.preferences, prefs, _PREFERENCE_FIELDS, "user.preferences")
    # theme arrives as its string value
    profile.preferences.theme = Theme(profile.preferences.theme)
    return profile


# ─── Wellness ────────────────────────────────────────────────────

def wellness_to_snapshot(state: WellnessState) -> dict:
    return {
        "waterGlasses": state.water_glasses,
        "mood": state.mood,
        "habits": dict(state.habits),
        "symptoms": dict(state.symptoms),
        "weeklyData": list(state.weekly_data),
    }


def wellness_from_snapshot(data: Any) -> WellnessState:
    state = WellnessState()
    _merge_fields(
        state, _as_mapping(data, Slice.WELLNESS.value),
        _WELLNESS_FIELDS, Slice.WELLNESS.value,
    )
    return state


# ─── Breathing ───────────────────────────────────────────────────

def session_to_snapshot(session: BreathingSession) -> dict:
    return {
        "id": session.id,
        "type": session.type.value,
        "duration": session.duration_seconds,
        "timestamp": session.timestamp.isoformat(),
    }


def session_from_snapshot(data: dict) -> BreathingSession:
    """Decode one session. Raises ValueError/KeyError/TypeError on bad input."""
    duration = data["duration"]
    if not _positive_int(duration):
        raise ValueError(f"invalid duration {duration!r}")
    if not isinstance(data["id"], str) or not data["id"]:
        raise ValueError("session id must be a non-empty string")
    return BreathingSession(
        id=SessionId(data["id"]),
        type=BreathingType(data["type"]),
        duration_seconds=duration,
        timestamp=_parse_timestamp(data["timestamp"]),
    )


def breathing_to_snapshot(state: BreathingState) -> dict:
    return {
        "sessions": [session_to_snapshot(s) for s in state.sessions],
        "progress": {
            "todaySessions": state.progress.today_sessions,
            "todayMinutes": state.progress.today_minutes,
            "streakDays": state.progress.streak_days,
        },
    }


def breathing_from_snapshot(data: Any) -> BreathingState:
    state = BreathingState()
    data = _as_mapping(data, Slice.BREATHING.value)

    raw_sessions = data.get("sessions", [])
    if not isinstance(raw_sessions, list):
        logger.warning(
            "Ignoring non-list breathing.sessions", extra={"slice": "breathing"},
        )
        raw_sessions = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_sessions):
        try:
            session = session_from_snapshot(raw)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(
                f"Dropping malformed breathing session {index}: {e}",
                extra={"slice": "breathing"},
            )
            continue
        if session.id in seen:
            logger.warning(
                f"Dropping duplicate breathing session id {session.id}",
                extra={"slice": "breathing"},
            )
            continue
        seen.add(session.id)
        state.sessions.append(session)

    progress = _as_mapping(data.get("progress"), "breathing.progress")
    _merge_fields(state.progress, progress, _PROGRESS_FIELDS, "breathing.progress")
    return state


# ─── Boundaries ──────────────────────────────────────────────────

def boundaries_to_snapshot(state: BoundariesState) -> dict:
    return {
        "profile": state.profile,
        "energyLevel": state.energy_level,
        "recentScripts": list(state.recent_scripts),
    }


def boundaries_from_snapshot(data: Any) -> BoundariesState:
    state = BoundariesState()
    _merge_fields(
        state, _as_mapping(data, Slice.BOUNDARIES.value),
        _BOUNDARIES_FIELDS, Slice.BOUNDARIES.value,
    )
    return state


# ─── Conversation ────────────────────────────────────────────────

def message_to_snapshot(message: ConversationMessage) -> dict:
    return {
        "role": message.role.value,
        "text": message.text,
        "timestamp": message.timestamp.isoformat(),
    }


def message_from_snapshot(data: dict) -> ConversationMessage:
    if not isinstance(data["text"], str):
        raise TypeError("message text must be a string")
    if not data["text"]:
        raise ValueError("message text is empty")
    return ConversationMessage(
        role=MessageRole(data["role"]),
        text=data["text"],
        timestamp=_parse_timestamp(data["timestamp"]),
    )


def conversations_to_snapshot(log: ConversationLog) -> list[dict]:
    return [message_to_snapshot(m) for m in log]


def conversations_from_snapshot(data: Any) -> ConversationLog:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning(
            f"Persisted conversations is {type(data).__name__}, expected list",
            extra={"slice": "conversations"},
        )
        return []
    log: ConversationLog = []
    for index, raw in enumerate(data):
        try:
            log.append(message_from_snapshot(raw))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(
                f"Dropping malformed conversation message {index}: {e}",
                extra={"slice": "conversations"},
            )
    return log


# ─── Dispatch by slice ───────────────────────────────────────────

SNAPSHOT_CODECS: dict[Slice, tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    Slice.USER: (user_to_snapshot, user_from_snapshot),
    Slice.WELLNESS: (wellness_to_snapshot, wellness_from_snapshot),
    Slice.BREATHING: (breathing_to_snapshot, breathing_from_snapshot),
    Slice.BOUNDARIES: (boundaries_to_snapshot, boundaries_from_snapshot),
    Slice.CONVERSATIONS: (conversations_to_snapshot, conversations_from_snapshot),
}


def slice_to_snapshot(slice_: Slice, value: Any) -> Any:
    encode, _ = SNAPSHOT_CODECS[slice_]
    return encode(value)


def slice_from_snapshot(slice_: Slice, data: Any) -> Any:
    _, decode = SNAPSHOT_CODECS[slice_]
    return decode(data)


def default_slice(slice_: Slice) -> Any:
    """Compiled-in default for a slice (decoding nothing yields the defaults)."""
    return slice_from_snapshot(slice_, None)
