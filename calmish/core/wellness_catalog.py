"""Wellness Catalog - static content for breathing, boundaries and comfort.

Invariants:
    - Unknown breathing types fall back to the calm pattern
    - Unknown script categories fall back to self-care scripts
    - Lookups return copies; the catalog itself is never mutated
"""

import copy
import random

from calmish.core.domain_types import BreathingType, ScriptCategory


BREATHING_PATTERNS: dict[BreathingType, dict] = {
    BreathingType.FOUR_SEVEN_EIGHT: {
        "inhale": 4, "hold": 7, "exhale": 8, "name": "4-7-8 Breathing",
    },
    BreathingType.BOX: {
        "inhale": 4, "hold": 4, "exhale": 4, "hold2": 4, "name": "Box Breathing",
    },
    BreathingType.CALM: {
        "inhale": 4, "hold": 2, "exhale": 6, "name": "Calm Breath",
    },
    BreathingType.ENERGY: {
        "inhale": 2, "exhale": 2, "name": "Energizing Breath",
    },
}

BOUNDARY_SCRIPTS: dict[ScriptCategory, list[dict]] = {
    ScriptCategory.WORK: [{
        "title": "Setting Workload Boundaries",
        "content": (
            "I appreciate you thinking of me for this project. I'm currently at "
            "capacity with my existing commitments, and I want to ensure I can "
            "give my best to everything I'm working on. Can we revisit this next "
            "week when I have more bandwidth?"
        ),
        "context": "When your plate is full",
    }],
    ScriptCategory.FAMILY: [{
        "title": "Respecting Personal Decisions",
        "content": (
            "I know you care about me and want what's best, which I truly "
            "appreciate. I need to make this decision myself, even if it means "
            "learning from my own experiences. Your support means everything to me."
        ),
        "context": "When family is overly involved",
    }],
    ScriptCategory.FRIENDS: [{
        "title": "Social Energy Management",
        "content": (
            "I love spending time with you, and I also need to rest tonight to "
            "recharge. Could we plan something for [alternative time] when I can "
            "be fully present with you?"
        ),
        "context": "When you need to decline plans",
    }],
    ScriptCategory.SELF: [{
        "title": "Personal Time Protection",
        "content": (
            "I've realized I need some quiet time to recharge and reconnect with "
            "myself. I'm taking this evening for self-care, and I'll be available "
            "to connect tomorrow when I'm feeling more centered."
        ),
        "context": "When you need alone time",
    }],
}

COMFORT_MESSAGES: tuple[str, ...] = (
    "You are exactly where you need to be in this moment. Your journey is "
    "unfolding perfectly, even when it doesn't feel that way.",
    "Your feelings are valid, your experiences are real, and you are worthy of "
    "all the care and compassion in the world.",
    "You've survived every difficult day so far, and that strength is still "
    "within you. You're more resilient than you know.",
    "It's okay to rest. It's okay to not have all the answers. It's okay to "
    "just be where you are right now.",
)


def get_breathing_exercise(breathing_type: BreathingType | str) -> dict:
    try:
        key = BreathingType(breathing_type)
    except ValueError:
        key = BreathingType.CALM
    return dict(BREATHING_PATTERNS[key])


def cycle_seconds(pattern: dict) -> int:
    """Length of one full inhale/hold/exhale cycle."""
    return sum(pattern.get(k, 0) for k in ("inhale", "hold", "exhale", "hold2"))


def get_boundary_scripts(category: ScriptCategory | str) -> list[dict]:
    try:
        key = ScriptCategory(category)
    except ValueError:
        key = ScriptCategory.SELF
    return copy.deepcopy(BOUNDARY_SCRIPTS[key])


def get_comfort_message(rng: random.Random | None = None) -> str:
    return (rng or random).choice(COMFORT_MESSAGES)  # nosec B311
