"""Wellness Insights - pure nudges computed from a wellness snapshot.

Invariants:
    - Never mutates its input, never touches persistence or the event bus
    - Emission order: hydration, mood, habits
    - Zero insights is a valid result
"""

from calmish.core.app_state import WellnessState

HYDRATION_TARGET_GLASSES = 6
LOW_MOOD_THRESHOLD = 3
HABIT_ENGAGEMENT_TARGET = 2

HYDRATION_NUDGE = (
    "Your energy levels might improve with more hydration. "
    "Try adding one extra glass of water today."
)
MOOD_NUDGE = (
    "Lower mood days are normal and temporary. "
    "Consider reaching out to a friend or practicing a breathing exercise."
)
HABIT_NUDGE = (
    "Even small habits create big changes over time. "
    "Which habit feels most nourishing to you today?"
)


def generate_insights(wellness: WellnessState) -> list[str]:
    """Return the nudges triggered by this snapshot. Pure, no IO."""
    insights = []
    if wellness.water_glasses < HYDRATION_TARGET_GLASSES:
        insights.append(HYDRATION_NUDGE)
    if wellness.mood < LOW_MOOD_THRESHOLD:
        insights.append(MOOD_NUDGE)
    if wellness.completed_habit_count < HABIT_ENGAGEMENT_TARGET:
        insights.append(HABIT_NUDGE)
    return insights
