"""Tests for generate_insights - pure nudges from a wellness snapshot, no IO."""

import copy

from calmish.core.app_state import WellnessState
from calmish.core.insights import (
    HABIT_NUDGE, HYDRATION_NUDGE, MOOD_NUDGE, generate_insights,
)


def test_all_thresholds_met_yields_no_insights():
    state = WellnessState(water_glasses=6, mood=3, habits={"a": True, "b": True})
    assert generate_insights(state) == []


def test_low_water_with_one_habit_triggers_hydration_and_habit():
    state = WellnessState(water_glasses=3, mood=4, habits={"a": True})
    assert generate_insights(state) == [HYDRATION_NUDGE, HABIT_NUDGE]


def test_all_three_in_check_order():
    state = WellnessState(water_glasses=0, mood=1, habits={})
    assert generate_insights(state) == [HYDRATION_NUDGE, MOOD_NUDGE, HABIT_NUDGE]


def test_false_habits_do_not_count():
    state = WellnessState(water_glasses=8, mood=5, habits={"a": True, "b": False, "c": False})
    assert generate_insights(state) == [HABIT_NUDGE]


def test_mood_boundary():
    assert MOOD_NUDGE in generate_insights(WellnessState(mood=2))
    assert MOOD_NUDGE not in generate_insights(WellnessState(mood=3))


def test_input_not_mutated():
    state = WellnessState(water_glasses=1, habits={"a": True})
    before = copy.deepcopy(state)
    generate_insights(state)
    assert state == before
