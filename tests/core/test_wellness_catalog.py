"""Wellness Catalog & relative time - static content lookups and labels."""

import random
from datetime import datetime, timedelta, timezone

from calmish.core.domain_types import BreathingType, ScriptCategory
from calmish.core.format_time import format_relative
from calmish.core.wellness_catalog import (
    BREATHING_PATTERNS, COMFORT_MESSAGES, cycle_seconds,
    get_boundary_scripts, get_breathing_exercise, get_comfort_message,
)

NOW = datetime(2026, 5, 10, 12, 0, tzinfo=timezone.utc)


def test_known_breathing_pattern():
    pattern = get_breathing_exercise("478")
    assert pattern["name"] == "4-7-8 Breathing"
    assert cycle_seconds(pattern) == 19


def test_box_cycle_includes_second_hold():
    assert cycle_seconds(get_breathing_exercise(BreathingType.BOX)) == 16


def test_unknown_breathing_type_falls_back_to_calm():
    assert get_breathing_exercise("yoga")["name"] == "Calm Breath"


def test_lookup_returns_copy():
    get_breathing_exercise("calm")["inhale"] = 99
    assert BREATHING_PATTERNS[BreathingType.CALM]["inhale"] == 4


def test_boundary_scripts_by_category():
    scripts = get_boundary_scripts(ScriptCategory.WORK)
    assert scripts[0]["title"] == "Setting Workload Boundaries"


def test_unknown_category_falls_back_to_self():
    assert get_boundary_scripts("neighbours")[0]["title"] == "Personal Time Protection"


def test_comfort_message_from_catalog():
    assert get_comfort_message(random.Random(7)) in COMFORT_MESSAGES


def test_relative_labels():
    assert format_relative(NOW - timedelta(seconds=20), NOW) == "Just now"
    assert format_relative(NOW - timedelta(minutes=5), NOW) == "5 min ago"
    assert format_relative(NOW - timedelta(hours=3), NOW) == "3h ago"
    assert format_relative(NOW - timedelta(days=2), NOW) == "2d ago"
    assert format_relative(NOW - timedelta(days=30), NOW) == "2026-04-10"


def test_naive_timestamps_treated_as_utc():
    naive = (NOW - timedelta(minutes=10)).replace(tzinfo=None)
    assert format_relative(naive, NOW) == "10 min ago"
