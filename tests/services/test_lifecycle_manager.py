"""Lifecycle Manager - tests for restore on init and signal-driven flush.

Invariants:
    - Fresh storage restores the documented defaults
    - Persisted values survive a simulated restart
    - A corrupt or partial slice degrades alone
    - Flush returns the manager to READY
"""

import pytest

from calmish.core.domain_types import LifecycleState, Slice
from calmish.core.errors import LifecycleError
from calmish.core.event_bus import EventBus
from calmish.infrastructure.lifecycle_signals import ManualSignalSource
from calmish.services.lifecycle_manager import LifecycleManager
from calmish.services.state_persistence import StatePersistence
from calmish.services.state_store import StateStore
from tests.fakes import FailingStorage


def _restart(storage):
    store = StateStore(StatePersistence(storage), EventBus())
    manager = LifecycleManager(store)
    manager.init()
    return store, manager


# -- Restore ---------------------------------------------------------------------

def test_fresh_init_yields_defaults(store, lifecycle):
    restored = lifecycle.init()
    assert restored == {s: False for s in Slice}
    assert lifecycle.state == LifecycleState.READY
    assert store.wellness.water_glasses == 0
    assert store.wellness.mood == 3
    assert store.breathing.progress.streak_days == 1


def test_values_survive_restart(storage, store, lifecycle):
    lifecycle.init()
    store.set_water(8)
    store.update_profile(name="Ana")
    lifecycle.flush()

    restarted, _ = _restart(storage)
    assert restarted.wellness.water_glasses == 8
    assert restarted.user.name == "Ana"


def test_corrupt_slice_degrades_alone(storage, store, lifecycle):
    lifecycle.init()
    store.set_mood(5)
    store.append_breathing_session("box", 120)
    storage.put("calmish_breathing", "{definitely not json")

    restarted, _ = _restart(storage)
    assert restarted.breathing.sessions == []
    assert restarted.breathing.progress.streak_days == 1
    assert restarted.wellness.mood == 5


def test_missing_field_merges_with_default(storage):
    storage.put("calmish_wellness", '{"waterGlasses": 4}')
    restarted, _ = _restart(storage)
    assert restarted.wellness.water_glasses == 4
    assert restarted.wellness.mood == 3
    assert restarted.wellness.habits == {}


def test_unreadable_storage_still_initializes():
    store = StateStore(StatePersistence(FailingStorage(fail_get=True)), EventBus())
    manager = LifecycleManager(store)
    assert manager.init() == {s: False for s in Slice}
    assert manager.is_ready


def test_second_init_rejected(lifecycle):
    lifecycle.init()
    with pytest.raises(LifecycleError):
        lifecycle.init()


def test_restore_publishes_nothing(storage, recorder, bus):
    storage.put("calmish_wellness", '{"waterGlasses": 2, "mood": 4}')
    manager = LifecycleManager(StateStore(StatePersistence(storage), bus))
    manager.init()
    assert recorder == []


# -- Flush -----------------------------------------------------------------------

def test_flush_before_init_is_noop(storage, lifecycle):
    assert lifecycle.flush() == {}
    assert storage.blobs == {}
    assert lifecycle.state == LifecycleState.UNINITIALIZED


def test_signals_trigger_flush(storage, lifecycle):
    source = ManualSignalSource()
    lifecycle.init()
    lifecycle.attach(source)
    storage.blobs.clear()

    source.emit_hidden()
    assert set(storage.blobs) == {f"calmish_{s.value}" for s in Slice}
    assert lifecycle.state == LifecycleState.READY

    storage.blobs.clear()
    source.emit_terminate()
    assert "calmish_user" in storage.blobs
    assert lifecycle.is_ready


def test_store_usable_after_flush(store, lifecycle):
    lifecycle.init()
    lifecycle.flush()
    assert store.set_water(3) is True
    assert store.wellness.water_glasses == 3


def test_flush_reports_failed_slices(caplog):
    store = StateStore(StatePersistence(FailingStorage()), EventBus())
    manager = LifecycleManager(store)
    manager.init()
    results = manager.flush()
    assert results == {s: False for s in Slice}
    assert manager.is_ready
    assert "Flush incomplete" in caplog.text
