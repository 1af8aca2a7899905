"""Root conftest - shared fixtures for core and service tests.

Invariants:
    - Tests never touch a real API key or the default on-disk database
    - Every test gets a fresh in-memory storage, bus and store
"""

import os

import pytest

from calmish.core.event_bus import EventBus, EventTopic
from calmish.infrastructure.blob_storage import MemoryBlobStorage
from calmish.services.lifecycle_manager import LifecycleManager
from calmish.services.state_persistence import StatePersistence
from calmish.services.state_store import StateStore

os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("STORAGE_URL", "sqlite:///:memory:")


@pytest.fixture
def storage():
    return MemoryBlobStorage()


@pytest.fixture
def persistence(storage):
    return StatePersistence(storage, prefix="calmish")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def store(persistence, bus):
    """Store restored from empty storage, as after a first launch."""
    store = StateStore(persistence, bus)
    LifecycleManager(store).init()
    return store


@pytest.fixture
def lifecycle(store):
    return LifecycleManager(store)


@pytest.fixture
def recorder(bus):
    """Subscribe a recorder to every topic. Returns list of (topic, payload)."""
    events = []
    for topic in EventTopic:
        bus.subscribe(topic, lambda payload, t=topic: events.append((t, payload)))
    return events
