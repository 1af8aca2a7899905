"""App Container - end-to-end wiring of storage, store, lifecycle and signals."""

from calmish.config import Settings
from calmish.core.domain_types import LifecycleState
from calmish.core.event_bus import EventTopic
from calmish.infrastructure.blob_storage import MemoryBlobStorage
from calmish.infrastructure.lifecycle_signals import ManualSignalSource
from calmish.app_container import build_app_state


def _settings():
    return Settings(storage_prefix="demo_", chat_service_url="http://chat.test")


async def test_container_is_ready_and_wired():
    storage = MemoryBlobStorage({"demo_wellness": '{"waterGlasses": 5}'})
    container = build_app_state(_settings(), storage=storage)
    assert container.lifecycle.state == LifecycleState.READY
    assert container.store.wellness.water_glasses == 5
    assert container.companion.store is container.store
    assert str(container.companion.http.base_url).startswith("http://chat.test")
    await container.aclose()


async def test_signal_flush_uses_configured_prefix():
    storage = MemoryBlobStorage()
    source = ManualSignalSource()
    container = build_app_state(_settings(), storage=storage, signal_source=source)
    seen = []
    container.bus.subscribe(EventTopic.MOOD_UPDATED, seen.append)

    container.store.set_mood(2)
    storage.blobs.clear()
    source.emit_hidden()

    assert seen == [2]
    assert "demo_wellness" in storage.blobs
    assert "demo_user" in storage.blobs
    await container.aclose()
