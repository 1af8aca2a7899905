"""App Container - wires storage, bus, store and lifecycle for one process.

Invariants:
    - Exactly one StateStore per container; collaborators receive it by reference
    - build_app_state() returns a READY container (restore already ran)

Design Decisions:
    - Explicit construction over a module-level singleton (ADR: no hidden global coupling)
"""

from dataclasses import dataclass

import httpx

from calmish.config import Settings, get_settings
from calmish.core.boundary_protocols import BlobStorage, LifecycleSignalSource
from calmish.core.event_bus import EventBus
from calmish.infrastructure.blob_storage import SqlBlobStorage
from calmish.services.chat_companion import ChatCompanion
from calmish.services.lifecycle_manager import LifecycleManager
from calmish.services.state_persistence import StatePersistence
from calmish.services.state_store import StateStore


@dataclass
class AppContainer:
    storage: BlobStorage
    persistence: StatePersistence
    bus: EventBus
    store: StateStore
    lifecycle: LifecycleManager
    companion: ChatCompanion

    async def aclose(self) -> None:
        """Flush state and release the chat client."""
        self.lifecycle.flush()
        await self.companion.http.aclose()


def build_app_state(
    settings: Settings | None = None,
    storage: BlobStorage | None = None,
    signal_source: LifecycleSignalSource | None = None,
) -> AppContainer:
    settings = settings or get_settings()
    storage = storage if storage is not None else SqlBlobStorage(settings.storage_url)
    persistence = StatePersistence(storage, prefix=settings.storage_prefix)
    bus = EventBus()
    store = StateStore(persistence, bus)
    lifecycle = LifecycleManager(store)
    lifecycle.init()
    if signal_source is not None:
        lifecycle.attach(signal_source)
    companion = ChatCompanion(store, httpx.AsyncClient(
        base_url=settings.chat_service_url, timeout=settings.chat_timeout_seconds,
    ))
    return AppContainer(storage, persistence, bus, store, lifecycle, companion)
