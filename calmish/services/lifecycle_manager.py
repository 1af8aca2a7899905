"""Lifecycle Manager - startup restore and signal-triggered flushes.

Invariants:
    - UNINITIALIZED -> RESTORING -> READY, exactly once per process
    - A slice that fails to load or decode falls back to its defaults; the
      other slices restore normally (init never fails outright)
    - Flush is READY -> FLUSHING -> READY; the store stays usable afterwards
    - Flushing before init is a no-op (would overwrite saved data with defaults)

Design Decisions:
    - Signal sources are injected (ADR: platform binding is a shell concern)
    - Restore goes through the snapshot codecs, which merge field by field
      over the compiled-in defaults
"""

import logging

from calmish.core.boundary_protocols import LifecycleSignalSource
from calmish.core.domain_types import LifecycleState, Slice
from calmish.core.errors import LifecycleError
from calmish.core.state_snapshot import default_slice, slice_from_snapshot
from calmish.services.state_store import StateStore

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Owns the store's restore/flush lifecycle."""

    def __init__(self, store: StateStore):
        self.store = store
        self._state = LifecycleState.UNINITIALIZED

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == LifecycleState.READY

    def init(self) -> dict[Slice, bool]:
        """Restore every slice. Returns which slices came from storage intact."""
        if self._state != LifecycleState.UNINITIALIZED:
            raise LifecycleError(
                f"init() already ran (state={self._state.value})",
            )
        self._state = LifecycleState.RESTORING
        restored = {s: self._restore_slice(s) for s in Slice}
        self._state = LifecycleState.READY
        logger.info(
            "Calmish state restored",
            extra={"slice": ",".join(s.value for s, ok in restored.items() if ok)},
        )
        return restored

    def _restore_slice(self, slice_: Slice) -> bool:
        data = self.store.persistence.load(slice_, None)
        try:
            value = slice_from_snapshot(slice_, data)
        except Exception as e:
            logger.warning(
                f"Restore of {slice_.value} degraded to defaults: {e}",
                extra={"slice": slice_.value, "error_code": "RESTORE_DEGRADED"},
            )
            value = default_slice(slice_)
            data = None
        self.store.restore(slice_, value)
        return data is not None

    def attach(self, source: LifecycleSignalSource) -> None:
        """Flush on the platform's hidden and terminate signals."""
        source.on_hidden(self.flush)
        source.on_terminate(self.flush)

    def flush(self) -> dict[Slice, bool]:
        if self._state != LifecycleState.READY:
            logger.info(f"Skipping flush in state {self._state.value}")
            return {}
        self._state = LifecycleState.FLUSHING
        try:
            results = self.store.save_all()
        finally:
            self._state = LifecycleState.READY
        failed = [s.value for s, ok in results.items() if not ok]
        if failed:
            logger.warning(
                f"Flush incomplete, not persisted: {', '.join(failed)}",
                extra={"error_code": "FLUSH_DEGRADED"},
            )
        return results
