"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from infrastructure - dependency arrows point inward only
    - Storage and platform signals accessed through Protocol types
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Storage methods raise on failure; the persistence adapter converts
      failures into bool/default results (ADR: one place swallows errors)
"""

from typing import Callable, Protocol

SignalCallback = Callable[[], object]


class BlobStorage(Protocol):
    """Key-value blob store capability."""
    def put(self, key: str, blob: str) -> None: ...
    def get(self, key: str) -> str | None: ...
    def delete(self, key: str) -> None: ...


class LifecycleSignalSource(Protocol):
    """Platform signals that should trigger a flush of all slices."""
    def on_hidden(self, callback: SignalCallback) -> None: ...
    def on_terminate(self, callback: SignalCallback) -> None: ...
