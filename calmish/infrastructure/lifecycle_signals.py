"""Lifecycle Signals - platform bindings for the hidden/terminate triggers.

Invariants:
    - Callbacks run in registration order; one failing callback does not stop the rest
    - ProcessSignalSource fires terminate at most once per process

Design Decisions:
    - Manual source for tests and hosts that own their own event loop
    - Process source maps interpreter exit and SIGTERM to terminate; a
      process has no "hidden" state, so that list only fires on demand
"""

import atexit
import logging
import signal

from calmish.core.boundary_protocols import SignalCallback

logger = logging.getLogger(__name__)


def _fire(kind: str, callbacks: list[SignalCallback]) -> None:
    for callback in list(callbacks):
        try:
            callback()
        except Exception:
            logger.exception(f"{kind} signal callback failed")


class ManualSignalSource:
    """Signals fired explicitly by the host."""

    def __init__(self):
        self._hidden: list[SignalCallback] = []
        self._terminate: list[SignalCallback] = []

    def on_hidden(self, callback: SignalCallback) -> None:
        self._hidden.append(callback)

    def on_terminate(self, callback: SignalCallback) -> None:
        self._terminate.append(callback)

    def emit_hidden(self) -> None:
        _fire("hidden", self._hidden)

    def emit_terminate(self) -> None:
        _fire("terminate", self._terminate)


class ProcessSignalSource(ManualSignalSource):
    """Binds terminate to atexit and SIGTERM."""

    def __init__(self, handle_sigterm: bool = True):
        super().__init__()
        self._terminated = False
        atexit.register(self.emit_terminate)
        if handle_sigterm:
            self._previous = signal.signal(signal.SIGTERM, self._on_sigterm)

    def emit_terminate(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        super().emit_terminate()

    def _on_sigterm(self, signum, frame) -> None:
        logger.info("SIGTERM received, flushing state")
        self.emit_terminate()
        previous = self._previous
        if callable(previous):
            previous(signum, frame)
        else:
            raise SystemExit(128 + signum)
