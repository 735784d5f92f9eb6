"""Graceful shutdown: wait for a termination signal, then run cleanup functions."""

from __future__ import annotations

import signal
import threading
from typing import Any, Callable

__all__ = ["ShutdownHook"]


class ShutdownHook:
    """Waits for SIGINT or SIGTERM (and any added signals). Install from the main thread."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._previous: dict[int, Any] = {}
        self.with_signals(signal.SIGINT, signal.SIGTERM)

    def _handle(self, signum: int, frame: Any) -> None:
        self._event.set()

    def with_signals(self, *args: int) -> ShutdownHook:
        for sig in args:
            if sig not in self._previous:
                self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def trigger(self) -> None:
        """Start shutdown without a signal."""
        self._event.set()

    def close(self, *args: Callable[[], Any]) -> None:
        """Block until a signal arrives, restore the old handlers, then call each function."""
        self._event.wait()
        for sig, previous in self._previous.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()
        for func in args:
            func()