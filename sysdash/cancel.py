"""Shared shutdown flag for the render and input loops."""

from __future__ import annotations

import threading


class CancelSignal:
    """One-way, thread-safe cancellation flag.

    Set by the first of: an exit key, SIGINT/SIGTERM, or a render failure.
    Later calls to :meth:`cancel` are no-ops and do not change :attr:`reason`.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: str | None = None

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str) -> bool:
        """Set the flag. Returns True only for the call that actually set it.

        Never blocks: a signal handler may run on a thread that is already
        inside this method. If the lock is taken, that holder sets the flag.
        """
        if self._event.is_set():
            return False
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True
        finally:
            self._lock.release()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Sleep until cancelled or ``timeout`` elapses. Returns the flag."""
        return self._event.wait(timeout)
