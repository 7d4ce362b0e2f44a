"""Tick-driven render loop.

Runs on its own thread: capture → rank → render → present, then sleeps on
the cancel signal until the next tick. The terminal is only ever drawn from
this thread.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from sysdash.cancel import CancelSignal
from sysdash.layout import MAX_INTERFACES, render
from sysdash.ranking import rank_by_cpu, rank_by_ram
from sysdash.snapshot import MetricsSnapshot
from sysdash.terminal import FrameBuffer


class Presenter(Protocol):
    def size(self) -> tuple[int, int]: ...

    def present(self, frame: FrameBuffer) -> None: ...


class SnapshotSource(Protocol):
    def capture(self) -> MetricsSnapshot: ...


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class FpsCounter:
    """Frames presented during the last full second. Diagnostic only."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._count = 0
        self._last = clock()
        self.fps = 0

    def tick(self) -> int:
        self._count += 1
        now = self._clock()
        if now - self._last >= 1.0:
            self.fps = self._count
            self._count = 0
            self._last = now
        return self.fps


class FrameScheduler:
    """
    Drives the dashboard refresh.

    Cancellation is checked at the top of every iteration; the inter-tick
    sleep is a wait on the cancel signal, so setting it ends the sleep early.
    An in-flight capture is never interrupted.
    """

    def __init__(
        self,
        terminal: Presenter,
        cancel: CancelSignal,
        source: SnapshotSource,
        *,
        tick_interval: float = 1.0,
        show_fps: bool = True,
        max_table_rows: int = 10,
        max_interfaces: int = MAX_INTERFACES,
        hint: str = "ESC/q: quit",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._terminal = terminal
        self._cancel = cancel
        self._source = source
        self.tick_interval = max(0.0, tick_interval)
        self.show_fps = show_fps
        self.max_table_rows = max_table_rows
        self.max_interfaces = max_interfaces
        self.hint = hint
        self._fps = FpsCounter(clock)
        self._frame = FrameBuffer(0, 0)
        self._thread: threading.Thread | None = None
        self._state = SchedulerState.IDLE
        self.frames = 0
        self.error: BaseException | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def fps(self) -> int:
        return self._fps.fps

    @property
    def frame(self) -> FrameBuffer:
        """The buffer presented by the most recent tick."""
        return self._frame

    def start(self) -> None:
        """Run the loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, daemon=True, name="FrameScheduler")
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self) -> None:
        """Loop until the cancel signal is set."""
        self._state = SchedulerState.RUNNING
        try:
            while not self._cancel.is_set():
                self.tick()
                self._cancel.wait(self.tick_interval)
        except Exception as e:
            self.error = e
            self._cancel.cancel("error")
        finally:
            self._state = SchedulerState.STOPPED

    def tick(self) -> None:
        """Build and present one frame."""
        snapshot = self._source.capture()
        ranked_ram = rank_by_ram(snapshot.processes)
        ranked_cpu = rank_by_cpu(snapshot.processes)

        # Size is re-read every tick so a resize lands on the next frame
        width, height = self._terminal.size()
        fps = self._fps.tick()
        render(
            self._frame,
            snapshot,
            ranked_ram,
            ranked_cpu,
            width,
            height,
            fps=fps if self.show_fps else None,
            max_table_rows=self.max_table_rows,
            max_interfaces=self.max_interfaces,
            hint=self.hint,
        )
        self._terminal.present(self._frame)
        self.frames += 1
