"""Shared fakes for the dashboard tests."""

from __future__ import annotations

import time
from collections.abc import Callable

import pytest

from sysdash.snapshot import MemoryInfo, MetricsSnapshot, ProcessRecord
from sysdash.terminal import Event, FrameBuffer, KeyEvent, TerminalInitError


class FakeTerminal:
    """In-memory terminal backend that records every call."""

    def __init__(
        self,
        width: int = 120,
        height: int = 40,
        events: list[Event] | None = None,
        start_error: TerminalInitError | None = None,
        wait_for_frames: int = 0,
        on_idle: Callable[[FakeTerminal], None] | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.events = list(events or [])
        self.start_error = start_error
        self.wait_for_frames = wait_for_frames
        self.on_idle = on_idle
        self.start_calls = 0
        self.sync_calls = 0
        self.teardown_calls = 0
        self.poll_calls = 0
        self.presented: list[list[str]] = []
        self._deadline = time.monotonic() + 10.0

    def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error

    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def present(self, frame: FrameBuffer) -> None:
        self.presented.append([frame.row_text(y) for y in range(frame.height)])

    def poll_event(self, timeout: float | None = None) -> Event | None:
        self.poll_calls += 1
        if self.events and len(self.presented) >= self.wait_for_frames:
            return self.events.pop(0)
        if self.on_idle is not None and self.presented:
            self.on_idle(self)
        if time.monotonic() > self._deadline:
            # Keep a broken test from hanging the suite
            return KeyEvent("escape")
        time.sleep(0.005)
        return None

    def sync(self) -> None:
        self.sync_calls += 1

    def teardown(self) -> None:
        self.teardown_calls += 1


class StaticSource:
    """Snapshot source that returns the same snapshot every tick."""

    def __init__(self, snapshot: MetricsSnapshot) -> None:
        self.snapshot = snapshot
        self.captures = 0

    def capture(self) -> MetricsSnapshot:
        self.captures += 1
        return self.snapshot


def proc(pid: int, name: str = "p", cpu: float = 0.0, ram: float = 0.0, rss: int = 0) -> ProcessRecord:
    return ProcessRecord(pid=pid, name=name, cpu_percent=cpu, memory_percent=ram, rss=rss)


@pytest.fixture
def scenario_snapshot() -> MetricsSnapshot:
    """16 GB box at half memory, CPU at 45%, two processes."""
    return MetricsSnapshot(
        memory=MemoryInfo(total=16_000_000_000, used=8_000_000_000, free=8_000_000_000),
        cpu_percent=45.0,
        uptime_seconds=3661.0,
        processes=(
            proc(100, "alpha", cpu=10.0, ram=12.5, rss=2_000_000_000),
            proc(200, "beta", cpu=90.0, ram=6.25, rss=1_000_000_000),
        ),
    )
