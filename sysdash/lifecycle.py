"""Input loop, signal wiring and startup/teardown.

The controller runs on the main thread so that SIGINT/SIGTERM handlers fire
while it waits for keys. It never draws; a resize only asks the terminal to
resynchronise, and the next tick renders at the new size.
"""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from sysdash.cancel import CancelSignal
from sysdash.config import MIN_TICK_INTERVAL
from sysdash.layout import MAX_INTERFACES
from sysdash.scheduler import FrameScheduler, SnapshotSource
from sysdash.snapshot import SnapshotBuilder
from sysdash.terminal import (
    CursesTerminal,
    Event,
    FrameBuffer,
    KeyEvent,
    ResizeEvent,
    TerminalInitError,
)

# How often the input loop re-checks the cancel signal while idle.
POLL_TIMEOUT = 0.1
SCHEDULER_JOIN_TIMEOUT = 5.0


class TerminalBackend(Protocol):
    def start(self) -> None: ...

    def size(self) -> tuple[int, int]: ...

    def present(self, frame: FrameBuffer) -> None: ...

    def poll_event(self, timeout: float | None = None) -> Event | None: ...

    def sync(self) -> None: ...

    def teardown(self) -> None: ...


def _hint(exit_keys: Iterable[str]) -> str:
    names = [("ESC" if k == "escape" else k) for k in exit_keys]
    return f"{'/'.join(names)}: quit" if names else ""


class InputController:
    """Reads terminal events until an exit key or external cancellation."""

    def __init__(
        self,
        terminal: TerminalBackend,
        cancel: CancelSignal,
        exit_keys: Iterable[str] = ("escape", "q"),
        poll_timeout: float = POLL_TIMEOUT,
    ) -> None:
        self._terminal = terminal
        self._cancel = cancel
        self.exit_keys = frozenset(k.lower() for k in exit_keys)
        self.poll_timeout = poll_timeout

    def run(self) -> None:
        while not self._cancel.is_set():
            event = self._terminal.poll_event(self.poll_timeout)
            if event is None:
                continue
            if isinstance(event, KeyEvent):
                if event.key.lower() in self.exit_keys:
                    self._cancel.cancel("key")
                    return
            elif isinstance(event, ResizeEvent):
                self._terminal.sync()


def install_signal_handlers(cancel: CancelSignal) -> Callable[[], None]:
    """Route SIGINT and SIGTERM into ``cancel``.

    Returns a function that puts the previous handlers back. Outside the main
    thread no handlers can be installed and the returned function does nothing.
    """

    def _handler(signum: int, frame: Any) -> None:
        cancel.cancel("signal")

    previous: dict[int, Any] = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[sig] = signal.signal(sig, _handler)
        except ValueError:
            break  # not the main thread

    def restore() -> None:
        for sig, old in previous.items():
            signal.signal(sig, old)

    return restore


def run_dashboard(
    config: dict[str, Any],
    terminal: TerminalBackend | None = None,
    source: SnapshotSource | None = None,
) -> int:
    """Run the dashboard until the user quits. Returns the process exit code.

    The terminal is restored exactly once on every path that got past
    :meth:`TerminalBackend.start`.
    """
    network: dict[str, Any] = config.get("network", {})
    exit_keys: list[str] = list(config.get("exit_keys", ["escape", "q"]))

    if terminal is None:
        terminal = CursesTerminal()
    try:
        terminal.start()
    except TerminalInitError as e:
        print(f"sysdash: cannot initialise terminal: {e}", file=sys.stderr)
        return 1

    cancel = CancelSignal()
    scheduler: FrameScheduler | None = None
    restore: Callable[[], None] | None = None
    try:
        if source is None:
            source = SnapshotBuilder(
                interfaces_up_only=bool(network.get("up_only", False)),
                disk_path=str(config.get("disk_path", "/")),
            )
        scheduler = FrameScheduler(
            terminal,
            cancel,
            source,
            tick_interval=max(MIN_TICK_INTERVAL, float(config.get("tick_interval", 1.0))),
            show_fps=bool(config.get("show_fps", True)),
            max_table_rows=int(config.get("max_table_rows", 10)),
            max_interfaces=int(network.get("max_interfaces", MAX_INTERFACES)),
            hint=_hint(exit_keys),
        )
        restore = install_signal_handlers(cancel)
        scheduler.start()
        InputController(terminal, cancel, exit_keys).run()
    finally:
        cancel.cancel("shutdown")
        if scheduler is not None:
            scheduler.join(timeout=SCHEDULER_JOIN_TIMEOUT)
        if restore is not None:
            restore()
        terminal.teardown()

    if scheduler.error is not None:
        print(f"sysdash: render loop failed: {scheduler.error!r}", file=sys.stderr)
        return 1
    return 0
