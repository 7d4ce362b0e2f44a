"""Terminal backend: an in-memory cell grid and a curses presenter.

The render thread only ever writes into a :class:`FrameBuffer`; the buffer is
pushed to the screen in one :meth:`CursesTerminal.present` call. Curses itself
is not thread-safe, so every call into it goes through the terminal's lock.
"""

from __future__ import annotations

import curses
import sys
import threading
import time
from dataclasses import dataclass

# ── Styles (curses colour-pair IDs) ────────────────────────────────────────

C_NOMINAL = 1
C_WARNING = 2
C_ALERT = 3
C_TITLE = 4
C_DIM = 5
C_INFO = 6

_BOLD_STYLES = frozenset({C_WARNING, C_ALERT, C_TITLE})

# How long poll_event sleeps between non-blocking reads.
_POLL_STEP = 0.02

Cell = tuple[str, int]


class TerminalInitError(Exception):
    """The controlling terminal cannot be used."""


# ── Events ─────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class KeyEvent:
    key: str  # "escape", "q", "key_up", ...


@dataclass(slots=True, frozen=True)
class ResizeEvent:
    width: int
    height: int


Event = KeyEvent | ResizeEvent


def key_name(code: int) -> str:
    """Map a curses key code to the identifier used in ``exit_keys``."""
    if code == 27:
        return "escape"
    if 32 <= code < 127:
        return chr(code)
    try:
        return curses.keyname(code).decode("ascii", "replace").lower()
    except (ValueError, curses.error):
        return f"key_{code}"


# ── Frame buffer ───────────────────────────────────────────────────────────


class FrameBuffer:
    """Fixed-size grid of styled cells. Out-of-bounds writes are ignored."""

    def __init__(self, width: int, height: int) -> None:
        self.width = 0
        self.height = 0
        self._cells: list[list[Cell]] = []
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.clear()

    def clear(self) -> None:
        self._cells = [[(" ", C_DIM)] * self.width for _ in range(self.height)]

    def set_cell(self, x: int, y: int, char: str, style: int = C_DIM) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self._cells[y][x] = (char, style)

    def draw_text(
        self, x: int, y: int, text: str, style: int = C_DIM, max_width: int | None = None
    ) -> int:
        """Write ``text`` left to right, clipped to ``max_width`` and the grid.

        Returns the number of cells written.
        """
        if max_width is not None:
            text = text[: max(0, max_width)]
        written = 0
        for i, ch in enumerate(text):
            if 0 <= x + i < self.width and 0 <= y < self.height:
                self._cells[y][x + i] = (ch, style)
                written += 1
        return written

    def cell(self, x: int, y: int) -> Cell:
        return self._cells[y][x]

    def row_text(self, y: int) -> str:
        return "".join(ch for ch, _ in self._cells[y])

    def row_styles(self, y: int) -> list[int]:
        return [style for _, style in self._cells[y]]

    def runs(self, y: int) -> list[tuple[int, str, int]]:
        """Split a row into ``(x, text, style)`` runs of equal style."""
        out: list[tuple[int, str, int]] = []
        row = self._cells[y]
        start = 0
        for x in range(1, len(row) + 1):
            if x == len(row) or row[x][1] != row[start][1]:
                out.append((start, "".join(ch for ch, _ in row[start:x]), row[start][1]))
                start = x
        return out


# ── Curses backend ─────────────────────────────────────────────────────────


def _init_colors() -> None:
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_NOMINAL, curses.COLOR_GREEN, -1)
    curses.init_pair(C_WARNING, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_ALERT, curses.COLOR_RED, -1)
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    curses.init_pair(C_INFO, curses.COLOR_BLUE, -1)


def _safe(win: curses.window, *args: object) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)  # type: ignore[arg-type]
    except curses.error:
        pass


class CursesTerminal:
    """Curses implementation of the terminal backend."""

    def __init__(self) -> None:
        self._stdscr: curses.window | None = None
        self._lock = threading.Lock()
        self._colors = False
        self._closed = False

    def start(self) -> None:
        """Enter curses mode.

        Raises:
            TerminalInitError: stdin/stdout is not a TTY or curses fails.
        """
        if not (sys.stdin.isatty() and sys.stdout.isatty()):
            raise TerminalInitError("stdin/stdout is not a terminal")
        try:
            self._stdscr = curses.initscr()
        except curses.error as e:
            raise TerminalInitError(str(e) or "curses initialisation failed") from e

        try:
            curses.noecho()
            curses.cbreak()
            self._stdscr.keypad(True)
            self._stdscr.nodelay(True)
            curses.set_escdelay(25)
            if curses.has_colors():
                _init_colors()
                self._colors = True
        except curses.error as e:
            self.teardown()
            raise TerminalInitError(str(e) or "curses setup failed") from e

        try:
            curses.curs_set(0)
        except curses.error:
            pass  # Terminal cannot hide the cursor

    def size(self) -> tuple[int, int]:
        """Current viewport as ``(width, height)`` in cells."""
        with self._lock:
            if self._stdscr is None:
                return 0, 0
            max_y, max_x = self._stdscr.getmaxyx()
        return max_x, max_y

    def _attr(self, style: int) -> int:
        attr = curses.color_pair(style) if self._colors else 0
        if style in _BOLD_STYLES:
            attr |= curses.A_BOLD
        return attr

    def present(self, frame: FrameBuffer) -> None:
        """Replace the screen contents with ``frame`` in one update."""
        with self._lock:
            win = self._stdscr
            if win is None or self._closed:
                return
            max_y, max_x = win.getmaxyx()
            win.erase()
            for y in range(min(frame.height, max_y)):
                for x, text, style in frame.runs(y):
                    if x >= max_x:
                        break
                    _safe(win, y, x, text[: max_x - x], self._attr(style))
            win.noutrefresh()
            curses.doupdate()

    def poll_event(self, timeout: float | None = None) -> Event | None:
        """Wait for the next key or resize event.

        Blocks until an event arrives, or returns ``None`` once ``timeout``
        seconds have passed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                if self._stdscr is None or self._closed:
                    return None
                code = self._stdscr.getch()
                if code == curses.KEY_RESIZE:
                    max_y, max_x = self._stdscr.getmaxyx()
                    return ResizeEvent(width=max_x, height=max_y)
            if code != -1:
                return KeyEvent(key_name(code))
            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(_POLL_STEP)

    def sync(self) -> None:
        """Re-read the terminal size and force a full repaint on next present."""
        with self._lock:
            if self._stdscr is None or self._closed:
                return
            curses.update_lines_cols()
            self._stdscr.clear()

    def teardown(self) -> None:
        """Restore the original terminal mode. Safe to call more than once."""
        with self._lock:
            if self._stdscr is None or self._closed:
                return
            self._closed = True
            try:
                self._stdscr.keypad(False)
                curses.nocbreak()
                curses.echo()
            except curses.error:
                pass
            curses.endwin()
