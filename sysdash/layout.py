"""Dashboard layout and drawing.

Region positions are recomputed from the viewport size on every render, so a
resize between ticks needs no separate reflow. Nothing here raises for a
small viewport: regions are clipped or dropped and tables lose rows.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from sysdash.snapshot import InterfaceInfo, MetricsSnapshot, ProcessRecord
from sysdash.terminal import (
    C_ALERT,
    C_DIM,
    C_INFO,
    C_NOMINAL,
    C_TITLE,
    C_WARNING,
    FrameBuffer,
)

# ── Constants ──────────────────────────────────────────────────────────────

BAR_FILL = "█"
BAR_EMPTY = "░"
NAME_WIDTH = 20
ELLIPSIS = "..."
TABLE_HEADER_ROWS = 2  # title + column header
# PID, CPU% and RAM% columns plus the separators around NAME
_FIXED_COLUMNS = 6 + 1 + 1 + 6 + 1 + 5
MAX_INTERFACES = 3
UNAVAILABLE = "not available"

# Fixed row offsets of the top blocks (see compute_layout)
_MEMORY_Y = 1
_CPU_Y = 3
_DISK_Y = 5
_NETWORK_Y = 7
_INTERFACES_Y = 8


# ── Banding ────────────────────────────────────────────────────────────────


class Band(Enum):
    NOMINAL = "nominal"
    WARNING = "warning"
    ALERT = "alert"


BAND_STYLE: dict[Band, int] = {
    Band.NOMINAL: C_NOMINAL,
    Band.WARNING: C_WARNING,
    Band.ALERT: C_ALERT,
}


def band_for(value: float) -> Band:
    """Severity band for a percentage. Both thresholds are exclusive."""
    if value > 80:
        return Band.ALERT
    if value > 50:
        return Band.WARNING
    return Band.NOMINAL


# ── Formatting helpers ─────────────────────────────────────────────────────


def gauge_fill(value: float, track_width: int) -> int:
    """Number of filled cells for ``value`` percent on a ``track_width`` track."""
    if track_width <= 0:
        return 0
    clamped = min(max(value, 0.0), 100.0)
    return math.floor(track_width * clamped / 100.0)


def truncate_name(name: str, width: int = NAME_WIDTH) -> str:
    """Cut ``name`` to ``width`` characters, ending in ``...`` when shortened."""
    if len(name) <= width:
        return name
    if width <= len(ELLIPSIS):
        return name[:width]
    return name[: width - len(ELLIPSIS)] + ELLIPSIS


def fmt_mb(n: int) -> str:
    return f"{n / 1e6:.2f}MB"


def fmt_uptime(seconds: float | None) -> str:
    if seconds is None:
        return f"Uptime: {UNAVAILABLE}"
    total = int(seconds)
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    return f"Uptime: {days}d {hours:02d}h {minutes:02d}m {secs:02d}s"


def interface_line(iface: InterfaceInfo) -> str:
    c = iface.counters
    line = (
        f"{iface.name} - Received: {fmt_mb(c.bytes_recv)}, Sent: {fmt_mb(c.bytes_sent)}, "
        f"Packets: {c.packets_recv} received, {c.packets_sent} sent"
    )
    for addr in iface.addresses:
        line += f", IP: {addr}"
    return line


def name_width_for(table_width: int) -> int:
    """NAME column width that lets all four columns fit in ``table_width``."""
    return max(len(ELLIPSIS) + 1, min(NAME_WIDTH, table_width - _FIXED_COLUMNS))


def table_header(name_width: int = NAME_WIDTH) -> str:
    return f"{'PID':<6} {'NAME':<{name_width}} {'CPU%':>6} {'RAM%':>5}"


def table_row(p: ProcessRecord, name_width: int = NAME_WIDTH) -> str:
    name = truncate_name(p.name, name_width)
    return f"{p.pid:<6d} {name:<{name_width}} {p.cpu_percent:>6.1f} {p.memory_percent:>5.1f}"


# ── Regions ────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Region:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: Region) -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


@dataclass(slots=True, frozen=True)
class ViewportLayout:
    """Regions that fit in a ``width`` x ``height`` viewport.

    Regions that would start outside the viewport are absent from
    ``regions``; the rest are clipped to it.
    """

    width: int
    height: int
    regions: dict[str, Region] = field(default_factory=lambda: dict[str, Region]())

    def get(self, name: str) -> Region | None:
        return self.regions.get(name)


def compute_layout(width: int, height: int, interface_rows: int) -> ViewportLayout:
    """Place every widget for the given viewport.

    Rows, top to bottom: header, memory gauge (2), CPU gauge (2), disk gauge
    (2), network totals, interface heading plus ``interface_rows`` lines,
    uptime, a blank line, then the two process tables side by side using the
    rest.
    """
    width = max(0, width)
    height = max(0, height)
    interface_rows = max(0, interface_rows)
    uptime_y = _INTERFACES_Y + 1 + interface_rows
    tables_y = uptime_y + 2
    half = width // 2

    wanted: dict[str, tuple[int, int, int, int]] = {
        "header": (0, 0, width, 1),
        "memory": (1, _MEMORY_Y, width - 2, 2),
        "cpu": (1, _CPU_Y, width - 2, 2),
        "disk": (1, _DISK_Y, width - 2, 2),
        "network": (1, _NETWORK_Y, width - 2, 1),
        "interfaces": (1, _INTERFACES_Y, width - 2, 1 + interface_rows),
        "uptime": (1, uptime_y, width - 2, 1),
        "ram_table": (0, tables_y, half, height - tables_y),
        "cpu_table": (half, tables_y, width - half, height - tables_y),
    }

    regions: dict[str, Region] = {}
    for name, (x, y, w, h) in wanted.items():
        w = min(w, width - x)
        h = min(h, height - y)
        if w <= 0 or h <= 0:
            continue
        regions[name] = Region(x, y, w, h)
    return ViewportLayout(width=width, height=height, regions=regions)


# ── Widget renderers ───────────────────────────────────────────────────────


def draw_gauge(
    frame: FrameBuffer,
    region: Region,
    title: str,
    value: float | None,
    detail: str = "",
) -> None:
    """Label line plus a ``[████░░░░]`` track coloured by :func:`band_for`."""
    if value is None:
        frame.draw_text(region.x, region.y, f"{title}: {UNAVAILABLE}", C_DIM, region.width)
    else:
        label = f"{title}: {detail} ({value:.1f}%)" if detail else f"{title}: {value:.1f}%"
        frame.draw_text(region.x, region.y, label, C_TITLE, region.width)

    if region.height < 2 or region.width < 3:
        return
    bar_y = region.y + 1
    track = region.width - 2
    filled = gauge_fill(value, track) if value is not None else 0
    style = BAND_STYLE[band_for(value)] if value is not None else C_DIM
    frame.set_cell(region.x, bar_y, "[", C_DIM)
    frame.draw_text(region.x + 1, bar_y, BAR_FILL * filled, style)
    frame.draw_text(region.x + 1 + filled, bar_y, BAR_EMPTY * (track - filled), C_DIM)
    frame.set_cell(region.right - 1, bar_y, "]", C_DIM)


def draw_network(frame: FrameBuffer, region: Region, snapshot: MetricsSnapshot) -> None:
    net = snapshot.net_total
    if net is None:
        text = f"Network: {UNAVAILABLE}"
    else:
        text = f"Network - Received: {fmt_mb(net.bytes_recv)}  Sent: {fmt_mb(net.bytes_sent)}"
    frame.draw_text(region.x, region.y, text, C_NOMINAL, region.width)


def draw_interfaces(
    frame: FrameBuffer,
    region: Region,
    interfaces: Sequence[InterfaceInfo],
) -> int:
    """Heading plus one line per interface that fits. Returns lines drawn."""
    frame.draw_text(region.x, region.y, "Network interfaces:", C_TITLE, region.width)
    if not interfaces:
        if region.height > 1:
            frame.draw_text(region.x, region.y + 1, f"  {UNAVAILABLE}", C_DIM, region.width)
        return 0
    shown = min(len(interfaces), region.height - 1)
    for i in range(shown):
        frame.draw_text(region.x, region.y + 1 + i, interface_line(interfaces[i]), C_INFO, region.width)
    return max(0, shown)


def draw_table(
    frame: FrameBuffer,
    region: Region,
    title: str,
    view: Sequence[ProcessRecord],
    max_rows: int,
) -> int:
    """Render a ranked process table. Returns the number of rows drawn."""
    x = region.x + 1
    w = region.width - 2
    if w <= 0:
        return 0
    name_width = name_width_for(w)
    frame.draw_text(x, region.y, title, C_TITLE, w)
    if region.height > 1:
        frame.draw_text(x, region.y + 1, table_header(name_width), C_NOMINAL, w)

    rows = max(0, min(len(view), max_rows, region.height - TABLE_HEADER_ROWS))
    for i in range(rows):
        p = view[i]
        style = BAND_STYLE[band_for(max(p.cpu_percent, p.memory_percent))]
        frame.draw_text(x, region.y + TABLE_HEADER_ROWS + i, table_row(p, name_width), style, w)
    return rows


def draw_header(
    frame: FrameBuffer,
    region: Region,
    fps: int | None,
    hint: str,
    now: float | None = None,
) -> None:
    title = " sysdash "
    frame.draw_text(region.x, region.y, title, C_TITLE, region.width)
    used = len(title)
    if used + len(hint) + 1 <= region.width:
        frame.draw_text(region.x + used + 1, region.y, hint, C_DIM)
        used += len(hint) + 1

    right = f"FPS: {fps} " if fps is not None else ""
    ts = time.strftime("%H:%M:%S", time.localtime(now))
    ts_x = region.x + (region.width - len(ts)) // 2
    if ts_x > region.x + used and ts_x + len(ts) < region.right - len(right):
        frame.draw_text(ts_x, region.y, ts, C_DIM)
    if right and len(right) <= region.width - used:
        frame.draw_text(region.right - len(right), region.y, right, C_INFO)


# ── Frame renderer ─────────────────────────────────────────────────────────


def render(
    frame: FrameBuffer,
    snapshot: MetricsSnapshot,
    ranked_ram: Sequence[ProcessRecord],
    ranked_cpu: Sequence[ProcessRecord],
    width: int,
    height: int,
    *,
    fps: int | None = None,
    max_table_rows: int = 10,
    max_interfaces: int = MAX_INTERFACES,
    hint: str = "ESC/q: quit",
    now: float | None = None,
) -> ViewportLayout:
    """Draw a whole dashboard frame into ``frame`` for the given viewport."""
    if (frame.width, frame.height) != (width, height):
        frame.resize(width, height)
    else:
        frame.clear()

    interfaces = snapshot.interfaces[: max(0, max_interfaces)]
    layout = compute_layout(width, height, max(1, len(interfaces)))
    regions = layout.regions

    if "header" in regions:
        draw_header(frame, regions["header"], fps, hint, now)

    if "memory" in regions:
        mem = snapshot.memory
        if mem is None:
            draw_gauge(frame, regions["memory"], "Memory", None)
        else:
            detail = (
                f"Total: {mem.total / 1e9:.1f}GB Used: {mem.used / 1e9:.1f}GB "
                f"Free: {mem.free / 1e9:.1f}GB"
            )
            draw_gauge(frame, regions["memory"], "Memory", mem.percent, detail)

    if "cpu" in regions:
        draw_gauge(frame, regions["cpu"], "CPU", snapshot.cpu_percent)

    if "disk" in regions:
        disk = snapshot.disk
        if disk is None:
            draw_gauge(frame, regions["disk"], "Disk", None)
        else:
            detail = f"{disk.path} Used: {disk.used / 1e9:.1f}GB of {disk.total / 1e9:.1f}GB"
            draw_gauge(frame, regions["disk"], "Disk", disk.percent, detail)

    if "network" in regions:
        draw_network(frame, regions["network"], snapshot)

    if "interfaces" in regions:
        draw_interfaces(frame, regions["interfaces"], interfaces)

    if "uptime" in regions:
        region = regions["uptime"]
        frame.draw_text(region.x, region.y, fmt_uptime(snapshot.uptime_seconds), C_DIM, region.width)

    if "ram_table" in regions:
        draw_table(frame, regions["ram_table"], "+ RAM", ranked_ram, max_table_rows)
    if "cpu_table" in regions:
        draw_table(frame, regions["cpu_table"], "+ CPU", ranked_cpu, max_table_rows)

    return layout
