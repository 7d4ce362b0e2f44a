"""Per-tick metric capture.

Every provider call is made independently: a source that fails leaves its
field at the "unavailable" sentinel (``None`` or an empty tuple) and the rest
of the snapshot is still filled in.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import psutil

# Resolved at import, independent of later patching of the ``psutil`` name.
_PROVIDER_ERRORS: tuple[type[BaseException], ...] = (psutil.Error, OSError, RuntimeError)
_PROCESS_ERRORS = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess)

NAME_MAX = 64
DISK_PATH = "/"

_PROC_ATTRS = ["pid", "name", "cpu_percent", "memory_percent", "memory_info"]


# ── Data types ──────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """One process as seen during a single tick."""

    pid: int
    name: str
    cpu_percent: float
    memory_percent: float
    rss: int  # Bytes


@dataclass(slots=True, frozen=True)
class MemoryInfo:
    total: int
    used: int
    free: int

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100.0


@dataclass(slots=True, frozen=True)
class DiskInfo:
    path: str
    total: int
    used: int
    free: int
    percent: float  # psutil's figure, which excludes root-reserved blocks


@dataclass(slots=True, frozen=True)
class NetCounters:
    bytes_sent: int
    bytes_recv: int
    packets_sent: int
    packets_recv: int


@dataclass(slots=True, frozen=True)
class InterfaceInfo:
    name: str
    counters: NetCounters
    addresses: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class MetricsSnapshot:
    """Everything one frame needs. ``None`` means the source was unavailable."""

    memory: MemoryInfo | None = None
    cpu_percent: float | None = None
    disk: DiskInfo | None = None
    net_total: NetCounters | None = None
    interfaces: tuple[InterfaceInfo, ...] = ()
    uptime_seconds: float | None = None
    processes: tuple[ProcessRecord, ...] = ()


# ── Individual sources ─────────────────────────────────────────────────────


def _counters(raw: Any) -> NetCounters:
    return NetCounters(
        bytes_sent=int(raw.bytes_sent),
        bytes_recv=int(raw.bytes_recv),
        packets_sent=int(raw.packets_sent),
        packets_recv=int(raw.packets_recv),
    )


def read_memory() -> MemoryInfo | None:
    try:
        vm = psutil.virtual_memory()
    except _PROVIDER_ERRORS:
        return None
    return MemoryInfo(total=int(vm.total), used=int(vm.used), free=int(vm.free))


def read_cpu() -> float | None:
    """Instantaneous aggregate CPU% since the previous call (non-blocking)."""
    try:
        return float(psutil.cpu_percent(interval=None))
    except _PROVIDER_ERRORS:
        return None


def read_disk(path: str = DISK_PATH) -> DiskInfo | None:
    try:
        du = psutil.disk_usage(path)
    except _PROVIDER_ERRORS:
        return None
    return DiskInfo(
        path=path,
        total=int(du.total),
        used=int(du.used),
        free=int(du.free),
        percent=float(du.percent),
    )


def read_net_total() -> NetCounters | None:
    try:
        raw = psutil.net_io_counters()
    except _PROVIDER_ERRORS:
        return None
    # net_io_counters() returns None on hosts without any NIC
    if raw is None:
        return None
    return _counters(raw)


def read_interfaces(up_only: bool = False) -> tuple[InterfaceInfo, ...]:
    """Per-interface counters, decorated with addresses when they can be read."""
    try:
        per_nic = psutil.net_io_counters(pernic=True) or {}
    except _PROVIDER_ERRORS:
        return ()

    try:
        addrs = psutil.net_if_addrs()
    except _PROVIDER_ERRORS:
        addrs = {}

    stats = None
    if up_only:
        try:
            stats = psutil.net_if_stats()
        except _PROVIDER_ERRORS:
            stats = None  # status unknown: show everything

    result: list[InterfaceInfo] = []
    for name, raw in per_nic.items():
        if stats is not None:
            st = stats.get(name)
            if st is None or not st.isup:
                continue
        addresses = tuple(a.address for a in addrs.get(name, ()) if a.address)
        result.append(InterfaceInfo(name=name, counters=_counters(raw), addresses=addresses))
    return tuple(result)


def read_uptime(now: float | None = None) -> float | None:
    try:
        boot = psutil.boot_time()
    except _PROVIDER_ERRORS:
        return None
    if now is None:
        now = time.time()
    return max(0.0, now - boot)


def read_processes() -> tuple[ProcessRecord, ...]:
    """Enumerate processes, skipping any whose memory info is unreadable."""
    records: list[ProcessRecord] = []
    try:
        for proc in psutil.process_iter(_PROC_ATTRS):
            try:
                info = proc.info
                mem_info = info.get("memory_info")
                if mem_info is None:
                    continue
                records.append(
                    ProcessRecord(
                        pid=int(info.get("pid", 0)),
                        name=(info.get("name") or "?")[:NAME_MAX],
                        cpu_percent=float(info.get("cpu_percent") or 0.0),
                        memory_percent=float(info.get("memory_percent") or 0.0),
                        rss=int(mem_info.rss),
                    )
                )
            except _PROCESS_ERRORS:
                continue
    except _PROVIDER_ERRORS:
        return ()
    return tuple(records)


# ── Builder ────────────────────────────────────────────────────────────────


class SnapshotBuilder:
    """Captures one :class:`MetricsSnapshot` per call."""

    def __init__(self, interfaces_up_only: bool = False, disk_path: str = DISK_PATH) -> None:
        self.interfaces_up_only = interfaces_up_only
        self.disk_path = disk_path
        # First cpu_percent(interval=None) call always reports 0.0
        read_cpu()

    def capture(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            memory=read_memory(),
            cpu_percent=read_cpu(),
            disk=read_disk(self.disk_path),
            net_total=read_net_total(),
            interfaces=read_interfaces(self.interfaces_up_only),
            uptime_seconds=read_uptime(),
            processes=read_processes(),
        )
