"""Top-N process views."""

from __future__ import annotations

from collections.abc import Iterable

from sysdash.snapshot import ProcessRecord

MAX_RANKED = 10


def rank_by_ram(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
    """Top processes by resident memory, largest first.

    ``sorted`` is stable, so processes with equal RSS keep their
    enumeration order. Truncation happens after the full sort.
    """
    return sorted(records, key=lambda p: p.rss, reverse=True)[:MAX_RANKED]


def rank_by_cpu(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
    """Top processes by CPU percentage, busiest first (stable on ties)."""
    return sorted(records, key=lambda p: p.cpu_percent, reverse=True)[:MAX_RANKED]
