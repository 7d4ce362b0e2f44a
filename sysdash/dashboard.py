"""Live terminal dashboard: memory and CPU gauges, network, top processes.

Usage:
    sysdash
    sysdash --interval 2 --config path/to/config.toml
    sysdash --dump-config > ~/.config/sysdash/config.toml

Press ESC or q to quit; SIGINT/SIGTERM also exit cleanly.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from sysdash.config import MIN_TICK_INTERVAL, dump_default_config, load_config, merge_config
from sysdash.lifecycle import run_dashboard


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sysdash",
        description="Live terminal dashboard for CPU, memory, network and processes.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes (default: 1.0)",
    )
    parser.add_argument(
        "--no-fps",
        action="store_true",
        help="Hide the frames-per-second counter",
    )
    parser.add_argument(
        "--up-only",
        action="store_true",
        help="Only list network interfaces that are up",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default config as TOML and exit",
    )
    return parser


def apply_overrides(config: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    """Layer command-line flags over the loaded config."""
    overlay: dict[str, Any] = {}
    if args.interval is not None:
        overlay["tick_interval"] = max(MIN_TICK_INTERVAL, args.interval)
    if args.no_fps:
        overlay["show_fps"] = False
    if args.up_only:
        overlay["network"] = {"up_only": True}
    return merge_config(config, overlay)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.dump_config:
        sys.stdout.write(dump_default_config())
        return

    config = apply_overrides(load_config(args.config), args)
    try:
        code = run_dashboard(config)
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
