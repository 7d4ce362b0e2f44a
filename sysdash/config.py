"""Configuration loading for sysdash.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/sysdash/config.toml → defaults only.
"""

from __future__ import annotations

import copy
import sys
import tomllib
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "show_fps": True,
    "tick_interval": 1.0,
    "max_table_rows": 10,
    "disk_path": "/",
    "exit_keys": ["escape", "q"],
    "network": {
        # Some hosts list dozens of virtual links; "up" filtering is opt-in.
        "up_only": False,
        "max_interfaces": 3,
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "sysdash" / "config.toml"

# Lower bound for tick_interval, whichever way it is set.
MIN_TICK_INTERVAL = 0.1


def merge_config(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/sysdash/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        SystemExit: If an explicit path doesn't exist or can't be parsed.
    """
    if path is not None:
        if not path.is_file():
            print(f"sysdash: config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            print(f"sysdash: invalid TOML in {path}: {e}", file=sys.stderr)
            raise SystemExit(1) from e
        return merge_config(DEFAULT_CONFIG, user_config)

    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
            return merge_config(DEFAULT_CONFIG, user_config)
        except tomllib.TOMLDecodeError:
            print(
                f"sysdash: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )

    return merge_config(DEFAULT_CONFIG, {})


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    keys = ", ".join(f'"{k}"' for k in DEFAULT_CONFIG["exit_keys"])
    network = DEFAULT_CONFIG["network"]
    lines = [
        "# sysdash configuration",
        "# Place this file at ~/.config/sysdash/config.toml",
        "",
        f"show_fps = {str(DEFAULT_CONFIG['show_fps']).lower()}",
        f"tick_interval = {DEFAULT_CONFIG['tick_interval']}",
        f"max_table_rows = {DEFAULT_CONFIG['max_table_rows']}",
        f'disk_path = "{DEFAULT_CONFIG["disk_path"]}"',
        f"exit_keys = [{keys}]",
        "",
        "[network]",
        f"up_only = {str(network['up_only']).lower()}",
        f"max_interfaces = {network['max_interfaces']}",
    ]
    return "\n".join(lines) + "\n"
