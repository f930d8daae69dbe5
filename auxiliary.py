#!/usr/bin/env python3
"""
Auxiliary utility functions for the kenosis tools

Formatting and parsing helpers shared by kenosis and katastasis.
"""

import logging
import pathlib
from typing import Optional

from rich.logging import RichHandler


def format_bytes(size_bytes: int) -> str:
    """Format byte size into human-readable string

    Args:
        size_bytes: Size in bytes to format

    Returns:
        Formatted string like "1.2 GiB", "345 MiB", "12 KiB", or "789 B"
    """
    if size_bytes >= 1024**4:
        return f"{size_bytes / (1024**4):.1f} TiB"
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GiB"
    if size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MiB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KiB"
    return f"{size_bytes} B"


def parse_size(value: str) -> int:
    """Parse a human-readable size string like '10M' into bytes.

    Raises ValueError for anything that is not a number with an optional
    B/K/M/G/T suffix.
    """
    value = value.strip().upper()
    if value.endswith("IB"):
        value = value[:-2]
    multipliers = {"B": 1, "K": 1024, "M": 1024**2, "G": 1024**3, "T": 1024**4}
    for suffix, mult in multipliers.items():
        if value.endswith(suffix):
            return int(float(value[: -len(suffix)]) * mult)
    return int(value)


def format_path_for_display(path: str, home_path: Optional[str] = None) -> str:
    """Format file path for display by replacing home directory with ~

    Args:
        path: File path to format
        home_path: Home directory path (defaults to platform home)

    Returns:
        Path with home directory replaced by ~ if applicable
    """
    if home_path is None:
        home_path = str(pathlib.Path.home())

    if path == home_path or path.startswith(home_path + "/"):
        return "~" + path[len(home_path) :]
    return path


def truncate_path(path: str, max_length: int = 50) -> str:
    """Truncate long paths for display, keeping both ends"""
    if len(path) <= max_length:
        return path

    available = max_length - 3  # Account for "..."
    start_len = available // 2
    end_len = available - start_len

    return f"{path[:start_len]}...{path[-end_len:]}"


def configure_logging(verbose: bool = False):
    """Route library log records through rich; quiet unless verbose"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
