#!/usr/bin/env python3
"""
Logical size calculation for directory trees

Sums st_size of regular files, optionally leaving out one subtree that the
caller reports separately.
"""

import logging
import os
import stat
from typing import Optional

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def _is_within(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def logical_size(root: str, exclude: str = "") -> tuple[int, Optional[OSError]]:
    """Return (total_bytes, first_error) for the regular files under *root*.

    When *exclude* is non-empty and lies within *root*, that whole subtree is
    skipped; excluding the root itself yields 0. Unreadable entries are
    skipped so the sum still completes, and the first error met is returned
    next to it. Symlinks are never followed.
    """
    root = _normalize(root)
    excluded = _normalize(exclude) if exclude else ""
    if excluded and not _is_within(excluded, root):
        excluded = ""
    if excluded == root:
        return 0, None

    first_error: Optional[OSError] = None

    def remember(error: OSError):
        nonlocal first_error
        logger.debug("skipping unreadable entry: %s", error)
        if first_error is None:
            first_error = error

    try:
        root_stat = os.lstat(root)
    except OSError as e:
        return 0, e
    if stat.S_ISREG(root_stat.st_mode):
        return root_stat.st_size, None
    if not stat.S_ISDIR(root_stat.st_mode):
        return 0, None

    total = 0
    for dirpath, dirnames, filenames in os.walk(root, onerror=remember, followlinks=False):
        if excluded:
            dirnames[:] = [d for d in dirnames if os.path.join(dirpath, d) != excluded]
        for name in filenames:
            full = os.path.join(dirpath, name)
            if full == excluded:
                continue
            try:
                st = os.lstat(full)
            except OSError as e:
                remember(e)
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size

    return total, first_error
